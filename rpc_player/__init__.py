"""RPC Scenario Player.

Wallet, key discovery and value reference primitives for driving JSON-RPC
plans against an Ethereum node.
"""

__version__ = "0.1.0"
