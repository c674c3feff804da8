from rpc_player.wallets.registry import WalletRegistry
from rpc_player.wallets.ring import WalletRing, ring_for
from rpc_player.wallets.spec import (
    FieldName,
    KeySource,
    ResolvedWallet,
    WalletSpec,
    classify_key_source,
    resolve_wallet,
)

__all__ = [
    "FieldName",
    "KeySource",
    "ResolvedWallet",
    "WalletRegistry",
    "WalletRing",
    "WalletSpec",
    "classify_key_source",
    "resolve_wallet",
    "ring_for",
]
