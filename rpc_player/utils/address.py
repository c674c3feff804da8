from typing import Optional

from eth_utils import is_hex_address, to_canonical_address, to_normalized_address

from rpc_player.constants import ZERO_ADDRESS


def is_empty_address(address: Optional[str]) -> bool:
    """Return True if no usable address was declared (empty or the zero sentinel)."""
    return not address or address == ZERO_ADDRESS


def normalize_address(address: str) -> str:
    """Return the lower-cased, 0x prefixed form of a hex address."""
    return to_normalized_address(address)


def same_address(left: str, right: str) -> bool:
    """Compare two hex addresses by their 20 raw bytes.

    Either side may be checksummed, lower-cased or lack the 0x prefix.
    """
    if not (is_hex_address(left) and is_hex_address(right)):
        return False
    return to_canonical_address(left) == to_canonical_address(right)
