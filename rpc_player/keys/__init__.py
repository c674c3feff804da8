from rpc_player.keys.cache import KeyCache
from rpc_player.keys.keyfile import (
    KeyFileRecord,
    ScanResult,
    find_keyfile,
    for_each_keyfile,
    load_keyfile,
)

__all__ = [
    "KeyCache",
    "KeyFileRecord",
    "ScanResult",
    "find_keyfile",
    "for_each_keyfile",
    "load_keyfile",
]
