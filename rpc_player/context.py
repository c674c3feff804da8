from typing import Optional

from rpc_player.keys.cache import KeyCache


class PlayerContext:
    """Capabilities of the host environment required by wallet validation.

    Currently this is only the run's :class:`KeyCache`. It is created once at
    start up and passed to every validation call, so wallets sharing an
    account share decrypted keys.
    """

    def __init__(self, key_cache: Optional[KeyCache] = None) -> None:
        self._key_cache = key_cache if key_cache is not None else KeyCache()

    @property
    def key_cache(self) -> KeyCache:
        return self._key_cache
