from functools import lru_cache
from typing import Iterable, Tuple

import structlog
from uhashring import HashRing

log = structlog.get_logger(__name__)


class WalletRing:
    """Consistent hash ring over a set of wallet names.

    Names are sorted before the ring is built, so any two rings over the same
    set select the same wallet for the same shard key. The ring uses ketama
    (md5) hashing, which keeps selections stable across processes as well.

    Selection is read-only and safe to use from any number of workers.
    """

    def __init__(self, names: Iterable[str]) -> None:
        self._names: Tuple[str, ...] = tuple(sorted(set(names)))
        if not self._names:
            raise ValueError("Can't build a wallet ring without wallets!")
        self._ring = HashRing(nodes=list(self._names))

    @property
    def names(self) -> Tuple[str, ...]:
        return self._names

    def __len__(self) -> int:
        return len(self._names)

    def select(self, shard_key: str) -> str:
        """Return the wallet name `shard_key` maps to."""
        return self._ring.get_node(str(shard_key))


@lru_cache(maxsize=128)
def _cached_ring(names: Tuple[str, ...]) -> WalletRing:
    log.debug("Building wallet ring", wallets=len(names))
    return WalletRing(names)


def ring_for(names: Iterable[str]) -> WalletRing:
    """Return a (memoized) ring for the given set of wallet names."""
    return _cached_ring(tuple(sorted(set(names))))
