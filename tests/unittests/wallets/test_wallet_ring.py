from collections import Counter

import pytest

from rpc_player.wallets.ring import WalletRing, ring_for

NAMES = [f"worker-{n}" for n in range(8)]


class TestWalletRing:
    def test_names_are_sorted_and_unique(self):
        assert WalletRing(["b", "a", "b"]).names == ("a", "b")

    def test_empty_ring_is_rejected(self):
        with pytest.raises(ValueError):
            WalletRing([])

    def test_selection_is_deterministic(self):
        first = WalletRing(NAMES)
        second = WalletRing(list(reversed(NAMES)))

        for key in ("0xabc", "request-1", "42"):
            assert first.select(key) == second.select(key)

    def test_selection_is_a_member(self):
        ring = WalletRing(NAMES)

        assert ring.select("some key") in NAMES

    def test_selection_spreads_over_all_wallets(self):
        ring = WalletRing(NAMES)

        counts = Counter(ring.select(f"request-{n}") for n in range(4000))

        assert set(counts) == set(NAMES)
        # Every wallet should get a fair share, i.e. no less than a third of
        # the 500 keys an ideal distribution would assign.
        assert min(counts.values()) > 4000 / len(NAMES) / 3

    def test_single_wallet_is_always_selected(self):
        ring = WalletRing(["only"])

        assert {ring.select(str(n)) for n in range(20)} == {"only"}


class TestRingFor:
    def test_same_name_set_reuses_ring(self):
        assert ring_for(["b", "a"]) is ring_for(["a", "b"])
