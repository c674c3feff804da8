import re

import pytest

from rpc_player.exceptions.config import WalletConfigurationError
from rpc_player.wallets.registry import WalletRegistry
from rpc_player.wallets.spec import WalletSpec


class TestWalletRegistryFromDefinition:
    def test_loads_wallets_section(self):
        registry = WalletRegistry.from_definition(
            {"WALLETS": {"alice": {"address": 0, "password": "pw"}, "bob": None}}
        )

        assert list(registry) == ["alice", "bob"]
        assert registry["alice"].address == "0x0"
        assert registry["bob"] == WalletSpec()

    def test_missing_section_yields_empty_registry(self):
        assert len(WalletRegistry.from_definition({"CALL": {}})) == 0

    def test_section_must_be_a_mapping(self):
        with pytest.raises(WalletConfigurationError):
            WalletRegistry.from_definition({"WALLETS": ["alice"]})

    def test_entries_must_be_wallet_specs(self):
        with pytest.raises(WalletConfigurationError):
            WalletRegistry({"alice": {"address": "0x0"}})


class TestWalletRegistryValidate:
    def test_all_valid(self, context, privkey_factory):
        registry = WalletRegistry(
            {
                "alice": WalletSpec(privkey=privkey_factory("alice").hex()),
                "bob": WalletSpec(privkey=privkey_factory("bob").hex()),
            }
        )

        assert registry.validate(context) is True

    def test_validating_twice_keeps_inline_keys(self, context, privkey_factory):
        registry = WalletRegistry({"alice": WalletSpec(privkey=privkey_factory("alice").hex())})

        assert registry.validate(context) is True
        assert registry.validate(context) is True

        assert registry["alice"].private_key.to_bytes() == privkey_factory("alice")

    def test_one_invalid_wallet_fails_all_but_every_wallet_is_validated(
        self, context, privkey_factory
    ):
        registry = WalletRegistry(
            {
                "alice": WalletSpec(privkey="not a key"),
                "bob": WalletSpec(privkey=privkey_factory("bob").hex()),
            }
        )

        assert registry.validate(context) is False
        # bob comes after alice, but was validated nonetheless.
        assert registry["bob"].private_key is not None


class TestWalletRegistryLookup:
    def test_get_wallet(self, registry):
        assert registry.get_wallet("alice") is registry["alice"]
        assert registry.get_wallet("carol") is None

    def test_name_of(self, registry):
        assert registry.name_of("0x" + "b" * 40) == "bob"
        assert registry.name_of("0x" + "B" * 40) == "bob"
        assert registry.name_of("0x" + "c" * 40) is None
        assert registry.name_of("") is None

    def test_get_all_returns_matching_wallets_sorted_by_name(self, registry):
        assert registry.get_all("^worker-") == [registry["worker-0"], registry["worker-1"]]
        assert registry.get_all(re.compile("o")) == [
            registry["bob"],
            registry["worker-0"],
            registry["worker-1"],
        ]

    def test_get_all_without_match_is_empty(self, registry):
        assert registry.get_all("^carol$") == []


class TestWalletRegistryGetOne:
    def test_get_one_is_deterministic(self, registry):
        selected = registry.get_one("^worker-", "request-1")

        assert selected in (registry["worker-0"], registry["worker-1"])
        assert registry.get_one("^worker-", "request-1") is selected

    def test_get_one_is_independent_of_insertion_order(self, registry):
        reordered = WalletRegistry(
            {name: registry[name] for name in reversed(list(registry))}
        )

        for n in range(20):
            key = f"request-{n}"
            assert reordered.select_name("^worker-", key) == registry.select_name("^worker-", key)

    def test_get_one_covers_all_matching_wallets(self, registry):
        selected = {registry.select_name("^worker-", f"request-{n}") for n in range(200)}

        assert selected == {"worker-0", "worker-1"}

    def test_get_one_without_match_returns_none(self, registry):
        assert registry.get_one("^carol$", "request-1") is None
