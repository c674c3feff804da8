import pytest

from rpc_player.keys.cache import KeyCache


@pytest.fixture
def key_cache():
    return KeyCache()


class TestKeyCache:
    def test_set_path_registers_keyfile_for_account(self, key_cache, keyfile, address):
        key_cache.set_path(address, keyfile)

        assert address in key_cache
        assert key_cache.path(address) == keyfile

    def test_private_key_decrypts_registered_keyfile(
        self, key_cache, keyfile, address, privkey, password
    ):
        key_cache.set_path(address, keyfile)

        private_key, ok = key_cache.private_key(address, password)

        assert ok is True
        assert private_key.to_bytes() == privkey

    def test_private_key_is_decrypted_only_once(
        self, key_cache, keyfile, address, password, monkeypatch
    ):
        key_cache.set_path(address, keyfile)
        first, _ = key_cache.private_key(address, password)

        def fail(*args, **kwargs):
            raise AssertionError("keyfile decrypted twice")

        monkeypatch.setattr("rpc_player.keys.cache.decode_keyfile_json", fail)
        second, ok = key_cache.private_key(address, password)

        assert ok is True
        assert second is first

    def test_wrong_password_reports_failure(self, key_cache, keyfile, address):
        key_cache.set_path(address, keyfile)

        assert key_cache.private_key(address, "wrong password") == (None, False)

    def test_cached_key_requires_the_same_password(self, key_cache, keyfile, address, password):
        key_cache.set_path(address, keyfile)
        key_cache.private_key(address, password)

        assert key_cache.private_key(address, "wrong password") == (None, False)
        assert key_cache.private_key(address, password)[1] is True

    def test_unknown_account_reports_failure(self, key_cache, address, password):
        assert key_cache.private_key(address, password) == (None, False)

    def test_unreadable_keyfile_reports_failure(self, key_cache, keystore_dir, address, password):
        broken = keystore_dir.joinpath("broken")
        broken.write_text("{not json")
        key_cache.set_path(address, broken)

        assert key_cache.private_key(address, password) == (None, False)

    def test_unset_path_removes_binding_and_cached_key(
        self, key_cache, keyfile, address, password
    ):
        key_cache.set_path(address, keyfile)
        key_cache.private_key(address, password)

        key_cache.unset_path(address, keyfile)

        assert address not in key_cache
        assert key_cache.private_key(address, password) == (None, False)

    def test_unset_path_keeps_binding_to_another_path(self, key_cache, keyfile, address, tmp_path):
        key_cache.set_path(address, keyfile)

        key_cache.unset_path(address, tmp_path.joinpath("other"))

        assert key_cache.path(address) == keyfile

    def test_accounts_are_matched_regardless_of_case(self, key_cache, keyfile, address):
        key_cache.set_path(address.upper().replace("0X", "0x"), keyfile)

        assert key_cache.path(address) == keyfile
