import hashlib
import json
from pathlib import Path

import pytest
from eth_keyfile import create_keyfile_json
from eth_keys import keys
from eth_utils import to_normalized_address

from rpc_player.context import PlayerContext
from rpc_player.wallets.registry import WalletRegistry
from rpc_player.wallets.spec import WalletSpec

PASSWORD = "1234"


def make_privkey(seed: str) -> bytes:
    return hashlib.sha256(seed.encode()).digest()


def address_of(privkey: bytes) -> str:
    """Lower-cased, 0x prefixed address of `privkey`."""
    return to_normalized_address(keys.PrivateKey(privkey).public_key.to_address())


def write_keyfile(directory: Path, privkey: bytes, password: str = PASSWORD, name=None) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    keyfile_json = create_keyfile_json(privkey, password.encode(), iterations=2)
    path = directory.joinpath(name or f"UTC--{keyfile_json['address']}")
    path.write_text(json.dumps(keyfile_json))
    return path


@pytest.fixture
def privkey():
    return make_privkey("alice")


@pytest.fixture
def address(privkey):
    return address_of(privkey)


@pytest.fixture
def keystore_dir(tmp_path):
    keystore = tmp_path.joinpath("keystore")
    keystore.mkdir()
    return keystore


@pytest.fixture
def keyfile(keystore_dir, privkey):
    return write_keyfile(keystore_dir, privkey)


@pytest.fixture
def context():
    return PlayerContext()


@pytest.fixture
def registry():
    return WalletRegistry(
        {
            "alice": WalletSpec(address="0x" + "a" * 40, password="secret"),
            "bob": WalletSpec(address="0x" + "b" * 40),
            "worker-0": WalletSpec(),
            "worker-1": WalletSpec(),
        }
    )


@pytest.fixture
def keyfile_factory():
    """Write an encrypted keyfile for a private key into a directory."""
    return write_keyfile


@pytest.fixture
def privkey_factory():
    return make_privkey


@pytest.fixture
def derive_address():
    return address_of


@pytest.fixture
def password():
    return PASSWORD
