"""Wallet entries of a plan's inventory and the discovery of their private keys.

A wallet gets its key from exactly one source, picked in this order:

    1. ``privkey``: a hex encoded private key given inline.
    2. ``keyfile`` (+ ``password``): an encrypted keyfile on disk.
    3. ``keystore`` + ``address`` + ``password``: a directory scanned for the
       keyfile belonging to ``address``.

A lower priority source is only considered if the higher priority field is
absent; an invalid higher priority source fails the wallet.

Example plan section::

    >my_plan.yml
    WALLETS:
      alice:
        address: # not known yet
        keystore: "examples/keystore/"
        password: "1234"
      bob:
        keyfile: "keystore://examples/keystore/UTC--bob"
        password: "1234"
      carol:
        privkey: 4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318
"""
import os
import pathlib
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Tuple

import structlog
from eth_keys import keys
from eth_keys.constants import SECPK1_N
from eth_utils import big_endian_to_int, decode_hex, is_hex_address

from rpc_player.constants import KEYSTORE_SCHEME, WALLET_SPEC_KEYS, ZERO_ADDRESS
from rpc_player.exceptions.config import WalletConfigurationError
from rpc_player.exceptions.keys import (
    AddressMismatch,
    InvalidPrivateKey,
    KeyDecryptionError,
    KeyFileError,
    KeyFileFormatError,
    KeyFileNotFound,
    KeyStoreScanError,
    MissingPassword,
    WalletAddressError,
    WalletError,
)
from rpc_player.keys.cache import KeyCache
from rpc_player.keys.keyfile import find_keyfile, load_keyfile
from rpc_player.utils.address import is_empty_address, normalize_address, same_address

if TYPE_CHECKING:
    from rpc_player.context import PlayerContext

log = structlog.get_logger(__name__)


class FieldName(str, Enum):
    """Wallet fields a value reference may point at."""

    ADDRESS = "address"
    PASSWORD = "password"
    KEYSTORE = "keystore"
    KEYFILE = "keyfile"
    BALANCE = "balance"


class KeySource(Enum):
    INLINE_KEY = "privkey"
    KEY_FILE = "keyfile"
    KEY_STORE_SCAN = "keystore"
    NONE = "none"


@dataclass(frozen=True)
class ResolvedWallet:
    """Result of resolving a :class:`WalletSpec`'s key source."""

    name: str
    address: str
    source: KeySource
    keystore: str = ""
    keyfile: str = ""
    private_key: Optional[keys.PrivateKey] = field(default=None, repr=False)

    @property
    def has_private_key(self) -> bool:
        return self.private_key is not None


def _address_from_yaml(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, int) and not isinstance(value, bool):
        # Unquoted 0x literals are loaded as integers by YAML 1.1 parsers.
        return ZERO_ADDRESS if value == 0 else f"0x{value:040x}"
    return str(value)


def _string_from_yaml(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass
class WalletSpec:
    """A single entry of the wallet inventory.

    After a successful :meth:`.validate`, :attr:`.address` holds the declared
    or derived address, the inline :attr:`.privkey` is cleared, and the key is
    only available through :attr:`.private_key`.
    """

    address: str = ""
    privkey: str = field(default="", repr=False)
    password: str = field(default="", repr=False)
    keystore: str = ""
    keyfile: str = ""
    balance: Optional[int] = None
    resolved: Optional[ResolvedWallet] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_dict(cls, name: str, data: Optional[Mapping[str, Any]]) -> "WalletSpec":
        """Create a spec from a loaded plan file entry.

        :raises WalletConfigurationError: if the entry isn't a mapping or has unknown keys.
        """
        data = data or {}
        if not isinstance(data, Mapping):
            raise WalletConfigurationError(f"Wallet '{name}' must be a mapping of options!")

        unknown = set(data) - WALLET_SPEC_KEYS
        if unknown:
            raise WalletConfigurationError(
                f"Wallet '{name}' has unknown options: {', '.join(sorted(map(str, unknown)))}"
            )

        return cls(
            address=_address_from_yaml(data.get("address")),
            privkey=_string_from_yaml(data.get("privkey")),
            password=_string_from_yaml(data.get("password")),
            keystore=_string_from_yaml(data.get("keystore")),
            keyfile=_string_from_yaml(data.get("keyfile")),
        )

    @property
    def private_key(self) -> Optional[keys.PrivateKey]:
        """The wallet's private key, if validation resolved one."""
        if self.resolved is None:
            return None
        return self.resolved.private_key

    def validate(self, context: "PlayerContext", name: str) -> bool:
        """Resolve the wallet's key source and store the result on the spec.

        Failures are logged and reported by returning False; nothing is raised.
        Validating again keeps a key resolved from the (since cleared) inline
        `privkey`, unless the spec's address or paths were changed meanwhile.
        """
        if self._holds_inline_key():
            log.debug("Wallet already resolved from privkey", section="wallets", wallet=name)
            return True

        try:
            resolved = resolve_wallet(self, name, context.key_cache)
        except WalletError as e:
            log.error(
                str(e) or e.__class__.__name__,
                section="wallets",
                wallet=name,
                error=e.__class__.__name__,
                **e.details,
            )
            return False

        self.resolved = resolved
        self.address = resolved.address
        self.keystore = resolved.keystore
        self.keyfile = resolved.keyfile
        self.privkey = ""
        return True

    def _holds_inline_key(self) -> bool:
        resolved = self.resolved
        if resolved is None or resolved.source is not KeySource.INLINE_KEY or self.privkey:
            return False
        return (self.address, self.keystore, self.keyfile) == (
            resolved.address,
            resolved.keystore,
            resolved.keyfile,
        )

    @staticmethod
    def has_field(name: str) -> bool:
        try:
            FieldName(name)
        except ValueError:
            return False
        return True

    def field_value(self, name: str) -> Any:
        """Return the value of the field `name`.

        :raises KeyError: if the wallet has no such field.
        """
        try:
            field_name = FieldName(name)
        except ValueError:
            raise KeyError(f"value of non-existing field: {name}")
        return getattr(self, field_name.value)


def classify_key_source(spec: WalletSpec) -> KeySource:
    """Return the key source `spec` will be resolved with."""
    if spec.privkey:
        return KeySource.INLINE_KEY
    if spec.keyfile:
        return KeySource.KEY_FILE
    if spec.keystore:
        return KeySource.KEY_STORE_SCAN
    return KeySource.NONE


def parse_private_key(hex_key: str) -> keys.PrivateKey:
    """Parse a hex encoded secp256k1 private key, with or without 0x prefix.

    :raises InvalidPrivateKey: if it isn't hex, isn't 32 bytes long, or is out of range.
    """
    try:
        key_bytes = decode_hex(hex_key)
    except (ValueError, TypeError) as e:
        raise InvalidPrivateKey("failed to unpack privkey from hex bytes") from e

    if len(key_bytes) != 32:
        raise InvalidPrivateKey("privkey must be 32 bytes (64 hex characters)")
    if not 0 < big_endian_to_int(key_bytes) < SECPK1_N:
        raise InvalidPrivateKey("privkey is not a valid secp256k1 key")
    return keys.PrivateKey(key_bytes)


def normalize_keyfile_paths(keystore: str, keyfile: str, wallet_log=log) -> Tuple[str, str]:
    """Return the (keystore, keyfile) pair the keyfile is actually loaded from.

    ``keystore://<dir>/<file>`` splits into the keystore `<dir>` and keyfile
    `<file>`, replacing any configured keystore. An absolute `keyfile` wins
    over an absolute `keystore`.
    """
    if keyfile.startswith(KEYSTORE_SCHEME):
        if keystore:
            wallet_log.warning(
                "replacing keystore path with keyfile dir, detected keystore:// prefix"
            )
        path = pathlib.PurePath(keyfile[len(KEYSTORE_SCHEME):])
        return str(path.parent), path.name

    if keystore and os.path.isabs(keystore) and os.path.isabs(keyfile):
        wallet_log.warning("removing keystore path, since keyfile path was absolute")
        keystore = ""
    return keystore, keyfile


def _check_declared_address(address: str) -> None:
    if address and address != ZERO_ADDRESS and not is_hex_address(address):
        raise WalletAddressError(
            "address is not valid (must be hex string starting from 0x)", address=address
        )


def _adopt_or_match(declared: str, derived: str, source: str, wallet_log) -> str:
    """Return the wallet's address given the `derived` address of its key source."""
    if is_empty_address(declared):
        address = normalize_address(derived)
        wallet_log.info(f"loaded address from {source}", address=address)
        return address
    if not same_address(declared, derived):
        raise AddressMismatch(declared, normalize_address(derived), source)
    return declared


def _unlock(
    key_cache: KeyCache, account: str, path: pathlib.Path, password: str
) -> keys.PrivateKey:
    """Register `path` for `account` in the cache and decrypt it.

    The registration is rolled back if the key can't be loaded or belongs to
    another account.
    """
    key_cache.set_path(account, path)
    try:
        private_key, ok = key_cache.private_key(account, password)
        if not ok:
            raise KeyDecryptionError("unable to load private key from keyfile", keyfile=str(path))
        derived = private_key.public_key.to_address()
        if not same_address(derived, account):
            raise AddressMismatch(account, derived, "keyfile")
    except WalletError:
        key_cache.unset_path(account, path)
        raise
    return private_key


def _resolve_inline_key(spec: WalletSpec, name: str, key_cache: KeyCache, wallet_log):
    if spec.password:
        wallet_log.warning("private key is being loaded from string, but password is provided")
    if spec.keyfile:
        wallet_log.warning("private key is being loaded from string, but keyfile is provided")

    private_key = parse_private_key(spec.privkey)
    derived = private_key.public_key.to_address()
    address = _adopt_or_match(spec.address, derived, "privkey", wallet_log)
    return ResolvedWallet(
        name=name,
        address=address,
        source=KeySource.INLINE_KEY,
        keystore=spec.keystore,
        keyfile=spec.keyfile,
        private_key=private_key,
    )


def _resolve_keyfile(spec: WalletSpec, name: str, key_cache: KeyCache, wallet_log):
    if not spec.password:
        raise MissingPassword("no password is provided for the account keyfile")

    keystore, keyfile = normalize_keyfile_paths(spec.keystore, spec.keyfile, wallet_log)
    keyfile_path = pathlib.Path(keystore, keyfile)
    if not keyfile_path.is_file():
        raise KeyFileNotFound(
            "file specified in keyfile is not found or cannot be read", keyfile=str(keyfile_path)
        )

    try:
        record = load_keyfile(keyfile_path)
    except KeyFileFormatError as e:
        raise KeyFileFormatError(
            "file specified in keyfile has wrong format", keyfile=str(keyfile_path), reason=str(e)
        ) from e

    address = _adopt_or_match(spec.address, record.address, "keyfile", wallet_log)
    private_key = _unlock(key_cache, address, keyfile_path, spec.password)
    return ResolvedWallet(
        name=name,
        address=address,
        source=KeySource.KEY_FILE,
        keystore=keystore,
        keyfile=keyfile,
        private_key=private_key,
    )


def _resolve_keystore_scan(spec: WalletSpec, name: str, key_cache: KeyCache, wallet_log):
    # Incomplete keystore wallets are placeholders, e.g. for an account that
    # is created during the run. They validate, but carry no key.
    placeholder = ResolvedWallet(
        name=name, address=spec.address, source=KeySource.KEY_STORE_SCAN, keystore=spec.keystore
    )
    if not spec.address:
        wallet_log.warning("no account is specified to search the keyfile in keystore prefix")
        return placeholder
    if not spec.password:
        wallet_log.warning("no password is provided for the account keyfile")
        return placeholder

    try:
        record = find_keyfile(spec.keystore, spec.address)
    except KeyFileError as e:
        raise KeyStoreScanError(
            "failed to search keyfile in keystore", keystore=spec.keystore, reason=str(e)
        ) from e
    if record is None:
        raise KeyFileNotFound("failed to locate private key", address=spec.address)

    private_key = _unlock(key_cache, spec.address, record.path, spec.password)
    wallet_log.info("located keyfile by address", address=spec.address, keyfile=str(record.path))
    return ResolvedWallet(
        name=name,
        address=spec.address,
        source=KeySource.KEY_STORE_SCAN,
        keystore=spec.keystore,
        keyfile=record.path.name,
        private_key=private_key,
    )


def _resolve_without_key(spec: WalletSpec, name: str, key_cache: KeyCache, wallet_log):
    wallet_log.warning("no privkey, keyfile or keystore prefix specified")
    return ResolvedWallet(name=name, address=spec.address, source=KeySource.NONE)


_RESOLVERS: Dict[KeySource, Any] = {
    KeySource.INLINE_KEY: _resolve_inline_key,
    KeySource.KEY_FILE: _resolve_keyfile,
    KeySource.KEY_STORE_SCAN: _resolve_keystore_scan,
    KeySource.NONE: _resolve_without_key,
}


def resolve_wallet(spec: WalletSpec, name: str, key_cache: KeyCache) -> ResolvedWallet:
    """Resolve `spec`'s address and private key without modifying `spec`.

    The only side effect is the registration of keyfiles in `key_cache`.

    :raises WalletError: if the wallet's key source is invalid.
    """
    wallet_log = log.bind(section="wallets", wallet=name)
    _check_declared_address(spec.address)
    source = classify_key_source(spec)
    return _RESOLVERS[source](spec, name, key_cache, wallet_log)
