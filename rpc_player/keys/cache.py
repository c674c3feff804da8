import hashlib
import hmac
import json
import pathlib
import threading
from typing import Dict, Optional, Tuple, Union

import structlog
from eth_keyfile import decode_keyfile_json
from eth_keys import keys
from eth_keys.exceptions import ValidationError
from eth_typing import Address
from eth_utils import to_canonical_address, to_normalized_address

log = structlog.get_logger(__name__)

PathLike = Union[str, pathlib.Path]


def _password_digest(password: str) -> bytes:
    return hashlib.sha256(password.encode()).digest()


class KeyCache:
    """Map accounts to the keyfiles backing them, and cache decrypted keys.

    One instance is created per run and handed to wallet validation through
    the :class:`rpc_player.context.PlayerContext`. Decrypting a keyfile is
    expensive (scrypt/pbkdf2), so a key is only ever decrypted once for a
    given account and keyfile. Later lookups must present the same password.

    All methods are safe to call from several threads. After the initial
    validation pass the cache is effectively read-only.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._paths: Dict[Address, pathlib.Path] = {}
        self._keys: Dict[Address, Tuple[pathlib.Path, bytes, keys.PrivateKey]] = {}

    def __contains__(self, account: str) -> bool:
        return to_canonical_address(account) in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    def path(self, account: str) -> Optional[pathlib.Path]:
        """Return the keyfile path registered for `account`, if any."""
        return self._paths.get(to_canonical_address(account))

    def set_path(self, account: str, path: PathLike) -> None:
        """Register `path` as the keyfile of `account`."""
        canonical = to_canonical_address(account)
        path = pathlib.Path(path)
        with self._lock:
            previous = self._paths.get(canonical)
            if previous is not None and previous != path:
                log.warning(
                    "Replacing keyfile path for account",
                    account=to_normalized_address(canonical),
                    previous=str(previous),
                    keyfile=str(path),
                )
                self._keys.pop(canonical, None)
            self._paths[canonical] = path

    def unset_path(self, account: str, path: PathLike) -> None:
        """Remove the binding of `account` to `path`.

        Bindings to a different path are left untouched. Any key decrypted
        from `path` is dropped as well.
        """
        canonical = to_canonical_address(account)
        path = pathlib.Path(path)
        with self._lock:
            if self._paths.get(canonical) == path:
                del self._paths[canonical]
            cached = self._keys.get(canonical)
            if cached is not None and cached[0] == path:
                del self._keys[canonical]

    def private_key(self, account: str, password: str) -> Tuple[Optional[keys.PrivateKey], bool]:
        """Decrypt the keyfile registered for `account` using `password`.

        Returns a tuple of the key and a success flag. Never raises; failures
        are logged and reported as ``(None, False)``.
        """
        canonical = to_canonical_address(account)
        account_log = log.bind(account=to_normalized_address(canonical))

        with self._lock:
            path = self._paths.get(canonical)
            if path is None:
                account_log.error("No keyfile registered for account")
                return None, False

            cached = self._keys.get(canonical)
            digest = _password_digest(password)
            if cached is not None and cached[0] == path:
                if hmac.compare_digest(cached[1], digest):
                    return cached[2], True
                account_log.error("Password differs from the one that decrypted the keyfile")
                return None, False

            try:
                keyfile_json = json.loads(path.read_text())
                key_bytes = decode_keyfile_json(keyfile_json, password.encode())
                private_key = keys.PrivateKey(key_bytes)
            except ValueError as e:
                # Includes "MAC mismatch", i.e. a wrong password, and bad JSON.
                account_log.error("Unable to decrypt keyfile", keyfile=str(path), error=str(e))
                return None, False
            except (OSError, KeyError, TypeError, NotImplementedError, ValidationError) as e:
                account_log.error("Unable to read keyfile", keyfile=str(path), error=str(e))
                return None, False

            self._keys[canonical] = (path, digest, private_key)
            account_log.debug("Decrypted keyfile", keyfile=str(path))
            return private_key, True
