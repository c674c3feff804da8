import json
import pathlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

import structlog
from eth_typing import Address
from eth_utils import is_hex_address, to_canonical_address

from rpc_player.exceptions.keys import KeyFileFormatError, KeyStoreScanError
from rpc_player.utils.address import same_address

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class KeyFileRecord:
    """A parsed, still encrypted keyfile from disk.

    Only the fields required to locate the key are interpreted. The full JSON
    content is kept in :attr:`.content` so it can be handed to
    :func:`eth_keyfile.decode_keyfile_json` later on.
    """

    address: str
    path: pathlib.Path
    id: Optional[str] = None
    version: Optional[int] = None
    content: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def canonical_address(self) -> Address:
        return to_canonical_address(self.address)


class ScanResult(Enum):
    """What a keystore visitor wants the scan to do next."""

    CONTINUE = "continue"
    STOP = "stop"


KeyFileVisitor = Callable[[KeyFileRecord], ScanResult]


def load_keyfile(path: Union[str, pathlib.Path]) -> KeyFileRecord:
    """Load the keyfile at `path`.

    :raises KeyFileFormatError:
        if the file can't be read, isn't valid JSON, or doesn't carry a
        hex address in its `address` field.
    """
    path = pathlib.Path(path)
    try:
        content = json.loads(path.read_text())
    except (OSError, UnicodeDecodeError, ValueError) as e:
        raise KeyFileFormatError(f"failed to read keyfile {path}: {e}") from e

    if not isinstance(content, dict):
        raise KeyFileFormatError(f"keyfile {path} does not contain a JSON object")

    address = content.get("address")
    if not address:
        raise KeyFileFormatError(f"failed to load address from {path}")
    if not isinstance(address, str) or not is_hex_address(address):
        raise KeyFileFormatError(f"wrong (not hex) address from {path}")

    return KeyFileRecord(
        address=address,
        path=path,
        id=content.get("id"),
        version=content.get("version"),
        content=content,
    )


def for_each_keyfile(directory: Union[str, pathlib.Path], visitor: KeyFileVisitor) -> None:
    """Parse every top-level file in `directory` and hand it to `visitor`.

    Entries are visited in lexical order. Sub-directories are skipped, never
    descended into. The scan ends early, and successfully, once the visitor
    returns :attr:`ScanResult.STOP`.

    :raises KeyStoreScanError: if the directory can't be listed.
    :raises KeyFileFormatError: if any visited file is not a valid keyfile.
    """
    directory = pathlib.Path(directory)
    try:
        entries = sorted(directory.iterdir())
    except OSError as e:
        raise KeyStoreScanError(f"unable to read keystore {directory}: {e}") from e

    for entry in entries:
        if entry.is_dir():
            continue
        keyfile = load_keyfile(entry)
        if visitor(keyfile) is ScanResult.STOP:
            return


def find_keyfile(directory: Union[str, pathlib.Path], address: str) -> Optional[KeyFileRecord]:
    """Return the first keyfile in `directory` belonging to `address`, if any."""
    found = []

    def match_address(keyfile: KeyFileRecord) -> ScanResult:
        if same_address(keyfile.address, address):
            found.append(keyfile)
            return ScanResult.STOP
        return ScanResult.CONTINUE

    for_each_keyfile(directory, match_address)
    if not found:
        log.debug("No keyfile found in keystore", keystore=str(directory), address=address)
        return None
    return found[0]
