import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Pattern, Union

import structlog

from rpc_player.constants import WALLETS_SECTION
from rpc_player.exceptions.config import WalletConfigurationError
from rpc_player.utils.address import same_address
from rpc_player.utils.configuration.base import ConfigMapping
from rpc_player.wallets.ring import ring_for
from rpc_player.wallets.spec import WalletSpec

if TYPE_CHECKING:
    from rpc_player.context import PlayerContext

log = structlog.get_logger(__name__)

NamePattern = Union[str, Pattern]


class WalletRegistry(ConfigMapping):
    """The named wallet inventory of a plan.

    Maps wallet names to :class:`WalletSpec` instances. Wallets are selected
    by regular expressions matched against their names (``re.search``
    semantics), always in sorted name order so selections are reproducible.

    Example plan section::

        >my_plan.yml
        WALLETS:
          worker-0:
            keyfile: "keystore://keys/UTC--worker-0"
            password: "1234"
          worker-1:
            ...
    """

    CONFIGURATION_ERROR = WalletConfigurationError

    def __init__(self, wallets: Optional[Dict[str, WalletSpec]] = None) -> None:
        super(WalletRegistry, self).__init__(dict(wallets or {}))
        self.validate_structure()

    @classmethod
    def from_definition(cls, loaded_definition: Dict[str, Any]) -> "WalletRegistry":
        """Build the registry from the `WALLETS` section of a loaded plan."""
        section = (loaded_definition or {}).get(WALLETS_SECTION) or {}
        cls.assert_option(
            isinstance(section, Mapping), f"'{WALLETS_SECTION}' must be a mapping of wallets!"
        )
        wallets = {
            str(name): WalletSpec.from_dict(str(name), data) for name, data in section.items()
        }
        return cls(wallets)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.dict))

    def validate_structure(self) -> None:
        for name, spec in self.dict.items():
            self.assert_option(isinstance(name, str) and name, "Wallet names must be non-empty!")
            self.assert_option(
                isinstance(spec, WalletSpec), f"Wallet '{name}' is not a WalletSpec instance!"
            )

    def validate(self, context: "PlayerContext") -> bool:
        """Validate every wallet, resolving its key.

        All wallets are validated, even after a failure, so every problem is
        reported. Returns True only if all of them are valid.
        """
        valid = True
        for name in self:
            if not self.dict[name].validate(context, name):
                valid = False
        if not valid:
            log.error("Wallet validation failed", section="wallets")
        return valid

    def get_wallet(self, name: str) -> Optional[WalletSpec]:
        return self.dict.get(name)

    def name_of(self, address: str) -> Optional[str]:
        """Return the name of the wallet with the given `address`, if any."""
        if not address:
            return None
        for name in self:
            wallet_address = self.dict[name].address
            if wallet_address == address or same_address(wallet_address, address):
                return name
        return None

    def matching_names(self, pattern: NamePattern) -> List[str]:
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        return [name for name in self if regex.search(name)]

    def select_name(self, pattern: NamePattern, shard_key: str) -> Optional[str]:
        """Pick the name of one of the wallets matching `pattern` for `shard_key`.

        The same `shard_key` always selects the same wallet, while different
        keys spread evenly over all matching wallets.
        """
        names = self.matching_names(pattern)
        if not names:
            log.warning("No wallet matches pattern", pattern=str(pattern))
            return None
        return ring_for(names).select(shard_key)

    def get_one(self, pattern: NamePattern, shard_key: str) -> Optional[WalletSpec]:
        name = self.select_name(pattern, shard_key)
        return None if name is None else self.dict[name]

    def get_all(self, pattern: NamePattern) -> List[WalletSpec]:
        """Return all wallets matching `pattern`, ordered by name."""
        return [self.dict[name] for name in self.matching_names(pattern)]
