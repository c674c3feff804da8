from collections.abc import Mapping
from typing import Optional, Union

from rpc_player.exceptions.config import ConfigurationError


class ConfigMapping(Mapping):
    """Read-only mapping over a section of a loaded plan file."""

    CONFIGURATION_ERROR = ConfigurationError

    def __init__(self, loaded_yaml: Mapping):
        self.dict = loaded_yaml or {}

    def __getitem__(self, item):
        return self.dict[item]

    def __iter__(self):
        return iter(self.dict)

    def __len__(self):
        return len(self.dict)

    def __repr__(self):
        return f"{self.__class__.__qualname__}({self.dict})"

    @classmethod
    def assert_option(cls, expression, err: Optional[Union[str, Exception]] = None):
        """Raise a :attr:`CONFIGURATION_ERROR` (or `err` itself) unless `expression` holds."""
        if expression:
            return
        if err is None or isinstance(err, str):
            raise cls.CONFIGURATION_ERROR(err)
        raise err
