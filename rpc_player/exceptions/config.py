class ConfigurationError(ValueError):
    """Generic error thrown if there was an error while reading the plan file."""

    exit_code = 10


class PlanFileError(ConfigurationError):
    """The plan file could not be read or is not a YAML mapping."""


class WalletConfigurationError(ConfigurationError):
    """An error occurred while validating the wallets section of a plan file."""


class ReferenceParseError(ConfigurationError):
    """A value reference could not be parsed."""

    exit_code = 11


class UnknownWalletReference(ReferenceParseError):
    """The reference targets a wallet that is not part of the inventory."""


class UnknownFieldReference(ReferenceParseError):
    """The reference targets a field a wallet does not have."""


class ExpressionError(ConfigurationError):
    """A value expression is malformed or could not be evaluated."""

    exit_code = 12


class ReferenceResolutionError(ConfigurationError):
    """A parsed reference could not be dereferenced when building a call."""

    exit_code = 13
