from rpc_player.exceptions.config import (
    ConfigurationError,
    ExpressionError,
    PlanFileError,
    ReferenceParseError,
    ReferenceResolutionError,
    UnknownFieldReference,
    UnknownWalletReference,
    WalletConfigurationError,
)
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

__all__ = [
    "AddressMismatch",
    "ConfigurationError",
    "ExpressionError",
    "InvalidPrivateKey",
    "KeyDecryptionError",
    "KeyFileError",
    "KeyFileFormatError",
    "KeyFileNotFound",
    "KeyStoreScanError",
    "MissingPassword",
    "PlanFileError",
    "ReferenceParseError",
    "ReferenceResolutionError",
    "UnknownFieldReference",
    "UnknownWalletReference",
    "WalletAddressError",
    "WalletConfigurationError",
    "WalletError",
]
