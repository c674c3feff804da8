class WalletError(Exception):
    """Base class for errors raised while resolving a wallet's key.

    Keyword arguments given on construction are kept in :attr:`.details` and
    end up as fields of the validation log entry.
    """

    exit_code = 20

    def __init__(self, message: str = "", **details):
        super(WalletError, self).__init__(message)
        self.details = details


class WalletAddressError(WalletError):
    """The declared address is neither the zero sentinel nor a hex address."""


class AddressMismatch(WalletError):
    """The address derived from a key source differs from the declared address."""

    def __init__(self, declared: str, derived: str, source: str):
        super(AddressMismatch, self).__init__(
            f"address loaded from {source} differs from specified address",
            address=declared,
            derived_address=derived,
        )
        self.declared = declared
        self.derived = derived
        self.source = source


class InvalidPrivateKey(WalletError):
    """The inline private key is not a valid hex encoded secp256k1 key."""


class MissingPassword(WalletError):
    """A keyfile was configured, but no password to unlock it."""


class KeyFileError(WalletError):
    exit_code = 21


class KeyFileNotFound(KeyFileError):
    """The keyfile does not exist, is not a regular file, or was not found in the keystore."""


class KeyFileFormatError(KeyFileError):
    """The keyfile is not valid JSON or carries no valid hex address."""


class KeyStoreScanError(KeyFileError):
    """The keystore directory could not be read."""


class KeyDecryptionError(KeyFileError):
    """Unable to load the private key from the keyfile.

    Usually that's caused by an invalid password.
    """
