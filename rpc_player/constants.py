#: Sentinel address accepted in plan files as "no address yet".
ZERO_ADDRESS = "0x0"

#: Prefix marking a keyfile path whose parent directory is the keystore.
KEYSTORE_SCHEME = "keystore://"

#: Separator between wallet name and field name in a reference.
REFERENCE_DELIMITER = "."

WALLET_REFERENCE_SIGIL = "@"
CALLER_WALLET_REFERENCE = "@@"
RESULT_REFERENCE_SIGIL = "$"

#: Name of the plan section holding the wallet inventory.
WALLETS_SECTION = "WALLETS"

#: Allowed keys of a single wallet entry in the plan file.
WALLET_SPEC_KEYS = frozenset(["address", "privkey", "password", "keystore", "keyfile"])
