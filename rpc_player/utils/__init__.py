from rpc_player.utils.address import is_empty_address, normalize_address, same_address

__all__ = ["is_empty_address", "normalize_address", "same_address"]
