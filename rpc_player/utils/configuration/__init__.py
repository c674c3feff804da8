from rpc_player.utils.configuration.base import ConfigMapping

__all__ = ["ConfigMapping"]
