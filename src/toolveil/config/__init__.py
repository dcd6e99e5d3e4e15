from toolveil.config.loader import (
    ProxyConfig,
    TargetConfig,
    build_proxy_config,
    get_platform_config_path,
    load_proxy_config,
    resolve_config_path,
    split_patterns,
)
from toolveil.config.settings import ServerIdentity, ToolFilterConfig

__all__ = [
    "ProxyConfig",
    "ServerIdentity",
    "TargetConfig",
    "ToolFilterConfig",
    "build_proxy_config",
    "get_platform_config_path",
    "load_proxy_config",
    "resolve_config_path",
    "split_patterns",
]
