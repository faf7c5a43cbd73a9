from .config import (
    Config,
    CredentialRuleConfig,
    CredentialsConfig,
    FetcherConfig,
    MonitoringConfig,
    ServerConfig,
    find_config_file,
    load_config,
)

__all__ = [
    "Config",
    "CredentialRuleConfig",
    "CredentialsConfig",
    "FetcherConfig",
    "MonitoringConfig",
    "ServerConfig",
    "find_config_file",
    "load_config",
]
