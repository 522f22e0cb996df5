"""
SSHReady Config - Configuration management.
"""

from sshready.config.loader import get_config, load_config, reset_config
from sshready.config.models import (
    CacheConfig,
    Config,
    LoggingConfig,
    ProbeConfig,
    RetryConfig,
    SSHClientConfig,
)

__all__ = [
    "CacheConfig",
    "Config",
    "LoggingConfig",
    "ProbeConfig",
    "RetryConfig",
    "SSHClientConfig",
    "get_config",
    "load_config",
    "reset_config",
]
