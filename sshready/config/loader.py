"""
SSHReady Config - Loading and environment overrides.

Priority:
1. Environment variables (SSHREADY_*)
2. Defaults
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from sshready.config.models import Config
from sshready.core.exceptions import InvalidConfigError

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")

# env var -> (section, field, kind)
ENV_MAPPINGS: dict[str, tuple[str, str, str]] = {
    "SSHREADY_NETWORK_TIMEOUT_MS": ("probe", "network_timeout_ms", "int"),
    "SSHREADY_METHOD_PROBE_TIMEOUT_MS": ("probe", "method_probe_timeout_ms", "int"),
    "SSHREADY_AUTH_TIMEOUT_MS": ("probe", "auth_timeout_ms", "int"),
    "SSHREADY_MAX_ATTEMPTS": ("retry", "max_attempts", "int"),
    "SSHREADY_NON_INTERACTIVE": ("retry", "interactive", "inverted_bool"),
    "SSHREADY_BACKOFF_SECONDS": ("retry", "backoff_seconds", "float"),
    "SSHREADY_PASSWORD_ATTEMPTS": ("retry", "password_attempt_limit", "int"),
    "SSHREADY_CACHE_TTL": ("cache", "ttl_seconds", "ttl"),
    "SSHREADY_SSH_BINARY": ("ssh", "ssh_binary", "str"),
    "SSHREADY_SSHPASS_BINARY": ("ssh", "sshpass_binary", "str"),
    "SSHREADY_STRICT_HOST_KEY_CHECKING": ("ssh", "strict_host_key_checking", "str"),
    "SSHREADY_SSH_DIR": ("ssh", "ssh_dir", "str"),
    "SSHREADY_USE_AGENT": ("ssh", "use_agent", "bool"),
    "SSHREADY_LOG_FILE": ("logging", "log_file", "str"),
    "SSHREADY_LOG_LEVEL": ("logging", "file_level", "lower"),
}


def _convert(env_var: str, raw: str, kind: str) -> Any:
    """Convert a raw environment value to the field's type."""
    value = raw.strip()

    if kind in ("bool", "inverted_bool"):
        lowered = value.lower()
        if lowered in _TRUE_VALUES:
            flag = True
        elif lowered in _FALSE_VALUES:
            flag = False
        else:
            raise InvalidConfigError(env_var, raw, "expected a boolean (1/0, true/false, yes/no)")
        return not flag if kind == "inverted_bool" else flag

    if kind == "int":
        try:
            return int(value)
        except ValueError as e:
            raise InvalidConfigError(env_var, raw, "expected an integer") from e

    if kind == "float":
        try:
            return float(value)
        except ValueError as e:
            raise InvalidConfigError(env_var, raw, "expected a number") from e

    if kind == "ttl":
        # Lazy import to avoid circular deps
        from sshready.credentials.cache import SessionCredentialCache

        return SessionCredentialCache.parse_ttl(value) // 1000

    if kind == "lower":
        return value.lower()

    return value


def load_config(env: Mapping[str, str] | None = None) -> Config:
    """
    Build a Config from defaults and SSHREADY_* environment overrides.

    Args:
        env: Environment mapping (defaults to os.environ)

    Returns:
        Validated Config

    Raises:
        InvalidConfigError: If an override cannot be converted or validated
    """
    if env is None:
        env = os.environ

    data: dict[str, dict[str, Any]] = {}
    sources: dict[tuple[str, str], tuple[str, str]] = {}

    for env_var, (section, field_name, kind) in ENV_MAPPINGS.items():
        raw = env.get(env_var)
        if raw is None or raw == "":
            continue
        data.setdefault(section, {})[field_name] = _convert(env_var, raw, kind)
        sources[(section, field_name)] = (env_var, raw)
        logger.debug(f"⚙️ Config override from {env_var}")

    try:
        return Config.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        loc = tuple(str(part) for part in first["loc"])
        env_var, raw = sources.get(loc[:2], (".".join(loc), None))
        raise InvalidConfigError(env_var, raw, first["msg"]) from e


_config: Config | None = None


def get_config() -> Config:
    """Get the process default configuration (loaded once)."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset the cached configuration."""
    global _config
    _config = None
