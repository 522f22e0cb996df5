"""
SSHReady Config - Configuration models.

Pydantic models for type-safe configuration.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from sshready.config.constants import (
    AUTH_METHOD_PROBE_TIMEOUT_MS,
    AUTH_TIMEOUT_MS,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_SSH_BINARY,
    DEFAULT_SSHPASS_BINARY,
    NETWORK_CHECK_TIMEOUT_MS,
    NON_INTERACTIVE_BACKOFF_SECONDS,
    PASSWORD_ATTEMPT_LIMIT,
)


class ProbeConfig(BaseModel):
    """Timeouts for the diagnostic stages."""

    network_timeout_ms: int = Field(
        default=NETWORK_CHECK_TIMEOUT_MS, ge=100, le=120_000, description="DNS and TCP timeout"
    )
    method_probe_timeout_ms: int = Field(
        default=AUTH_METHOD_PROBE_TIMEOUT_MS, ge=1_000, le=120_000,
        description="Auth method enumeration timeout",
    )
    auth_timeout_ms: int = Field(
        default=AUTH_TIMEOUT_MS, ge=1_000, le=300_000, description="Full authentication timeout"
    )


class RetryConfig(BaseModel):
    """Retry loop settings."""

    max_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=1, le=20, description="Outer attempts")
    interactive: bool = Field(default=True, description="Allow prompting the operator")
    backoff_seconds: float = Field(
        default=NON_INTERACTIVE_BACKOFF_SECONDS, ge=0, le=300,
        description="Pause between non-interactive attempts",
    )
    password_attempt_limit: int = Field(
        default=PASSWORD_ATTEMPT_LIMIT, ge=1, le=10, description="Password prompts per attempt"
    )


class CacheConfig(BaseModel):
    """Session credential cache settings."""

    ttl_seconds: int = Field(
        default=DEFAULT_CACHE_TTL_SECONDS, ge=1, le=24 * 3600, description="Credential lifetime"
    )


class SSHClientConfig(BaseModel):
    """System SSH client settings."""

    ssh_binary: str = Field(default=DEFAULT_SSH_BINARY, description="ssh executable")
    sshpass_binary: str = Field(default=DEFAULT_SSHPASS_BINARY, description="sshpass executable")
    strict_host_key_checking: Literal["yes", "no", "accept-new"] = Field(
        default="accept-new", description="StrictHostKeyChecking for real authentication"
    )
    ssh_dir: Path = Field(default=Path.home() / ".ssh", description="Directory scanned for keys")
    use_agent: bool = Field(default=True, description="Try the ssh agent when SSH_AUTH_SOCK is set")


class LoggingConfig(BaseModel):
    """Logging settings."""

    file_level: Literal["debug", "info", "warning", "error"] = Field(
        default="debug", description="File log level"
    )
    log_file: Path | None = Field(default=None, description="Optional log file")
    rotation: str = Field(default="10 MB", description="Loguru rotation spec")
    retention: str = Field(default="7 days", description="Loguru retention spec")


class Config(BaseModel):
    """Complete SSHReady configuration."""

    probe: ProbeConfig = Field(default_factory=ProbeConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    ssh: SSHClientConfig = Field(default_factory=SSHClientConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
