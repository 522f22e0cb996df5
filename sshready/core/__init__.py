"""
SSHReady Core - Exceptions, shared types and logging setup.
"""
from sshready.core.exceptions import (
    ConfigurationError,
    CredentialError,
    InvalidConfigError,
    InvalidTargetError,
    ProbeError,
    PromptError,
    SSHClientUnavailableError,
    SSHReadyError,
    ValidationError,
)
from sshready.core.types import (
    AuthFailure,
    AuthMethod,
    CheckStatus,
    CredentialType,
    ErrorCategory,
    FlowState,
    HealthCheck,
    Outcome,
    PrimaryIssue,
    PromptKind,
    StrategyKind,
)

__all__ = [
    # Exceptions
    "ConfigurationError",
    "CredentialError",
    "InvalidConfigError",
    "InvalidTargetError",
    "ProbeError",
    "PromptError",
    "SSHClientUnavailableError",
    "SSHReadyError",
    "ValidationError",
    # Types
    "AuthFailure",
    "AuthMethod",
    "CheckStatus",
    "CredentialType",
    "ErrorCategory",
    "FlowState",
    "HealthCheck",
    "Outcome",
    "PrimaryIssue",
    "PromptKind",
    "StrategyKind",
]
