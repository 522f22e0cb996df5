"""
SSHReady Core - Shared types and enums.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ErrorCategory(StrEnum):
    """Category of a classified connection error."""

    DNS = "dns"
    PORT = "port"
    TIMEOUT = "timeout"
    NETWORK = "network"
    AUTHENTICATION = "authentication"  # Only produced by SSH classification
    UNKNOWN = "unknown"


class AuthFailure(StrEnum):
    """Subdivision of authentication failures."""

    KEY_FORMAT = "key-format"
    KEY_NOT_FOUND = "key-not-found"
    KEY_REJECTED = "key-rejected"
    PASSWORD_INCORRECT = "password-incorrect"
    PASSWORD_DISABLED = "password-disabled-on-server"
    HOST_KEY_MISMATCH = "host-key-mismatch"
    CLIENT_UNAVAILABLE = "client-unavailable"


class StrategyKind(StrEnum):
    """Authentication strategy inferred from the server's method list."""

    PASSWORD_ONLY = "password-only"
    KEY_ONLY = "key-only"
    MULTIPLE_METHODS = "multiple-methods"
    UNKNOWN = "unknown"


class PrimaryIssue(StrEnum):
    """First diagnostic stage that failed."""

    NONE = "none"
    NETWORK = "network"
    PORT = "port"
    AUTHENTICATION = "authentication"


class CredentialType(StrEnum):
    """Credential kinds a user can supply."""

    KEY = "key"
    PASSWORD = "password"


class AuthMethod(StrEnum):
    """Method recorded on an authentication result."""

    KEY = "key"
    PASSWORD = "password"
    AGENT = "agent"
    NONE = "none"
    NOT_TESTED = "not-tested"


class FlowState(StrEnum):
    """States of the credential resolution flow."""

    INIT = "init"
    PROBING = "probing"
    NETWORK_FAILED = "network-failed"
    PORT_FAILED = "port-failed"
    AUTH_FAILED = "auth-failed"
    AWAITING_CREDENTIAL = "awaiting-credential"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


class Outcome(StrEnum):
    """Terminal outcome of a retry orchestration."""

    SUCCEEDED = "succeeded"
    NETWORK_FAILED = "network-failed"
    PORT_FAILED = "port-failed"
    AUTH_FAILED = "auth-failed"
    EXHAUSTED = "exhausted"
    PASSWORD_ATTEMPTS_EXCEEDED = "password-attempts-exceeded"
    CANCELLED_BY_USER = "cancelled-by-user"


class PromptKind(StrEnum):
    """What the prompt collaborator is being asked for."""

    METHOD_CHOICE = "method-choice"
    PASSWORD = "password"
    KEY_PATH = "key-path"


class CheckStatus(StrEnum):
    """Health check status."""

    OK = "ok"
    WARNING = "warning"
    ERROR = "error"
    DISABLED = "disabled"


@dataclass
class HealthCheck:
    """Result of a health check."""

    name: str
    status: CheckStatus
    message: str
    critical: bool = False
    details: dict[str, Any] = field(default_factory=dict)
