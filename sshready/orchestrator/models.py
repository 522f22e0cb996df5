"""
SSHReady Orchestrator - Policy and result records.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from sshready.config.constants import (
    DEFAULT_MAX_ATTEMPTS,
    EXIT_CANCELLED,
    EXIT_FAILURE,
    NON_INTERACTIVE_BACKOFF_SECONDS,
    PASSWORD_ATTEMPT_LIMIT,
)
from sshready.config.models import RetryConfig
from sshready.core.exceptions import ValidationError
from sshready.core.types import Outcome
from sshready.diagnostics.models import ConnectionDiagnostics, ConnectionTarget

# (attempt about to start, max attempts, last diagnostics) -> retry?
RetryDecision = Callable[[int, int, ConnectionDiagnostics | None], bool | Awaitable[bool]]


@runtime_checkable
class PersistenceCollaborator(Protocol):
    """Receives the credential that worked. May be sync or async."""

    def persist(self, host: str, user: str, auth_type: str, auth_value: str | None) -> Any:
        ...


@dataclass(frozen=True)
class RetryPolicy:
    """How hard to try, and whether an operator is present."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    interactive: bool = True
    on_retry_decision: RetryDecision | None = None
    backoff_seconds: float = NON_INTERACTIVE_BACKOFF_SECONDS
    password_attempt_limit: int = PASSWORD_ATTEMPT_LIMIT
    suppress_debug_output: bool = False

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValidationError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.password_attempt_limit < 1:
            raise ValidationError(
                f"password_attempt_limit must be >= 1, got {self.password_attempt_limit}"
            )
        if self.backoff_seconds < 0:
            raise ValidationError(f"backoff_seconds must be >= 0, got {self.backoff_seconds}")

    @classmethod
    def from_config(cls, config: RetryConfig, **overrides: Any) -> RetryPolicy:
        values = {
            "max_attempts": config.max_attempts,
            "interactive": config.interactive,
            "backoff_seconds": config.backoff_seconds,
            "password_attempt_limit": config.password_attempt_limit,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass(frozen=True)
class FatalOutcome:
    """A failure the caller may choose to end the process on. Never acted on here."""

    outcome: Outcome
    message: str
    exit_code: int = EXIT_FAILURE

    @classmethod
    def for_outcome(cls, outcome: Outcome, message: str) -> FatalOutcome:
        code = EXIT_CANCELLED if outcome == Outcome.CANCELLED_BY_USER else EXIT_FAILURE
        return cls(outcome=outcome, message=message, exit_code=code)


@dataclass
class AttemptResult:
    """Final result of resolving one target."""

    target: ConnectionTarget
    success: bool
    outcome: Outcome
    attempts: int
    diagnostics: ConnectionDiagnostics | None = None
    error_message: str | None = None
    suggestions: list[str] = field(default_factory=list)
    auth_type: str | None = None
    auth_value: str | None = None
    fatal: FatalOutcome | None = None

    def __repr__(self) -> str:
        shown = "***" if self.auth_type == "password" else self.auth_value
        return (
            f"AttemptResult(target={self.target.label!r}, success={self.success}, "
            f"outcome={self.outcome.value!r}, attempts={self.attempts}, "
            f"auth_type={self.auth_type!r}, auth_value={shown!r})"
        )
