"""
SSHReady Credentials - Credential resolution flow.

Bounded state machine that turns one diagnostic result into a decision:
succeed, stop, hand a new credential back for another attempt, or ask the
operator for one.

    INIT -> PROBING -> {NETWORK_FAILED, PORT_FAILED, AUTH_FAILED, SUCCEEDED}
    AUTH_FAILED -> AWAITING_CREDENTIAL -> PROBING | SUCCEEDED | EXHAUSTED | CANCELLED
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from loguru import logger

from sshready.config.constants import DEFAULT_KEY_PATH_HINT, PASSWORD_ATTEMPT_LIMIT
from sshready.core.exceptions import PromptError, ValidationError
from sshready.core.types import (
    AuthFailure,
    CredentialType,
    FlowState,
    Outcome,
    PrimaryIssue,
    PromptKind,
    StrategyKind,
)
from sshready.credentials.cache import SessionCredentialCache
from sshready.diagnostics.engine import DiagnosticsEngine
from sshready.diagnostics.models import ConnectionDiagnostics, ConnectionTarget
from sshready.network.errors import SSH_AUTH_SUGGESTIONS, SSH_HOST_KEY_SUGGESTIONS
from sshready.ssh.auth_probe import AuthStrategy
from sshready.ssh.authenticator import AuthResult, Credential

NON_INTERACTIVE_AUTH_MESSAGE = (
    "Authentication failed and cannot prompt for credentials in non-interactive mode."
)
KEY_FAILURE_MESSAGE = "Connection failed with the provided SSH key."
CANCELLED_MESSAGE = "Connection process cancelled by user."
METHOD_CHOICES = ("password", "key")

# Which state follows PROBING for each primary issue
_FAILURE_STATES = {
    PrimaryIssue.NETWORK: FlowState.NETWORK_FAILED,
    PrimaryIssue.PORT: FlowState.PORT_FAILED,
    PrimaryIssue.AUTHENTICATION: FlowState.AUTH_FAILED,
}

_ALLOWED_TRANSITIONS: dict[FlowState, set[FlowState]] = {
    FlowState.INIT: {FlowState.PROBING},
    FlowState.PROBING: {
        FlowState.SUCCEEDED,
        FlowState.NETWORK_FAILED,
        FlowState.PORT_FAILED,
        FlowState.AUTH_FAILED,
        FlowState.EXHAUSTED,
    },
    FlowState.NETWORK_FAILED: {FlowState.PROBING, FlowState.EXHAUSTED},
    FlowState.PORT_FAILED: {FlowState.PROBING, FlowState.EXHAUSTED},
    FlowState.AUTH_FAILED: {FlowState.AWAITING_CREDENTIAL, FlowState.PROBING, FlowState.EXHAUSTED},
    FlowState.AWAITING_CREDENTIAL: {
        FlowState.PROBING,
        FlowState.SUCCEEDED,
        FlowState.AUTH_FAILED,
        FlowState.EXHAUSTED,
        FlowState.CANCELLED,
    },
    FlowState.SUCCEEDED: set(),
    FlowState.EXHAUSTED: set(),
    FlowState.CANCELLED: set(),
}


@dataclass(frozen=True)
class PromptContext:
    """What the operator is told when asked for a credential."""

    target: ConnectionTarget
    strategy: AuthStrategy | None = None
    attempt: int = 1
    max_attempts: int = 1
    message: str = ""
    default: str | None = None
    choices: tuple[str, ...] = ()


@runtime_checkable
class PromptCollaborator(Protocol):
    """Asks the operator for input. Returning None means the operator declined."""

    async def prompt(self, kind: PromptKind, context: PromptContext) -> str | None:
        ...


@dataclass
class FlowDecision:
    """What the orchestrator should do next."""

    state: FlowState
    message: str = ""
    suggestions: list[str] = field(default_factory=list)
    outcome: Outcome | None = None
    credential: Credential | None = None
    auth_result: AuthResult | None = None

    @property
    def retry(self) -> bool:
        """True when another diagnose call should follow."""
        return self.state == FlowState.PROBING


class CredentialResolutionFlow:
    """
    Decide what follows a diagnostic run for one target.

    Args:
        target: Connection target
        engine: Used to verify typed passwords without repeating network stages
        cache: Session cache; typed credentials are stored before verification
        prompt: Prompt collaborator (required when interactive)
        interactive: Whether prompting is allowed
        password_attempt_limit: Password prompts per authentication failure
        suppress_debug_output: Passed through to the engine
    """

    def __init__(
        self,
        target: ConnectionTarget,
        engine: DiagnosticsEngine,
        cache: SessionCredentialCache,
        prompt: PromptCollaborator | None = None,
        interactive: bool = True,
        password_attempt_limit: int = PASSWORD_ATTEMPT_LIMIT,
        suppress_debug_output: bool = False,
    ):
        self.target = target
        self.engine = engine
        self.cache = cache
        self.prompt = prompt
        self.interactive = interactive and prompt is not None
        self.password_attempt_limit = password_attempt_limit
        self.suppress_debug_output = suppress_debug_output
        self.state = FlowState.INIT
        self.history: list[FlowState] = [FlowState.INIT]
        self.prompts_issued = 0
        self._pending_key: Credential | None = None

    # =========================================================================
    # State handling
    # =========================================================================

    def _transition(self, new_state: FlowState) -> None:
        if new_state not in _ALLOWED_TRANSITIONS[self.state]:
            raise ValidationError(
                f"Invalid flow transition {self.state.value} -> {new_state.value}",
                {"target": self.target.label},
            )
        logger.trace(f"🔄 {self.target.label}: {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)

    @property
    def is_terminal(self) -> bool:
        return not _ALLOWED_TRANSITIONS[self.state]

    def begin_attempt(self) -> None:
        """Enter PROBING before a diagnose call."""
        if self.state != FlowState.PROBING:
            self._transition(FlowState.PROBING)

    def exhaust(self, attempts: int) -> FlowDecision:
        """Outer attempt limit reached."""
        self._transition(FlowState.EXHAUSTED)
        return FlowDecision(
            state=FlowState.EXHAUSTED,
            outcome=Outcome.EXHAUSTED,
            message=f"Connection failed after {attempts} attempts.",
        )

    # =========================================================================
    # Decisions
    # =========================================================================

    async def resolve(self, diagnostics: ConnectionDiagnostics) -> FlowDecision:
        """
        Consume one diagnostic result.

        Args:
            diagnostics: Result of the diagnose call made in PROBING

        Returns:
            FlowDecision
        """
        if diagnostics.overall_success:
            self._pending_key = None
            self._transition(FlowState.SUCCEEDED)
            return FlowDecision(
                state=FlowState.SUCCEEDED,
                outcome=Outcome.SUCCEEDED,
                message=diagnostics.detailed_message,
                auth_result=diagnostics.auth_result,
            )

        state = _FAILURE_STATES[diagnostics.primary_issue]
        self._transition(state)

        if state in (FlowState.NETWORK_FAILED, FlowState.PORT_FAILED):
            return FlowDecision(
                state=state,
                outcome=Outcome.NETWORK_FAILED if state == FlowState.NETWORK_FAILED else Outcome.PORT_FAILED,
                message=diagnostics.detailed_message,
                suggestions=list(diagnostics.suggestions),
            )

        if self._pending_key is not None:
            logger.info(f"❌ {self.target.label}: {KEY_FAILURE_MESSAGE}")
            self.cache.clear(self.target.host, self.target.user)
            self._pending_key = None

        auth = diagnostics.auth_result
        if auth.failure == AuthFailure.HOST_KEY_MISMATCH:
            return self._auth_failed(diagnostics.detailed_message, list(SSH_HOST_KEY_SUGGESTIONS))

        if not self.interactive:
            logger.info(f"❌ {self.target.label}: {NON_INTERACTIVE_AUTH_MESSAGE}")
            return self._auth_failed(NON_INTERACTIVE_AUTH_MESSAGE, list(diagnostics.suggestions))

        self._transition(FlowState.AWAITING_CREDENTIAL)
        return await self._await_credential(diagnostics)

    def _auth_failed(self, message: str, suggestions: list[str]) -> FlowDecision:
        return FlowDecision(
            state=FlowState.AUTH_FAILED,
            outcome=Outcome.AUTH_FAILED,
            message=message,
            suggestions=suggestions,
        )

    def _cancelled(self) -> FlowDecision:
        self._transition(FlowState.CANCELLED)
        logger.info(f"🛑 {self.target.label}: cancelled by user")
        return FlowDecision(
            state=FlowState.CANCELLED,
            outcome=Outcome.CANCELLED_BY_USER,
            message=CANCELLED_MESSAGE,
        )

    # =========================================================================
    # AWAITING_CREDENTIAL
    # =========================================================================

    async def _await_credential(self, diagnostics: ConnectionDiagnostics) -> FlowDecision:
        strategy = diagnostics.auth_strategy or AuthStrategy.unknown()
        auth = diagnostics.auth_result

        if auth.failure == AuthFailure.PASSWORD_DISABLED or strategy.strategy == StrategyKind.KEY_ONLY:
            kind = CredentialType.KEY
        elif strategy.strategy == StrategyKind.PASSWORD_ONLY:
            kind = CredentialType.PASSWORD
        else:
            choice = await self._ask(
                PromptKind.METHOD_CHOICE,
                PromptContext(
                    target=self.target,
                    strategy=strategy,
                    message=auth.message,
                    default=strategy.primary_method if strategy.primary_method in METHOD_CHOICES else "password",
                    choices=METHOD_CHOICES,
                ),
            )
            if choice is None:
                return self._cancelled()
            kind = _parse_choice(choice)

        if kind == CredentialType.KEY:
            return await self._ask_key(strategy, auth.message)
        return await self._ask_passwords(strategy, auth.message)

    async def _ask_key(self, strategy: AuthStrategy, message: str) -> FlowDecision:
        value = await self._ask(
            PromptKind.KEY_PATH,
            PromptContext(
                target=self.target, strategy=strategy, message=message, default=DEFAULT_KEY_PATH_HINT
            ),
        )
        if value is None or not value.strip():
            return self._cancelled()

        credential = Credential(CredentialType.KEY, value.strip())
        self.cache.store(self.target.host, self.target.user, CredentialType.KEY, credential.value)
        self._pending_key = credential
        self._transition(FlowState.PROBING)
        return FlowDecision(
            state=FlowState.PROBING,
            message=f"Retrying with SSH key {credential.value}",
            credential=credential,
        )

    async def _ask_passwords(self, strategy: AuthStrategy, message: str) -> FlowDecision:
        limit = self.password_attempt_limit
        host, user = self.target.host, self.target.user

        for attempt in range(1, limit + 1):
            value = await self._ask(
                PromptKind.PASSWORD,
                PromptContext(
                    target=self.target, strategy=strategy, attempt=attempt,
                    max_attempts=limit, message=message,
                ),
            )
            if not value:
                return self._cancelled()

            credential = Credential(CredentialType.PASSWORD, value)
            self.cache.store(host, user, CredentialType.PASSWORD, value)

            result = await self.engine.authenticate(
                self.target, credential, suppress_debug_output=self.suppress_debug_output
            )
            if result.success:
                logger.info(f"✅ {self.target.label}: password accepted")
                self._transition(FlowState.SUCCEEDED)
                return FlowDecision(
                    state=FlowState.SUCCEEDED,
                    outcome=Outcome.SUCCEEDED,
                    message=result.message,
                    credential=credential,
                    auth_result=result,
                )

            if result.network_failure:
                # Keep the cached password: the next full attempt will try it first
                logger.info(f"🌐 {self.target.label}: network failure while verifying password")
                self._transition(FlowState.PROBING)
                return FlowDecision(state=FlowState.PROBING, message=result.message)

            self.cache.clear(host, user)

            if result.failure == AuthFailure.PASSWORD_DISABLED:
                logger.info(f"🔑 {self.target.label}: server refuses passwords, asking for a key")
                return await self._ask_key(strategy, result.message)

            if result.failure in (AuthFailure.CLIENT_UNAVAILABLE, AuthFailure.HOST_KEY_MISMATCH):
                self._transition(FlowState.AUTH_FAILED)
                suggestions = (
                    SSH_HOST_KEY_SUGGESTIONS
                    if result.failure == AuthFailure.HOST_KEY_MISMATCH
                    else ("Install sshpass or use an SSH key",)
                )
                return self._auth_failed(result.message, list(suggestions))

            message = result.message
            logger.info(f"❌ {self.target.label}: password rejected ({attempt}/{limit})")

        self._transition(FlowState.EXHAUSTED)
        return FlowDecision(
            state=FlowState.EXHAUSTED,
            outcome=Outcome.PASSWORD_ATTEMPTS_EXCEEDED,
            message=f"Password authentication failed after {limit} attempts.",
            suggestions=list(SSH_AUTH_SUGGESTIONS),
        )

    async def _ask(self, kind: PromptKind, context: PromptContext) -> str | None:
        self.prompts_issued += 1
        try:
            return await self.prompt.prompt(kind, context)
        except Exception as e:
            raise PromptError(kind.value, e) from e


def _parse_choice(choice: str) -> CredentialType:
    normalized = choice.strip().lower()
    if normalized.startswith("pass"):
        return CredentialType.PASSWORD
    if "key" in normalized:
        return CredentialType.KEY
    raise ValidationError(f"Unrecognised authentication method: {choice!r}", {"choices": METHOD_CHOICES})
