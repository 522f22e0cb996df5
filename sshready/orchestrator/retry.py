"""
SSHReady Orchestrator - Bounded retry loop.

Drives DiagnosticsEngine and CredentialResolutionFlow for one target:
at most max_attempts diagnose calls, operator confirmation between retries
when interactive, a fixed pause when not. A refused port still asks
for confirmation when interactive; a host that does not resolve ends the
target at once.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import replace

from loguru import logger

from sshready.core.types import (
    AuthMethod,
    CredentialType,
    ErrorCategory,
    FlowState,
    Outcome,
    PrimaryIssue,
)
from sshready.credentials.cache import SessionCredentialCache
from sshready.credentials.flow import (
    CANCELLED_MESSAGE,
    CredentialResolutionFlow,
    FlowDecision,
    PromptCollaborator,
)
from sshready.diagnostics.engine import DiagnosticsEngine
from sshready.diagnostics.models import ConnectionDiagnostics, ConnectionTarget
from sshready.orchestrator.models import (
    AttemptResult,
    FatalOutcome,
    PersistenceCollaborator,
    RetryPolicy,
)
from sshready.ssh.authenticator import AuthResult, Credential


class RetryOrchestrator:
    """
    Resolve connection targets.

    Args:
        engine: Diagnostics engine (sharing the same cache)
        cache: Session credential cache
        persistence: Optional collaborator told about the credential that worked
        sleep: Awaitable sleep used for non-interactive backoff
    """

    def __init__(
        self,
        engine: DiagnosticsEngine,
        cache: SessionCredentialCache,
        persistence: PersistenceCollaborator | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.engine = engine
        self.cache = cache
        self.persistence = persistence
        self._sleep = sleep

    # =========================================================================
    # Public API
    # =========================================================================

    async def attempt(
        self,
        target: ConnectionTarget,
        prompt: PromptCollaborator | None = None,
        policy: RetryPolicy | None = None,
        credential: Credential | None = None,
    ) -> AttemptResult:
        """
        Resolve one target.

        Args:
            target: Connection target
            prompt: Prompt collaborator (ignored when the policy is non-interactive)
            policy: Retry policy (defaults to RetryPolicy())
            credential: Explicit credential for the first attempt

        Returns:
            AttemptResult. Probe failures never raise; exceptions from the
            prompt collaborator propagate.
        """
        policy = policy or RetryPolicy()
        flow = CredentialResolutionFlow(
            target,
            self.engine,
            self.cache,
            prompt=prompt if policy.interactive else None,
            interactive=policy.interactive,
            password_attempt_limit=policy.password_attempt_limit,
            suppress_debug_output=policy.suppress_debug_output,
        )

        diagnostics: ConnectionDiagnostics | None = None
        needs_confirmation = False
        attempts = 0

        while attempts < policy.max_attempts:
            if needs_confirmation:
                if policy.interactive:
                    if not await self._confirm_retry(policy, attempts + 1, diagnostics):
                        decision = FlowDecision(
                            state=FlowState.CANCELLED,
                            outcome=Outcome.CANCELLED_BY_USER,
                            message=CANCELLED_MESSAGE,
                        )
                        return self._failure(target, decision, attempts, diagnostics)
                elif policy.backoff_seconds > 0:
                    logger.info(
                        f"🔄 {target.label}: retrying in {policy.backoff_seconds:g}s "
                        f"(attempt {attempts + 1}/{policy.max_attempts})"
                    )
                    await self._sleep(policy.backoff_seconds)

            attempts += 1
            flow.begin_attempt()
            diagnostics = await self.engine.diagnose(
                target,
                suppress_debug_output=policy.suppress_debug_output,
                credential=credential,
            )
            decision = await flow.resolve(diagnostics)

            if decision.state == FlowState.SUCCEEDED:
                return await self._success(target, decision, attempts, diagnostics, credential)

            if decision.state in (FlowState.NETWORK_FAILED, FlowState.PORT_FAILED):
                detail = diagnostics.connectivity.detail or diagnostics.auth_result.detail
                if detail is not None and not detail.is_retryable and not (
                    policy.interactive and detail.category == ErrorCategory.PORT
                ):
                    logger.info(f"❌ {target.label}: {detail.code} is not retryable")
                    return self._failure(target, decision, attempts, diagnostics)
                needs_confirmation = True
                continue

            if decision.state == FlowState.PROBING:
                if decision.credential is not None:
                    credential = decision.credential
                needs_confirmation = True
                continue

            # AUTH_FAILED, EXHAUSTED (password limit), CANCELLED
            return self._failure(target, decision, attempts, diagnostics)

        decision = flow.exhaust(attempts)
        if diagnostics is not None:
            decision.suggestions = list(diagnostics.suggestions)
        logger.warning(f"⚠️ {target.label}: {decision.message}")
        return self._failure(target, decision, attempts, diagnostics)

    async def attempt_many(
        self,
        targets: Iterable[ConnectionTarget],
        prompt: PromptCollaborator | None = None,
        policy: RetryPolicy | None = None,
    ) -> list[AttemptResult]:
        """Resolve targets strictly one after another."""
        results = []
        for target in targets:
            logger.info(f"🌐 Processing {target.label}")
            result = await self.attempt(target, prompt, policy)
            results.append(result)
            if result.success:
                logger.info(f"✅ {target.label} ready")
            else:
                logger.info(f"❌ {target.label}: {result.error_message}")
        return results

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _confirm_retry(
        self, policy: RetryPolicy, attempt: int, diagnostics: ConnectionDiagnostics | None
    ) -> bool:
        if policy.on_retry_decision is None:
            return True
        answer = policy.on_retry_decision(attempt, policy.max_attempts, diagnostics)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    def _failure(
        self,
        target: ConnectionTarget,
        decision: FlowDecision,
        attempts: int,
        diagnostics: ConnectionDiagnostics | None,
    ) -> AttemptResult:
        outcome = decision.outcome or Outcome.EXHAUSTED
        message = decision.message or (diagnostics.detailed_message if diagnostics else "")
        return AttemptResult(
            target=target,
            success=False,
            outcome=outcome,
            attempts=attempts,
            diagnostics=diagnostics,
            error_message=message,
            suggestions=list(decision.suggestions),
            fatal=FatalOutcome.for_outcome(outcome, message),
        )

    async def _success(
        self,
        target: ConnectionTarget,
        decision: FlowDecision,
        attempts: int,
        diagnostics: ConnectionDiagnostics,
        explicit: Credential | None,
    ) -> AttemptResult:
        auth_result = decision.auth_result or diagnostics.auth_result
        if not diagnostics.overall_success:
            # Verified by the flow after the diagnose call failed authentication
            diagnostics = replace(
                diagnostics,
                auth_result=auth_result,
                overall_success=True,
                primary_issue=PrimaryIssue.NONE,
                detailed_message=auth_result.message,
                suggestions=[],
            )
        if decision.credential is not None:
            auth_type, auth_value = decision.credential.type.value, decision.credential.value
        else:
            auth_type, auth_value = self._credential_used(target, auth_result, explicit)

        # Promote what worked so later attempts in this run skip the search
        if auth_type in (CredentialType.PASSWORD.value, CredentialType.KEY.value) and auth_value:
            self.cache.store(target.host, target.user, auth_type, auth_value)

        await self._persist(target, auth_type, auth_value)
        logger.info(f"✅ {target.label}: connected via {auth_type} after {attempts} attempt(s)")
        return AttemptResult(
            target=target,
            success=True,
            outcome=Outcome.SUCCEEDED,
            attempts=attempts,
            diagnostics=diagnostics,
            auth_type=auth_type,
            auth_value=auth_value,
        )

    def _credential_used(
        self, target: ConnectionTarget, auth_result: AuthResult, explicit: Credential | None
    ) -> tuple[str, str | None]:
        if auth_result.method == AuthMethod.AGENT:
            return AuthMethod.AGENT.value, None
        if auth_result.method == AuthMethod.KEY:
            return CredentialType.KEY.value, auth_result.key_path
        if auth_result.method == AuthMethod.PASSWORD:
            if explicit is not None and explicit.type == CredentialType.PASSWORD:
                return CredentialType.PASSWORD.value, explicit.value
            cached = self.cache.get(target.host, target.user)
            if cached is not None and cached.type == CredentialType.PASSWORD:
                return CredentialType.PASSWORD.value, cached.value
        return auth_result.method.value, None

    async def _persist(self, target: ConnectionTarget, auth_type: str, auth_value: str | None) -> None:
        if self.persistence is None:
            return
        try:
            result = self.persistence.persist(target.host, target.user, auth_type, auth_value)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.warning(f"⚠️ Could not save connection info for {target.label}: {e}")
