"""
SSHReady Diagnostics - Staged connection diagnosis.

DNS -> TCP port -> authentication, stopping at the first failing stage.
Later stages keep their not-tested sentinels.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from sshready.config.models import ProbeConfig
from sshready.core.types import AuthFailure, AuthMethod, ErrorCategory, PrimaryIssue
from sshready.diagnostics.models import ConnectionDiagnostics, ConnectionTarget
from sshready.network.errors import ErrorClassifier, NetworkErrorDetail, format_detail
from sshready.network.probe import ConnectivityProbe, ConnectivityResult
from sshready.ssh.auth_probe import AuthMethodProbe, AuthStrategy
from sshready.ssh.authenticator import Authenticator, AuthResult, Credential
from sshready.ssh.keys import KeyLocator

if TYPE_CHECKING:
    from sshready.credentials.cache import SessionCredentialCache

# Failures that no other credential can fix
_CONCLUSIVE_FAILURES = (
    AuthFailure.PASSWORD_INCORRECT,
    AuthFailure.PASSWORD_DISABLED,
    AuthFailure.HOST_KEY_MISMATCH,
    AuthFailure.CLIENT_UNAVAILABLE,
)

# Failures that end the key scan
_ABORT_FAILURES = (AuthFailure.HOST_KEY_MISMATCH, AuthFailure.CLIENT_UNAVAILABLE)

# Cached credentials that failed this way are evicted
_STALE_CACHE_FAILURES = (
    AuthFailure.PASSWORD_INCORRECT,
    AuthFailure.KEY_NOT_FOUND,
    AuthFailure.KEY_REJECTED,
    AuthFailure.KEY_FORMAT,
)


class DiagnosticsEngine:
    """
    Diagnose a connection target.

    Example:
        >>> engine = DiagnosticsEngine(cache=SessionCredentialCache())
        >>> diagnostics = await engine.diagnose(ConnectionTarget("db1", "deploy"))
        >>> diagnostics.primary_issue
        <PrimaryIssue.NONE: 'none'>
    """

    def __init__(
        self,
        connectivity: ConnectivityProbe | None = None,
        auth_probe: AuthMethodProbe | None = None,
        authenticator: Authenticator | None = None,
        key_locator: KeyLocator | None = None,
        cache: SessionCredentialCache | None = None,
        config: ProbeConfig | None = None,
        use_agent: bool = True,
        environ: Mapping[str, str] | None = None,
    ):
        self.connectivity = connectivity or ConnectivityProbe()
        self.auth_probe = auth_probe or AuthMethodProbe()
        self.authenticator = authenticator or Authenticator()
        self.key_locator = key_locator or KeyLocator()
        self.cache = cache
        self.config = config or ProbeConfig()
        self.use_agent = use_agent
        self._environ = environ
        self._classifier = ErrorClassifier()

    # =========================================================================
    # Public API
    # =========================================================================

    async def diagnose(
        self,
        target: ConnectionTarget,
        *,
        suppress_debug_output: bool = False,
        credential: Credential | None = None,
    ) -> ConnectionDiagnostics:
        """
        Run all stages against a target.

        Args:
            target: Host, port and user
            suppress_debug_output: Drop ssh -v and log steps at TRACE
            credential: Explicit credential to try first

        Returns:
            ConnectionDiagnostics; never raises for probe failures
        """
        log = self._step_logger(suppress_debug_output)
        log(f"🔍 Diagnosing {target.label}")

        connectivity = await self.connectivity.probe(
            target.host, target.port, self.config.network_timeout_ms
        )
        if not connectivity.success:
            return self._network_failure(target, connectivity)

        auth_result, strategy = await self._authenticate_all(
            target, credential, verbose=not suppress_debug_output, log=log
        )

        if auth_result.success:
            log(f"✅ {target.label} ready ({auth_result.method.value})")
            return ConnectionDiagnostics(
                target=target,
                connectivity=connectivity,
                auth_result=auth_result,
                auth_strategy=strategy,
                overall_success=True,
                primary_issue=PrimaryIssue.NONE,
                detailed_message=auth_result.message,
            )

        if auth_result.network_failure:
            detail = auth_result.detail
            issue = PrimaryIssue.PORT if detail.category == ErrorCategory.PORT else PrimaryIssue.NETWORK
            return ConnectionDiagnostics(
                target=target,
                connectivity=connectivity,
                auth_result=auth_result,
                auth_strategy=strategy,
                primary_issue=issue,
                detailed_message=format_detail(detail, "Connection"),
                suggestions=list(detail.suggestions),
            )

        detail = self._auth_detail(auth_result)
        logger.info(f"❌ Authentication failed for {target.label}: {auth_result.message}")
        return ConnectionDiagnostics(
            target=target,
            connectivity=connectivity,
            auth_result=auth_result,
            auth_strategy=strategy,
            primary_issue=PrimaryIssue.AUTHENTICATION,
            detailed_message=format_detail(detail, "SSH authentication"),
            suggestions=list(detail.suggestions),
        )

    async def authenticate(
        self,
        target: ConnectionTarget,
        credential: Credential,
        *,
        suppress_debug_output: bool = False,
    ) -> AuthResult:
        """
        Try exactly one credential, skipping the network stages.

        Used to verify a freshly typed credential.
        """
        self._step_logger(suppress_debug_output)(
            f"🔑 Verifying {credential.type.value} credential for {target.label}"
        )
        return await self.authenticator.try_credential(
            target.host, target.port, target.user, credential,
            self.config.auth_timeout_ms, verbose=not suppress_debug_output,
        )

    # =========================================================================
    # Stages
    # =========================================================================

    def _network_failure(
        self, target: ConnectionTarget, connectivity: ConnectivityResult
    ) -> ConnectionDiagnostics:
        detail = connectivity.detail or self._classifier.classify(None)
        if not connectivity.dns_ok:
            issue, context = PrimaryIssue.NETWORK, "DNS resolution"
        elif detail.category == ErrorCategory.NETWORK:
            issue, context = PrimaryIssue.NETWORK, "Network check"
        else:
            issue, context = PrimaryIssue.PORT, f"Port {target.port} check"

        logger.info(f"❌ {target.label}: {issue.value} issue ({detail.code})")
        return ConnectionDiagnostics(
            target=target,
            connectivity=connectivity,
            primary_issue=issue,
            detailed_message=format_detail(detail, context),
            suggestions=list(detail.suggestions),
        )

    async def _authenticate_all(
        self,
        target: ConnectionTarget,
        credential: Credential | None,
        verbose: bool,
        log: Callable[[str], None],
    ) -> tuple[AuthResult, AuthStrategy | None]:
        """Explicit credential, cached credential, detection, agent, local keys."""
        host, port, user = target.host, target.port, target.user
        timeout = self.config.auth_timeout_ms
        last: AuthResult | None = None

        # 1. Explicit credential
        if credential is not None:
            last = await self.authenticator.try_credential(host, port, user, credential, timeout, verbose)
            if last.success or last.network_failure or last.failure in _CONCLUSIVE_FAILURES:
                return last, None

        # 2. Cached credential
        cached = self.cache.get(host, user) if self.cache is not None else None
        if cached is not None and (credential is None or cached.value != credential.value):
            log(f"🔐 Trying cached {cached.type.value} credential for {target.label}")
            result = await self.authenticator.try_credential(
                host, port, user, Credential(cached.type, cached.value), timeout, verbose
            )
            if result.success or result.network_failure:
                return result, None
            if result.failure in _STALE_CACHE_FAILURES:
                # Stale entries say nothing about the server: keep searching
                logger.debug(f"🧹 Evicting stale cached credential for {target.label}")
                self.cache.clear(host, user)
            else:
                last = result

        # 3. Method detection
        keys = self.key_locator.find_keys()
        strategy = await self.auth_probe.detect(
            host, port, user, self.config.method_probe_timeout_ms, has_local_keys=bool(keys)
        )
        log(f"🔍 {target.label}: {strategy.strategy.value}")

        if last is not None and last.failure in _CONCLUSIVE_FAILURES:
            return last, strategy

        # The operator's own credential failed: don't fall back to other keys
        if credential is None and strategy.allows_publickey:
            # 4. ssh agent
            if self.use_agent and self._agent_available():
                log(f"🔑 Trying ssh agent for {target.label}")
                result = await self.authenticator.try_agent(host, port, user, timeout, verbose)
                if result.success or result.network_failure or result.failure in _ABORT_FAILURES:
                    return result, strategy
                last = result

            # 5. Local keys
            result = await self._try_keys(target, keys, strategy, verbose, log)
            if result is not None:
                if result.success or result.network_failure or result.failure in _ABORT_FAILURES:
                    return result, strategy
                last = result

        return self._password_capability(last, strategy), strategy

    async def _try_keys(
        self,
        target: ConnectionTarget,
        keys: list[Path],
        strategy: AuthStrategy,
        verbose: bool,
        log: Callable[[str], None],
    ) -> AuthResult | None:
        last: AuthResult | None = None
        for i, key in enumerate(keys, 1):
            log(f"🔑 Testing SSH key {i}/{len(keys)}: {key}")
            result = await self.authenticator.try_key(
                target.host, target.port, target.user, key, self.config.auth_timeout_ms, verbose
            )
            if result.success or result.network_failure:
                return result
            last = result

            if result.failure in _ABORT_FAILURES:
                break
            if result.failure == AuthFailure.KEY_NOT_FOUND:
                break
            if result.failure == AuthFailure.KEY_REJECTED:
                allowed = result.allowed_methods
                if (allowed and "publickey" not in allowed) or not strategy.allows_publickey:
                    break
            # KEY_FORMAT and plain rejections: try the next key
        return last

    def _password_capability(
        self, last: AuthResult | None, strategy: AuthStrategy
    ) -> AuthResult:
        """Turn the last failure into a password-required or password-disabled result."""
        if last is not None and last.failure in _CONCLUSIVE_FAILURES:
            return last

        method = last.method if last is not None else AuthMethod.NONE
        key_path = last.key_path if last is not None else None
        allowed = last.allowed_methods if last is not None else strategy.supported_methods
        reason = last.message if last is not None else "No usable SSH key found"

        if strategy.allows_password:
            return AuthResult(
                tested=True,
                success=False,
                method=method,
                key_path=key_path,
                message=f"{reason}; password authentication required",
                failure=last.failure if last is not None else None,
                password_supported=True,
                allowed_methods=allowed,
                detail=last.detail if last is not None else None,
            )

        return AuthResult(
            tested=True,
            success=False,
            method=method,
            key_path=key_path,
            message=f"{reason}; password authentication is disabled on the server",
            failure=AuthFailure.PASSWORD_DISABLED,
            password_supported=False,
            allowed_methods=allowed,
            detail=last.detail if last is not None else None,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _auth_detail(self, auth_result: AuthResult) -> NetworkErrorDetail:
        base = auth_result.detail
        if base is None or base.category != ErrorCategory.AUTHENTICATION:
            base = self._classifier.classify_ssh("Authentication failed", auth_failure=auth_result.failure)
        return replace(base, message=auth_result.message, auth_failure=auth_result.failure)

    def _agent_available(self) -> bool:
        environ = self._environ if self._environ is not None else os.environ
        return bool(environ.get("SSH_AUTH_SOCK"))

    @staticmethod
    def _step_logger(suppress: bool) -> Callable[[str], None]:
        return logger.trace if suppress else logger.debug
