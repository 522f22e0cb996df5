"""
SSHReady SSH - Single-credential authentication attempts.

Each attempt runs the system client once and classifies the outcome into
the authentication taxonomy. Attempts never raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from sshready.config.constants import AUTH_TIMEOUT_MS
from sshready.core.exceptions import SSHClientUnavailableError
from sshready.core.types import AuthFailure, AuthMethod, CredentialType
from sshready.network.errors import ErrorClassifier, NetworkErrorDetail
from sshready.ssh.client import CommandResult, SystemSSHClient
from sshready.ssh.parsers import OpenSSHOutputParser, OutputParser

_PASSWORD_METHODS = ("password", "keyboard-interactive")


@dataclass(frozen=True)
class AuthResult:
    """Outcome of the authentication stage."""

    tested: bool
    success: bool
    method: AuthMethod
    message: str
    key_path: str | None = None
    failure: AuthFailure | None = None
    password_supported: bool = False
    allowed_methods: tuple[str, ...] = ()
    detail: NetworkErrorDetail | None = None

    @classmethod
    def not_tested(cls) -> AuthResult:
        """Sentinel for a stage that never ran."""
        return cls(tested=False, success=False, method=AuthMethod.NOT_TESTED, message="Not tested")

    @property
    def network_failure(self) -> bool:
        """True when the attempt failed before the server could judge the credential."""
        return not self.success and self.failure is None and self.detail is not None


@dataclass(frozen=True)
class Credential:
    """A credential supplied by the caller, the cache or the operator."""

    type: CredentialType
    value: str

    def __repr__(self) -> str:
        shown = self.value if self.type == CredentialType.KEY else "***"
        return f"Credential(type={self.type.value!r}, value={shown!r})"


class Authenticator:
    """Try one credential at a time against a server."""

    def __init__(
        self,
        client: SystemSSHClient | None = None,
        parser: OutputParser | None = None,
        classifier: ErrorClassifier | None = None,
    ):
        self.client = client or SystemSSHClient()
        self.parser = parser or OpenSSHOutputParser()
        self.classifier = classifier or ErrorClassifier(self.parser)

    # =========================================================================
    # Public attempts
    # =========================================================================

    async def try_key(
        self,
        host: str,
        port: int,
        user: str,
        key_path: str | Path,
        timeout_ms: int = AUTH_TIMEOUT_MS,
        verbose: bool = True,
    ) -> AuthResult:
        """Authenticate with one private key file."""
        key = str(key_path)
        argv = self.client.key_command(host, port, user, key, timeout_ms, verbose)
        result = await self._run(argv, timeout_ms, AuthMethod.KEY)
        if isinstance(result, AuthResult):
            return result
        return self._interpret_key(result, AuthMethod.KEY, key, timeout_ms)

    async def try_agent(
        self,
        host: str,
        port: int,
        user: str,
        timeout_ms: int = AUTH_TIMEOUT_MS,
        verbose: bool = True,
    ) -> AuthResult:
        """Authenticate with whatever the ssh agent offers."""
        argv = self.client.key_command(host, port, user, None, timeout_ms, verbose)
        result = await self._run(argv, timeout_ms, AuthMethod.AGENT)
        if isinstance(result, AuthResult):
            return result
        return self._interpret_key(result, AuthMethod.AGENT, None, timeout_ms)

    async def try_password(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        timeout_ms: int = AUTH_TIMEOUT_MS,
        verbose: bool = True,
    ) -> AuthResult:
        """Authenticate with a password through sshpass."""
        argv = self.client.password_command(host, port, user, timeout_ms, verbose)
        result = await self._run(argv, timeout_ms, AuthMethod.PASSWORD, password=password)
        if isinstance(result, AuthResult):
            return result
        return self._interpret_password(result, timeout_ms)

    async def try_credential(
        self,
        host: str,
        port: int,
        user: str,
        credential: Credential,
        timeout_ms: int = AUTH_TIMEOUT_MS,
        verbose: bool = True,
    ) -> AuthResult:
        """Dispatch to try_key or try_password."""
        if credential.type == CredentialType.PASSWORD:
            return await self.try_password(host, port, user, credential.value, timeout_ms, verbose)
        return await self.try_key(
            host, port, user, Path(credential.value).expanduser(), timeout_ms, verbose
        )

    # =========================================================================
    # Interpretation
    # =========================================================================

    async def _run(
        self, argv: list[str], timeout_ms: int, method: AuthMethod, password: str | None = None
    ) -> CommandResult | AuthResult:
        try:
            return await self.client.run(argv, timeout_ms, password=password)
        except SSHClientUnavailableError as e:
            logger.warning(f"⚠️ {e.message}")
            return AuthResult(
                tested=True,
                success=False,
                method=method,
                message=f"{e.binary} is required for {method.value} authentication but was not found",
                failure=AuthFailure.CLIENT_UNAVAILABLE,
                password_supported=method == AuthMethod.PASSWORD,
            )

    def _timed_out(self, method: AuthMethod, key_path: str | None, timeout_ms: int) -> AuthResult:
        detail = self.classifier.classify(
            {"code": "ETIMEDOUT", "message": f"Authentication timed out after {timeout_ms}ms"}
        )
        return AuthResult(
            tested=True, success=False, method=method, key_path=key_path,
            message=f"Authentication timed out after {timeout_ms}ms", detail=detail,
        )

    def _network(self, method: AuthMethod, key_path: str | None, stderr: str) -> AuthResult | None:
        if self.parser.network_error_code(stderr) is None:
            return None
        detail = self.classifier.classify_ssh(stderr)
        return AuthResult(
            tested=True, success=False, method=method, key_path=key_path,
            message=detail.message, detail=detail,
        )

    def _interpret_key(
        self, result: CommandResult, method: AuthMethod, key_path: str | None, timeout_ms: int
    ) -> AuthResult:
        label = f"SSH key {key_path}" if key_path else "ssh agent"
        if result.timed_out:
            return self._timed_out(method, key_path, timeout_ms)
        if result.ok:
            logger.debug(f"✅ Authenticated with {label}")
            return AuthResult(
                tested=True, success=True, method=method, key_path=key_path,
                message=f"Authenticated with {label}",
            )

        stderr = result.stderr
        network = self._network(method, key_path, stderr)
        if network is not None:
            return network

        denied = tuple(self.parser.parse_denied_methods(stderr))
        password_supported = any(m in denied for m in _PASSWORD_METHODS)

        if self.parser.is_host_key_failure(stderr):
            failure, message = (
                AuthFailure.HOST_KEY_MISMATCH,
                "Host key verification failed. Try adding the host to known_hosts.",
            )
        elif key_path and self.parser.is_key_missing(stderr, key_path):
            failure, message = AuthFailure.KEY_NOT_FOUND, f"SSH key not found: {key_path}"
        elif self.parser.is_key_unusable(stderr):
            failure, message = (
                AuthFailure.KEY_FORMAT,
                f"{label} has an invalid format or bad permissions",
            )
        else:
            failure, message = AuthFailure.KEY_REJECTED, f"{label} was rejected by the server"

        logger.debug(f"🔑 {label}: {failure.value}")
        return AuthResult(
            tested=True, success=False, method=method, key_path=key_path, message=message,
            failure=failure, password_supported=password_supported, allowed_methods=denied,
            detail=self.classifier.classify_ssh(stderr, auth_failure=failure),
        )

    def _interpret_password(self, result: CommandResult, timeout_ms: int) -> AuthResult:
        if result.timed_out:
            return self._timed_out(AuthMethod.PASSWORD, None, timeout_ms)
        if result.ok:
            logger.debug("✅ Authenticated with password")
            return AuthResult(
                tested=True, success=True, method=AuthMethod.PASSWORD,
                message="Authenticated with password", password_supported=True,
            )

        stderr = result.stderr
        network = self._network(AuthMethod.PASSWORD, None, stderr)
        if network is not None:
            return network

        denied = tuple(self.parser.parse_denied_methods(stderr))

        if self.parser.is_host_key_failure(stderr):
            failure, message = (
                AuthFailure.HOST_KEY_MISMATCH,
                "Host key verification failed. Try adding the host to known_hosts.",
            )
        elif denied and not any(m in denied for m in _PASSWORD_METHODS):
            failure, message = (
                AuthFailure.PASSWORD_DISABLED,
                "Password authentication is disabled on the server",
            )
        else:
            failure, message = (
                AuthFailure.PASSWORD_INCORRECT,
                "Password authentication failed: incorrect password",
            )

        logger.debug(f"🔑 password: {failure.value} (exit {result.returncode})")
        return AuthResult(
            tested=True, success=False, method=AuthMethod.PASSWORD, message=message,
            failure=failure, password_supported=failure != AuthFailure.PASSWORD_DISABLED,
            allowed_methods=denied,
            detail=self.classifier.classify_ssh(stderr, auth_failure=failure),
        )
