"""
SSHReady Diagnostics - Records produced by a diagnostic run.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sshready.config.constants import DEFAULT_SSH_PORT
from sshready.core.exceptions import InvalidTargetError
from sshready.core.types import PrimaryIssue
from sshready.network.probe import ConnectivityResult
from sshready.ssh.auth_probe import AuthStrategy
from sshready.ssh.authenticator import AuthResult


@dataclass(frozen=True)
class ConnectionTarget:
    """Where to connect, and as whom."""

    host: str
    user: str
    port: int = DEFAULT_SSH_PORT

    def __post_init__(self) -> None:
        if not self.host or not self.host.strip():
            raise InvalidTargetError(self.label, "host must not be empty")
        if not self.user or not self.user.strip():
            raise InvalidTargetError(self.label, "user must not be empty")
        if not isinstance(self.port, int) or not 1 <= self.port <= 65535:
            raise InvalidTargetError(self.label, f"port must be 1-65535, got {self.port!r}")

    @property
    def label(self) -> str:
        return f"{self.user}@{self.host}:{self.port}"

    @classmethod
    def parse(cls, spec: str, default_user: str, default_port: int = DEFAULT_SSH_PORT) -> ConnectionTarget:
        """
        Parse ``[user@]host[:port]``.

        IPv6 literals must be bracketed when a port is given (``[::1]:2222``).
        """
        user = default_user
        rest = spec.strip()
        if "@" in rest:
            user, rest = rest.rsplit("@", 1)

        port = default_port
        if rest.startswith("["):
            host, _, tail = rest[1:].partition("]")
            if tail.startswith(":"):
                port = _parse_port(spec, tail[1:])
        elif rest.count(":") == 1:
            host, port_text = rest.split(":")
            port = _parse_port(spec, port_text)
        else:
            host = rest
        return cls(host=host, user=user, port=port)


def _parse_port(spec: str, text: str) -> int:
    try:
        return int(text)
    except ValueError as e:
        raise InvalidTargetError(spec, f"invalid port {text!r}") from e


@dataclass
class ConnectionDiagnostics:
    """Result of one diagnostic run over all stages."""

    target: ConnectionTarget
    connectivity: ConnectivityResult
    auth_result: AuthResult = field(default_factory=AuthResult.not_tested)
    auth_strategy: AuthStrategy | None = None
    overall_success: bool = False
    primary_issue: PrimaryIssue = PrimaryIssue.NONE
    detailed_message: str = ""
    suggestions: list[str] = field(default_factory=list)
