"""
SSHReady SSH - Authentication method detection.

Asks the server which methods it accepts by connecting with
PreferredAuthentications=none, then reduces the list to a strategy.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from sshready.config.constants import AUTH_METHOD_PROBE_TIMEOUT_MS
from sshready.core.exceptions import SSHClientUnavailableError
from sshready.core.types import StrategyKind
from sshready.ssh.client import SystemSSHClient
from sshready.ssh.parsers import KNOWN_AUTH_METHODS, OpenSSHOutputParser, OutputParser


@dataclass(frozen=True)
class AuthStrategy:
    """How the server expects a client to authenticate."""

    strategy: StrategyKind
    primary_method: str
    fallback_methods: tuple[str, ...] = ()
    should_prompt_user: bool = True
    supported_methods: tuple[str, ...] = ()
    server_banner: str | None = None

    @property
    def allows_password(self) -> bool:
        """True if a password may work (unknown strategies included)."""
        if self.strategy == StrategyKind.UNKNOWN:
            return True
        return "password" in self.supported_methods or "keyboard-interactive" in self.supported_methods

    @property
    def allows_publickey(self) -> bool:
        if self.strategy == StrategyKind.UNKNOWN:
            return True
        return "publickey" in self.supported_methods

    @classmethod
    def unknown(cls, server_banner: str | None = None) -> AuthStrategy:
        return cls(
            strategy=StrategyKind.UNKNOWN,
            primary_method="publickey",
            fallback_methods=("password",),
            should_prompt_user=True,
            server_banner=server_banner,
        )


def determine_strategy(
    methods: list[str] | tuple[str, ...],
    has_local_keys: bool,
    server_banner: str | None = None,
) -> AuthStrategy:
    """
    Reduce the server's method list to a strategy.

    Args:
        methods: Methods reported by the server (unknown names are ignored)
        has_local_keys: Whether usable local keys exist
        server_banner: Remote software version, passed through

    Returns:
        AuthStrategy
    """
    supported = tuple(m for m in methods if m in KNOWN_AUTH_METHODS)
    if not supported:
        return AuthStrategy.unknown(server_banner)

    has_password = "password" in supported
    has_publickey = "publickey" in supported
    has_keyboard = "keyboard-interactive" in supported

    if has_password and not has_publickey and not has_keyboard:
        return AuthStrategy(
            strategy=StrategyKind.PASSWORD_ONLY,
            primary_method="password",
            should_prompt_user=True,
            supported_methods=supported,
            server_banner=server_banner,
        )

    if has_publickey and not has_password and not has_keyboard:
        return AuthStrategy(
            strategy=StrategyKind.KEY_ONLY,
            primary_method="publickey",
            should_prompt_user=not has_local_keys,
            supported_methods=supported,
            server_banner=server_banner,
        )

    if len(supported) > 1:
        primary = "publickey" if has_publickey else "password"
        return AuthStrategy(
            strategy=StrategyKind.MULTIPLE_METHODS,
            primary_method=primary,
            fallback_methods=tuple(m for m in supported if m != primary),
            should_prompt_user=not has_local_keys or not has_publickey,
            supported_methods=supported,
            server_banner=server_banner,
        )

    unknown = AuthStrategy.unknown(server_banner)
    return AuthStrategy(
        strategy=unknown.strategy,
        primary_method=unknown.primary_method,
        fallback_methods=unknown.fallback_methods,
        should_prompt_user=True,
        supported_methods=supported,
        server_banner=server_banner,
    )


def describe(strategy: AuthStrategy) -> str:
    """One-line description of a strategy."""
    if strategy.strategy == StrategyKind.PASSWORD_ONLY:
        return "Server requires password authentication"
    if strategy.strategy == StrategyKind.KEY_ONLY:
        return "Server requires SSH key authentication"
    if strategy.strategy == StrategyKind.MULTIPLE_METHODS:
        return f"Server supports multiple authentication methods (primary: {strategy.primary_method})"
    return "Authentication requirements unknown"


class AuthMethodProbe:
    """Detect the server's authentication methods. Never raises."""

    def __init__(
        self,
        client: SystemSSHClient | None = None,
        parser: OutputParser | None = None,
    ):
        self.client = client or SystemSSHClient()
        self.parser = parser or OpenSSHOutputParser()

    async def detect(
        self,
        host: str,
        port: int,
        user: str,
        timeout_ms: int = AUTH_METHOD_PROBE_TIMEOUT_MS,
        has_local_keys: bool = True,
    ) -> AuthStrategy:
        """
        Enumerate the server's methods and reduce them to a strategy.

        Args:
            host: Target host
            port: Target port
            user: Login user
            timeout_ms: Bound for the probe
            has_local_keys: Whether local keys exist

        Returns:
            AuthStrategy (unknown when the probe fails)
        """
        argv = self.client.method_probe_command(host, port, user, timeout_ms)
        try:
            result = await self.client.run(argv, timeout_ms)
        except SSHClientUnavailableError as e:
            logger.warning(f"⚠️ Auth method probe skipped: {e.message}")
            return AuthStrategy.unknown()
        except OSError as e:
            logger.warning(f"⚠️ Auth method probe failed to start: {e}")
            return AuthStrategy.unknown()

        if result.timed_out:
            logger.debug(f"⏱️ Auth method probe for {host}:{port} timed out")
            return AuthStrategy.unknown()

        output = result.output
        methods = self.parser.parse_auth_methods(output)
        banner = self.parser.parse_server_banner(output)
        strategy = determine_strategy(methods, has_local_keys, banner)
        logger.debug(
            f"🔍 {user}@{host}:{port} methods={list(methods) or '?'} -> {strategy.strategy}"
        )
        return strategy
