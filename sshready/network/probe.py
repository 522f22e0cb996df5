"""
SSHReady Network - Connectivity probe.

DNS resolution then TCP reachability, each bounded by a timeout. No internal
retries: a timed-out step is a definite failure.
"""

from __future__ import annotations

import asyncio
import ipaddress
import socket
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from sshready.config.constants import LOOPBACK_HOSTS, NETWORK_CHECK_TIMEOUT_MS
from sshready.network.errors import ErrorClassifier, NetworkErrorDetail

Resolver = Callable[[str, int], Awaitable[Any]]
Connector = Callable[[str, int], Awaitable[tuple[asyncio.StreamReader, asyncio.StreamWriter]]]


@dataclass(frozen=True)
class ConnectivityResult:
    """Outcome of the network stages."""

    dns_ok: bool
    port_ok: bool
    detail: NetworkErrorDetail | None = None
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        return self.dns_ok and self.port_ok


def _strip_brackets(host: str) -> str:
    if host.startswith("[") and host.endswith("]"):
        return host[1:-1]
    return host


def is_ip_literal(host: str) -> bool:
    """Return True if host is an IPv4 or IPv6 address."""
    try:
        ipaddress.ip_address(_strip_brackets(host))
        return True
    except ValueError:
        return False


def is_loopback(host: str) -> bool:
    """Return True for localhost and any loopback address."""
    host = _strip_brackets(host).lower()
    if host in LOOPBACK_HOSTS:
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


def is_private_address(host: str) -> bool:
    """
    Return True for loopback and RFC 1918 / unique-local addresses.

    Hostnames other than localhost are never considered private.
    """
    if is_loopback(host):
        return True
    try:
        return ipaddress.ip_address(_strip_brackets(host)).is_private
    except ValueError:
        return False


async def _default_resolver(host: str, port: int) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)


async def _default_connector(
    host: str, port: int
) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    return await asyncio.open_connection(_strip_brackets(host), port)


class ConnectivityProbe:
    """
    Check that a host resolves and that its port accepts TCP connections.

    Resolver and connector are injectable for tests.
    """

    def __init__(
        self,
        resolver: Resolver | None = None,
        connector: Connector | None = None,
        classifier: ErrorClassifier | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._resolver = resolver or _default_resolver
        self._connector = connector or _default_connector
        self._classifier = classifier or ErrorClassifier()
        self._clock = clock

    def _elapsed_ms(self, start: float) -> int:
        return int((self._clock() - start) * 1000)

    async def probe(
        self, host: str, port: int, timeout_ms: int = NETWORK_CHECK_TIMEOUT_MS
    ) -> ConnectivityResult:
        """
        Run DNS then TCP checks.

        Args:
            host: Hostname or IP address
            port: TCP port
            timeout_ms: Bound for each step

        Returns:
            ConnectivityResult; never raises
        """
        start = self._clock()
        timeout = timeout_ms / 1000

        # Step 1: DNS
        if is_loopback(host) or is_ip_literal(host):
            logger.debug(f"🔍 Skipping DNS lookup for address {host}")
        else:
            logger.debug(f"🔍 Resolving {host}")
            detail = await self._resolve(host, port, timeout, timeout_ms)
            if detail is not None:
                logger.info(f"❌ DNS check failed for {host}: {detail.message}")
                return ConnectivityResult(
                    dns_ok=False, port_ok=False, detail=detail,
                    duration_ms=self._elapsed_ms(start),
                )

        # Step 2: TCP
        logger.debug(f"🌐 Connecting to {host}:{port}")
        detail = await self._connect(host, port, timeout, timeout_ms)
        if detail is not None:
            logger.info(f"❌ Port check failed for {host}:{port}: {detail.message}")
            return ConnectivityResult(
                dns_ok=True, port_ok=False, detail=detail, duration_ms=self._elapsed_ms(start)
            )

        logger.debug(f"✅ {host}:{port} is reachable")
        return ConnectivityResult(dns_ok=True, port_ok=True, duration_ms=self._elapsed_ms(start))

    async def _resolve(
        self, host: str, port: int, timeout: float, timeout_ms: int
    ) -> NetworkErrorDetail | None:
        try:
            addresses = await asyncio.wait_for(self._resolver(host, port), timeout)
        except TimeoutError:
            return self._classifier.classify(
                {"code": "EAI_AGAIN", "message": f"DNS lookup for {host} timed out after {timeout_ms}ms"}
            )
        except Exception as e:
            logger.debug(f"🔍 Resolver error for {host}: {type(e).__name__}: {e}")
            return self._classifier.classify(e)

        if not addresses:
            return self._classifier.classify({"code": "ENOTFOUND", "message": f"No addresses for {host}"})
        return None

    async def _connect(
        self, host: str, port: int, timeout: float, timeout_ms: int
    ) -> NetworkErrorDetail | None:
        try:
            _, writer = await asyncio.wait_for(self._connector(host, port), timeout)
        except TimeoutError:
            return self._classifier.classify(
                {"code": "ETIMEDOUT", "message": f"Port {port} connection timeout after {timeout_ms}ms"}
            )
        except Exception as e:
            logger.debug(f"🌐 Connect error for {host}:{port}: {type(e).__name__}: {e}")
            return self._classifier.classify(e)

        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            logger.debug(f"🧹 Error while closing probe socket: {e}")
        return None
