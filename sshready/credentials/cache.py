"""
SSHReady Credentials - Session credential cache.

Process-lifetime, in-memory store for credentials that worked (or were just
typed), keyed by the (host, user) tuple. Entries expire lazily on read.
Nothing is ever written to disk.
"""

from __future__ import annotations

import math
import re
import time
from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from sshready.config.constants import DEFAULT_CACHE_TTL_SECONDS
from sshready.core.types import CredentialType
from sshready.utils.security import forget_secret, register_secret

DEFAULT_TTL_MS = DEFAULT_CACHE_TTL_SECONDS * 1000
_TTL_RE = re.compile(r"^(\d+)([smh])$")
_UNIT_MS = {"s": 1000, "m": 60 * 1000, "h": 60 * 60 * 1000}


@dataclass(frozen=True)
class CachedCredential:
    """A cached credential and its expiry (clock seconds)."""

    value: str
    type: CredentialType
    expires_at: float

    def __repr__(self) -> str:
        shown = self.value if self.type == CredentialType.KEY else "***"
        return f"CachedCredential(type={self.type.value!r}, value={shown!r}, expires_at={self.expires_at})"


class SessionCredentialCache:
    """
    In-memory credential cache.

    An explicitly constructed object: create one per run and pass it to the
    engine and the credential flow.

    Args:
        default_ttl_ms: Lifetime used when store() gets no ttl
        clock: Returns the current time in seconds (injectable for tests)
    """

    def __init__(
        self,
        default_ttl_ms: int = DEFAULT_TTL_MS,
        clock: Callable[[], float] = time.time,
    ):
        self.default_ttl_ms = default_ttl_ms
        self._clock = clock
        self._entries: dict[tuple[str, str], CachedCredential] = {}

    def __len__(self) -> int:
        return len(self._entries)

    # =========================================================================
    # Core operations
    # =========================================================================

    def store(
        self,
        host: str,
        user: str,
        type: CredentialType | str,
        value: str,
        ttl: int | str | None = None,
    ) -> CachedCredential:
        """
        Store a credential.

        Args:
            host: Target host
            user: Login user
            type: "password" or "key"
            value: Password or key path
            ttl: Lifetime in milliseconds, or a duration such as "15m"

        Returns:
            The cached entry
        """
        cred_type = CredentialType(type)
        if ttl is None:
            ttl_ms = self.default_ttl_ms
        elif isinstance(ttl, str):
            ttl_ms = self.parse_ttl(ttl, self.default_ttl_ms)
        else:
            ttl_ms = int(ttl)

        entry = CachedCredential(
            value=value, type=cred_type, expires_at=self._clock() + ttl_ms / 1000
        )
        previous = self._entries.get((host, user))
        self._entries[(host, user)] = entry
        if previous is not None and previous.type == CredentialType.PASSWORD and previous.value != value:
            forget_secret(previous.value)
        if cred_type == CredentialType.PASSWORD:
            register_secret(value)

        logger.debug(f"🔐 Cached {cred_type.value} for {user}@{host} ({self.format_remaining(ttl_ms)})")
        return entry

    def get(self, host: str, user: str) -> CachedCredential | None:
        """Return the credential, or None if absent or expired (expired entries are evicted)."""
        entry = self._entries.get((host, user))
        if entry is None:
            return None
        if entry.expires_at < self._clock():
            logger.debug(f"🔐 Cached credential for {user}@{host} has expired")
            self._evict((host, user))
            return None
        return entry

    def has(self, host: str, user: str) -> bool:
        return self.get(host, user) is not None

    def clear(self, host: str, user: str) -> None:
        """Remove the credential for one (host, user)."""
        if self._evict((host, user)):
            logger.debug(f"🧹 Cleared cached credential for {user}@{host}")

    def clear_all(self) -> None:
        """Remove every cached credential."""
        for key in list(self._entries):
            self._evict(key)
        logger.debug("🧹 Cleared all cached credentials")

    def remaining(self, host: str, user: str) -> int | None:
        """Milliseconds until expiry, or None if absent."""
        entry = self.get(host, user)
        if entry is None:
            return None
        return int((entry.expires_at - self._clock()) * 1000)

    def _evict(self, key: tuple[str, str]) -> bool:
        entry = self._entries.pop(key, None)
        if entry is None:
            return False
        if entry.type == CredentialType.PASSWORD:
            forget_secret(entry.value)
        return True

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def parse_ttl(value: str | int | None, default_ms: int = DEFAULT_TTL_MS) -> int:
        """
        Parse a lifetime into milliseconds.

        Accepts "30s", "15m", "1h", or a bare number of seconds. Anything else
        falls back to the default with a warning.
        """
        if value is None or value == "":
            return default_ms
        if isinstance(value, int):
            return value * 1000

        text = value.strip()
        if text.isdigit():
            return int(text) * 1000

        match = _TTL_RE.match(text)
        if not match:
            logger.warning(f"⚠️ Invalid timeout format: {value}. Using default timeout.")
            return default_ms
        return int(match.group(1)) * _UNIT_MS[match.group(2)]

    @staticmethod
    def format_remaining(remaining_ms: int | float) -> str:
        """Render a remaining lifetime as "expired", "14m", "2h" or "1h 5m"."""
        if remaining_ms < 0:
            return "expired"

        minutes = math.ceil(remaining_ms / 60000)
        if minutes < 60:
            return f"{minutes}m"

        hours, rest = divmod(minutes, 60)
        if rest == 0:
            return f"{hours}h"
        return f"{hours}h {rest}m"
