"""
Tests for the session credential cache.

Expiry is driven by an injected clock, never by sleeping.
"""

import pytest

from sshready.core.types import CredentialType
from sshready.credentials.cache import SessionCredentialCache
from sshready.utils.security import known_secrets, redact_sensitive_info


class TestStoreAndGet:
    """Round trips and expiry."""

    def test_round_trip_with_ttl(self, cache, clock):
        cache.store("h", "u", "password", "p4ss", ttl=60000)

        entry = cache.get("h", "u")
        assert entry.value == "p4ss"
        assert entry.type == CredentialType.PASSWORD

        clock.advance(59)
        assert cache.has("h", "u")

        clock.advance(2)
        assert cache.get("h", "u") is None
        assert len(cache) == 0

    def test_expiry_boundary_is_inclusive(self, cache, clock):
        cache.store("h", "u", "key", "/k", ttl=1000)
        clock.advance(1)
        assert cache.get("h", "u") is not None

    def test_keys_are_host_user_tuples(self, cache):
        cache.store("a@b", "c", "password", "one")
        cache.store("a", "b@c", "password", "two")
        assert cache.get("a@b", "c").value == "one"
        assert cache.get("a", "b@c").value == "two"

    def test_store_replaces(self, cache):
        cache.store("h", "u", "password", "first")
        cache.store("h", "u", "key", "/home/u/.ssh/id_rsa")
        entry = cache.get("h", "u")
        assert entry.type == CredentialType.KEY
        assert "first" not in known_secrets()

    def test_string_ttl(self, cache, clock):
        cache.store("h", "u", "key", "/k", ttl="30s")
        clock.advance(31)
        assert cache.get("h", "u") is None

    def test_default_ttl(self, clock):
        cache = SessionCredentialCache(default_ttl_ms=5000, clock=clock)
        cache.store("h", "u", "key", "/k")
        assert cache.remaining("h", "u") == 5000

    def test_invalid_type(self, cache):
        with pytest.raises(ValueError):
            cache.store("h", "u", "token", "x")


class TestClearing:
    """Explicit removal."""

    def test_clear(self, cache):
        cache.store("h", "u", "password", "p4ss")
        cache.clear("h", "u")
        assert not cache.has("h", "u")
        cache.clear("h", "u")

    def test_clear_all(self, cache):
        cache.store("h1", "u", "password", "p4ss")
        cache.store("h2", "u", "key", "/k")
        cache.clear_all()
        assert len(cache) == 0
        assert known_secrets() == []


class TestRedaction:
    """Cached passwords never reach logs."""

    def test_password_registered_for_redaction(self, cache):
        cache.store("h", "u", "password", "hunter2-pw")
        assert redact_sensitive_info("login with hunter2-pw") == "login with [REDACTED]"

    def test_repr_masks_password(self, cache):
        entry = cache.store("h", "u", "password", "hunter2-pw")
        assert "hunter2-pw" not in repr(entry)


class TestParseTTL:
    """Duration parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("30s", 30_000),
            ("15m", 900_000),
            ("1h", 3_600_000),
            ("45", 45_000),
            (120, 120_000),
        ],
    )
    def test_valid(self, value, expected):
        assert SessionCredentialCache.parse_ttl(value) == expected

    @pytest.mark.parametrize("value", ["abc", "10d", "1.5h", "-5m"])
    def test_invalid_falls_back(self, value):
        assert SessionCredentialCache.parse_ttl(value, default_ms=1234) == 1234

    def test_empty_uses_default(self):
        assert SessionCredentialCache.parse_ttl(None, default_ms=7) == 7
        assert SessionCredentialCache.parse_ttl("", default_ms=7) == 7


class TestFormatRemaining:
    """Human-readable remaining lifetime."""

    @pytest.mark.parametrize(
        "remaining,expected",
        [
            (-1, "expired"),
            (1, "1m"),
            (60_000, "1m"),
            (14 * 60_000 + 1, "15m"),
            (2 * 3_600_000, "2h"),
            (3_600_000 + 5 * 60_000, "1h 5m"),
        ],
    )
    def test_format(self, remaining, expected):
        assert SessionCredentialCache.format_remaining(remaining) == expected
