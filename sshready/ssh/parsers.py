"""
SSHReady SSH - Client output parsing.

All knowledge of what the system ssh client prints lives here, behind the
OutputParser protocol, so a different client can be supported by swapping
the parser.
"""

from __future__ import annotations

import re
from re import Pattern
from typing import Protocol, runtime_checkable

KNOWN_AUTH_METHODS = ("password", "publickey", "keyboard-interactive", "gssapi-with-mic")


@runtime_checkable
class OutputParser(Protocol):
    """Interpret text produced by an SSH client."""

    def parse_auth_methods(self, output: str) -> list[str]:
        """Methods the server said can continue, in server order."""
        ...

    def parse_server_banner(self, output: str) -> str | None:
        """Remote software version, if printed."""
        ...

    def parse_denied_methods(self, output: str) -> list[str]:
        """Methods listed in a 'Permission denied (...)' line."""
        ...

    def is_auth_rejection(self, output: str) -> bool:
        ...

    def is_host_key_failure(self, output: str) -> bool:
        ...

    def network_error_code(self, output: str) -> str | None:
        """Symbolic errno-style code for a transport failure, if any."""
        ...

    def is_key_missing(self, output: str, key_path: str | None = None) -> bool:
        ...

    def is_key_unusable(self, output: str) -> bool:
        """Key exists but cannot be loaded (format, permissions, passphrase)."""
        ...


class OpenSSHOutputParser:
    """OutputParser for OpenSSH ``ssh -v`` output."""

    AUTH_CONTINUE_RE: Pattern[str] = re.compile(r"Authentications that can continue: (.+)")
    BANNER_RE: Pattern[str] = re.compile(
        r"Remote protocol version [^,]+, remote software version (.+)"
    )
    DENIED_RE: Pattern[str] = re.compile(r"Permission denied \(([^)]*)\)")

    AUTH_REJECTION_PATTERNS: list[Pattern[str]] = [
        re.compile(r"permission denied", re.IGNORECASE),
        re.compile(r"authentication failed", re.IGNORECASE),
        re.compile(r"too many authentication failures", re.IGNORECASE),
    ]

    HOST_KEY_PATTERNS: list[Pattern[str]] = [
        re.compile(r"host key verification failed", re.IGNORECASE),
        re.compile(r"remote host identification has changed", re.IGNORECASE),
    ]

    # Order matters: the first match wins
    NETWORK_PATTERNS: list[tuple[Pattern[str], str]] = [
        (re.compile(r"could not resolve hostname .*temporary failure", re.IGNORECASE), "EAI_AGAIN"),
        (re.compile(r"could not resolve hostname", re.IGNORECASE), "ENOTFOUND"),
        (re.compile(r"name or service not known", re.IGNORECASE), "ENOTFOUND"),
        (re.compile(r"connection refused", re.IGNORECASE), "ECONNREFUSED"),
        (re.compile(r"connection timed out", re.IGNORECASE), "ETIMEDOUT"),
        (re.compile(r"operation timed out", re.IGNORECASE), "ETIMEDOUT"),
        (re.compile(r"no route to host", re.IGNORECASE), "EHOSTUNREACH"),
        (re.compile(r"network is unreachable", re.IGNORECASE), "ENETUNREACH"),
        (re.compile(r"connection reset", re.IGNORECASE), "ECONNRESET"),
        (re.compile(r"connection closed by remote host", re.IGNORECASE), "ECONNRESET"),
    ]

    KEY_UNUSABLE_PATTERNS: list[Pattern[str]] = [
        re.compile(r"invalid format", re.IGNORECASE),
        re.compile(r"bad permissions", re.IGNORECASE),
        re.compile(r"unprotected private key file", re.IGNORECASE),
        re.compile(r"error in libcrypto", re.IGNORECASE),
        re.compile(r"incorrect passphrase", re.IGNORECASE),
    ]

    def parse_auth_methods(self, output: str) -> list[str]:
        methods: list[str] = []
        for match in self.AUTH_CONTINUE_RE.finditer(output or ""):
            for method in match.group(1).strip().split(","):
                method = method.strip()
                if method and method not in methods:
                    methods.append(method)
        return methods

    def parse_server_banner(self, output: str) -> str | None:
        match = self.BANNER_RE.search(output or "")
        return match.group(1).strip() if match else None

    def parse_denied_methods(self, output: str) -> list[str]:
        match = self.DENIED_RE.search(output or "")
        if not match:
            return []
        return [m.strip() for m in match.group(1).split(",") if m.strip()]

    def is_auth_rejection(self, output: str) -> bool:
        return any(p.search(output or "") for p in self.AUTH_REJECTION_PATTERNS)

    def is_host_key_failure(self, output: str) -> bool:
        return any(p.search(output or "") for p in self.HOST_KEY_PATTERNS)

    def network_error_code(self, output: str) -> str | None:
        for pattern, code in self.NETWORK_PATTERNS:
            if pattern.search(output or ""):
                return code
        return None

    def is_key_missing(self, output: str, key_path: str | None = None) -> bool:
        path = re.escape(key_path) if key_path else r".+?"
        pattern = rf"Identity file {path} not accessible: No such file or directory"
        return re.search(pattern, output or "", re.IGNORECASE) is not None

    def is_key_unusable(self, output: str) -> bool:
        return any(p.search(output or "") for p in self.KEY_UNUSABLE_PATTERNS)
