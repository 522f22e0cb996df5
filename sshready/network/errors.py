"""
SSHReady Network - Error classification.

Maps raw OS, resolver and SSH client errors to a NetworkErrorDetail with a
category, a retryability flag and operator-facing suggestions. Pure: no I/O,
never raises.
"""

from __future__ import annotations

import errno
import socket
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from sshready.core.types import AuthFailure, ErrorCategory
from sshready.ssh.parsers import OpenSSHOutputParser, OutputParser


@dataclass(frozen=True)
class NetworkErrorDetail:
    """Classified error with guidance for the operator."""

    category: ErrorCategory
    code: str
    message: str
    is_retryable: bool
    suggestions: tuple[str, ...] = ()
    auth_failure: AuthFailure | None = None


@dataclass(frozen=True)
class _CodeRule:
    category: ErrorCategory
    message: str
    is_retryable: bool
    suggestions: tuple[str, ...]


_DNS_NOT_FOUND = _CodeRule(
    ErrorCategory.DNS,
    "DNS resolution failed - hostname not found",
    False,
    (
        "Check if the hostname is spelled correctly",
        "Verify the domain exists and is accessible",
        "Check your DNS settings",
        "Try using an IP address instead",
    ),
)

CODE_RULES: dict[str, _CodeRule] = {
    "ENOTFOUND": _DNS_NOT_FOUND,
    "EAI_NONAME": _DNS_NOT_FOUND,
    "EAI_NODATA": _DNS_NOT_FOUND,
    "EAI_AGAIN": _CodeRule(
        ErrorCategory.DNS,
        "DNS lookup timeout - temporary DNS failure",
        True,
        (
            "Retry the connection after a short delay",
            "Check your internet connection",
            "Try using a different DNS server",
            "Check if your network has DNS issues",
        ),
    ),
    "ECONNREFUSED": _CodeRule(
        ErrorCategory.PORT,
        "Connection refused - port is closed or blocked",
        False,
        (
            "Check if the SSH service is running on the target server",
            "Verify the port number is correct (default SSH port is 22)",
            "Check if a firewall is blocking the connection",
            "Ensure the service is listening on the specified port",
        ),
    ),
    "EHOSTUNREACH": _CodeRule(
        ErrorCategory.NETWORK,
        "Host unreachable - no route to host",
        False,
        (
            "Check your network connection",
            "Verify the host IP address is correct",
            "Check if there are routing issues",
            "Ensure the host is online and accessible",
        ),
    ),
    "ENETUNREACH": _CodeRule(
        ErrorCategory.NETWORK,
        "Network unreachable - no route to the target network",
        False,
        (
            "Check your network connection",
            "Verify the host IP address is correct",
            "Check if there are routing issues",
            "Ensure the host is online and accessible",
        ),
    ),
    "ETIMEDOUT": _CodeRule(
        ErrorCategory.TIMEOUT,
        "Connection timeout - host did not respond in time",
        True,
        (
            "Retry with a longer timeout",
            "Check if the host is responding slowly",
            "Verify network connectivity",
            "Check if there are network congestion issues",
        ),
    ),
    "ECONNRESET": _CodeRule(
        ErrorCategory.NETWORK,
        "Connection reset by peer",
        True,
        (
            "Retry the connection",
            "Check if the server is overloaded",
            "Verify network stability",
            "Check server logs for issues",
        ),
    ),
}

SSH_AUTH_SUGGESTIONS = (
    "Check your username and password",
    "Verify SSH key permissions and path",
    "Ensure the user has SSH access on the server",
    "Check if the authentication method is supported",
)

SSH_HOST_KEY_SUGGESTIONS = (
    "Update your known_hosts file",
    "Verify the server's host key",
    "Use ssh-keyscan to get the correct host key",
    "Check if the server key has changed",
)

SSH_REFUSED_SUGGESTIONS = (
    "Check if SSH daemon (sshd) is running on the server",
    "Verify the SSH port (default is 22)",
    "Check firewall rules on both client and server",
    "Ensure SSH service is enabled and started",
)

# socket.gaierror errno -> symbolic code
_GAI_CODES: dict[int, str] = {
    socket.EAI_NONAME: "EAI_NONAME",
    socket.EAI_AGAIN: "EAI_AGAIN",
}
if hasattr(socket, "EAI_NODATA"):
    _GAI_CODES[socket.EAI_NODATA] = "EAI_NODATA"


def _extract(raw: Any) -> tuple[str | None, str]:
    """Pull a symbolic code and a message out of any raw error shape."""
    if raw is None:
        return None, ""

    if isinstance(raw, str):
        code = raw.strip().upper()
        return (code if code in CODE_RULES else None), raw

    if isinstance(raw, Mapping):
        code = raw.get("code")
        message = raw.get("message") or ""
        return (str(code) if code is not None else None), str(message)

    if isinstance(raw, socket.gaierror):
        # Any resolver failure other than a temporary one means the name is unusable
        return _GAI_CODES.get(raw.errno, "ENOTFOUND"), str(raw)

    if isinstance(raw, TimeoutError):
        return "ETIMEDOUT", str(raw) or "timed out"

    if isinstance(raw, OSError) and raw.errno is not None:
        return errno.errorcode.get(raw.errno), str(raw)

    if isinstance(raw, BaseException):
        code = getattr(raw, "code", None)
        return (code if isinstance(code, str) else None), str(raw)

    return None, str(raw)


class ErrorClassifier:
    """
    Classify connection errors.

    Code-based classification wins; the message is only inspected when no
    recognised code is present.
    """

    def __init__(self, parser: OutputParser | None = None):
        self.parser = parser or OpenSSHOutputParser()

    # =========================================================================
    # Network taxonomy
    # =========================================================================

    def classify(self, raw: Any) -> NetworkErrorDetail:
        """
        Classify a raw error.

        Args:
            raw: Exception, string, mapping with code/message, or None

        Returns:
            NetworkErrorDetail (category unknown when nothing matches)
        """
        code, message = _extract(raw)

        rule = CODE_RULES.get(code) if code else None
        if rule is not None:
            return NetworkErrorDetail(
                category=rule.category,
                code=code,
                message=rule.message,
                is_retryable=rule.is_retryable,
                suggestions=rule.suggestions,
            )

        lowered = message.lower()
        if "timeout" in lowered or "timed out" in lowered:
            return NetworkErrorDetail(
                category=ErrorCategory.TIMEOUT,
                code="TIMEOUT",
                message="Connection timeout detected",
                is_retryable=True,
                suggestions=("Retry with a longer timeout", "Check network connectivity"),
            )

        if "refused" in lowered:
            return NetworkErrorDetail(
                category=ErrorCategory.PORT,
                code="CONNECTION_REFUSED",
                message="Connection refused detected",
                is_retryable=False,
                suggestions=("Check if the service is running", "Verify the port number"),
            )

        return NetworkErrorDetail(
            category=ErrorCategory.UNKNOWN,
            code=code or "UNKNOWN",
            message=f"Unknown network error: {message or 'no details'}",
            is_retryable=False,
            suggestions=("Check the error details", "Verify network configuration"),
        )

    # =========================================================================
    # SSH taxonomy
    # =========================================================================

    def classify_ssh(
        self, raw: Any, auth_failure: AuthFailure | None = None
    ) -> NetworkErrorDetail:
        """
        Classify an error produced by the SSH client.

        Starts from the network taxonomy, then lifts authentication rejection
        and host key mismatch into the authentication category.

        Args:
            raw: Error or client stderr text
            auth_failure: Sub-kind to record on an authentication rejection

        Returns:
            NetworkErrorDetail
        """
        _, message = _extract(raw)

        if isinstance(raw, str):
            ssh_code = self.parser.network_error_code(raw)
            detail = self.classify({"code": ssh_code, "message": raw} if ssh_code else raw)
        else:
            detail = self.classify(raw)

        if self.parser.is_host_key_failure(message):
            return NetworkErrorDetail(
                category=ErrorCategory.AUTHENTICATION,
                code="SSH_HOST_KEY_FAILED",
                message="SSH host key verification failed",
                is_retryable=False,
                suggestions=SSH_HOST_KEY_SUGGESTIONS,
                auth_failure=AuthFailure.HOST_KEY_MISMATCH,
            )

        if self.parser.is_auth_rejection(message):
            return NetworkErrorDetail(
                category=ErrorCategory.AUTHENTICATION,
                code="SSH_AUTH_FAILED",
                message="SSH authentication failed",
                is_retryable=False,
                suggestions=SSH_AUTH_SUGGESTIONS,
                auth_failure=auth_failure,
            )

        if detail.code in ("ECONNREFUSED", "CONNECTION_REFUSED"):
            return replace(detail, suggestions=SSH_REFUSED_SUGGESTIONS)

        return detail

    # =========================================================================
    # Helpers
    # =========================================================================

    def is_retryable(self, raw: Any) -> bool:
        """Return True if the error is worth retrying."""
        return self.classify(raw).is_retryable

    def format_error_message(self, raw: Any, context: str = "Connection") -> str:
        """
        Render an error with numbered suggestions.

        Args:
            raw: Raw error
            context: What was being attempted

        Returns:
            "<context> failed: <message>" followed by the suggestions
        """
        detail = raw if isinstance(raw, NetworkErrorDetail) else self.classify(raw)
        return format_detail(detail, context)


def format_detail(detail: NetworkErrorDetail, context: str = "Connection") -> str:
    """Render an already classified error with numbered suggestions."""
    message = f"{context} failed: {detail.message}"
    if detail.suggestions:
        lines = [f"  {i}. {s}" for i, s in enumerate(detail.suggestions, 1)]
        message += "\n\nSuggestions:\n" + "\n".join(lines)
    return message


# Convenience functions

_default_classifier = ErrorClassifier()


def classify(raw: Any) -> NetworkErrorDetail:
    """Classify a raw error with the default classifier."""
    return _default_classifier.classify(raw)


def classify_ssh(raw: Any, auth_failure: AuthFailure | None = None) -> NetworkErrorDetail:
    """Classify an SSH client error with the default classifier."""
    return _default_classifier.classify_ssh(raw, auth_failure)


def is_retryable(raw: Any) -> bool:
    """Return True if the error is worth retrying."""
    return _default_classifier.is_retryable(raw)


def format_error_message(raw: Any, context: str = "Connection") -> str:
    """Render an error with numbered suggestions."""
    return _default_classifier.format_error_message(raw, context)
