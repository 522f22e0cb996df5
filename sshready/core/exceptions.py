"""
Core Exceptions - Unified error hierarchy for SSHReady.

Probe-level components never raise across their public contract; these
exceptions cover invalid input, configuration, and collaborator failures.
"""


class SSHReadyError(Exception):
    """Base exception for all SSHReady errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | {self.details}"
        return self.message


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(SSHReadyError):
    """Input validation failed."""
    pass


class InvalidTargetError(ValidationError):
    """Connection target is malformed."""

    def __init__(self, target: str, reason: str):
        super().__init__(
            f"Invalid connection target '{target}': {reason}",
            {"target": target, "reason": reason}
        )
        self.target = target
        self.reason = reason


# =============================================================================
# Probe Errors
# =============================================================================

class ProbeError(SSHReadyError):
    """A probe could not run at all (internal, never crosses a probe contract)."""
    pass


class SSHClientUnavailableError(ProbeError):
    """A required client binary (ssh, sshpass) is not installed."""

    def __init__(self, binary: str):
        super().__init__(
            f"Required binary '{binary}' was not found in PATH",
            {"binary": binary}
        )
        self.binary = binary


# =============================================================================
# Credential Errors
# =============================================================================

class CredentialError(SSHReadyError):
    """Credential handling failed."""
    pass


class PromptError(CredentialError):
    """The prompt collaborator failed while asking for a credential."""

    def __init__(self, kind: str, original_error: Exception):
        super().__init__(
            f"Credential prompt '{kind}' failed: {original_error}",
            {"kind": kind, "original_error_type": type(original_error).__name__}
        )
        self.kind = kind
        self.original_error = original_error


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(SSHReadyError):
    """Configuration error."""
    pass


class InvalidConfigError(ConfigurationError):
    """Invalid configuration value."""

    def __init__(self, key: str, value: object, reason: str):
        super().__init__(
            f"Invalid value for {key}: {reason}",
            {"key": key, "value": value}
        )
        self.key = key
        self.value = value
