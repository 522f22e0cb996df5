"""
SSHReady Utils - Shared helpers.
"""
from sshready.utils.security import (
    forget_secret,
    known_secrets,
    redact_sensitive_info,
    register_secret,
)

__all__ = [
    "forget_secret",
    "known_secrets",
    "redact_sensitive_info",
    "register_secret",
]
