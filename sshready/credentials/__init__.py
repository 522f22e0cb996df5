"""
SSHReady Credentials - Session cache and credential resolution flow.
"""

from sshready.credentials.cache import CachedCredential, SessionCredentialCache
from sshready.credentials.flow import (
    CredentialResolutionFlow,
    FlowDecision,
    PromptCollaborator,
    PromptContext,
)

__all__ = [
    "CachedCredential",
    "CredentialResolutionFlow",
    "FlowDecision",
    "PromptCollaborator",
    "PromptContext",
    "SessionCredentialCache",
]
