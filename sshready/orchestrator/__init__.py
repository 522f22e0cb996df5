"""
SSHReady Orchestrator - Bounded retry loop over diagnostics and credentials.
"""

from sshready.orchestrator.models import (
    AttemptResult,
    FatalOutcome,
    PersistenceCollaborator,
    RetryDecision,
    RetryPolicy,
)
from sshready.orchestrator.retry import RetryOrchestrator

__all__ = [
    "AttemptResult",
    "FatalOutcome",
    "PersistenceCollaborator",
    "RetryDecision",
    "RetryOrchestrator",
    "RetryPolicy",
]
