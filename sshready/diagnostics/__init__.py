"""
SSHReady Diagnostics - Staged connection diagnosis.
"""

from sshready.diagnostics.engine import DiagnosticsEngine
from sshready.diagnostics.models import ConnectionDiagnostics, ConnectionTarget

__all__ = [
    "ConnectionDiagnostics",
    "ConnectionTarget",
    "DiagnosticsEngine",
]
