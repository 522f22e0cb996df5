"""
SSHReady Health - Startup checks.
"""

from sshready.health.checks import (
    StartupHealth,
    check_local_keys,
    check_ssh_agent,
    check_ssh_client,
    check_sshpass,
    run_startup_checks,
)

__all__ = [
    "StartupHealth",
    "check_local_keys",
    "check_ssh_agent",
    "check_ssh_client",
    "check_sshpass",
    "run_startup_checks",
]
