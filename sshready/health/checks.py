"""
SSHReady Health - Health check implementations.

Checks local prerequisites for diagnostics: the ssh client, sshpass for
password verification, an ssh-agent, and private keys on disk.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from loguru import logger

from sshready.config.models import SSHClientConfig
from sshready.core.types import CheckStatus, HealthCheck
from sshready.ssh.client import SystemSSHClient
from sshready.ssh.keys import KeyLocator


@dataclass
class StartupHealth:
    """Results of all startup health checks."""

    checks: list[HealthCheck] = field(default_factory=list)
    capabilities: dict[str, bool] = field(default_factory=dict)

    @property
    def can_start(self) -> bool:
        """Check if all critical checks passed."""
        return not any(c.critical and c.status == CheckStatus.ERROR for c in self.checks)

    @property
    def has_warnings(self) -> bool:
        """Check if any warnings were raised."""
        return any(c.status == CheckStatus.WARNING for c in self.checks)

    def get_check(self, name: str) -> HealthCheck | None:
        """Get check by name."""
        for check in self.checks:
            if check.name == name:
                return check
        return None


def check_ssh_client(client: SystemSSHClient) -> HealthCheck:
    """Check that the ssh binary is on PATH. Critical."""
    if client.is_available():
        return HealthCheck(
            name="ssh_client",
            status=CheckStatus.OK,
            message=f"{client.ssh_binary} client available",
            critical=True,
        )
    return HealthCheck(
        name="ssh_client",
        status=CheckStatus.ERROR,
        message=f"{client.ssh_binary} not found on PATH (install OpenSSH client)",
        critical=True,
    )


def check_sshpass(client: SystemSSHClient) -> HealthCheck:
    """Check for sshpass; without it passwords cannot be verified."""
    if client.has_sshpass():
        return HealthCheck(
            name="sshpass",
            status=CheckStatus.OK,
            message=f"{client.sshpass_binary} available (password verification enabled)",
        )
    return HealthCheck(
        name="sshpass",
        status=CheckStatus.WARNING,
        message=f"{client.sshpass_binary} not found (password verification unavailable)",
    )


def check_ssh_agent(environ: Mapping[str, str] | None = None, enabled: bool = True) -> HealthCheck:
    """Check for a running ssh-agent."""
    if not enabled:
        return HealthCheck(
            name="ssh_agent",
            status=CheckStatus.DISABLED,
            message="ssh-agent disabled by configuration",
        )

    env = os.environ if environ is None else environ
    sock = env.get("SSH_AUTH_SOCK")
    if sock:
        return HealthCheck(
            name="ssh_agent",
            status=CheckStatus.OK,
            message="ssh-agent available",
            details={"socket": sock},
        )
    return HealthCheck(
        name="ssh_agent",
        status=CheckStatus.WARNING,
        message="No ssh-agent (SSH_AUTH_SOCK not set)",
    )


def check_local_keys(locator: KeyLocator) -> HealthCheck:
    """Check for private keys the key trial would use."""
    keys = locator.find_keys()
    if keys:
        return HealthCheck(
            name="local_keys",
            status=CheckStatus.OK,
            message=f"{len(keys)} private key(s) in {locator.ssh_dir}",
            details={"keys": [str(k) for k in keys]},
        )
    return HealthCheck(
        name="local_keys",
        status=CheckStatus.WARNING,
        message=f"No private keys found in {locator.ssh_dir}",
    )


def run_startup_checks(
    ssh_config: SSHClientConfig | None = None,
    environ: Mapping[str, str] | None = None,
) -> StartupHealth:
    """
    Run all startup health checks.

    Args:
        ssh_config: SSH client settings (defaults to SSHClientConfig()).
        environ: Environment to read SSH_AUTH_SOCK from.

    Returns:
        StartupHealth with all check results.
    """
    ssh_config = ssh_config or SSHClientConfig()
    client = SystemSSHClient(
        ssh_binary=ssh_config.ssh_binary,
        sshpass_binary=ssh_config.sshpass_binary,
    )
    locator = KeyLocator(ssh_dir=ssh_config.ssh_dir)

    health = StartupHealth()
    health.checks = [
        check_ssh_client(client),
        check_sshpass(client),
        check_ssh_agent(environ, enabled=ssh_config.use_agent),
        check_local_keys(locator),
    ]
    health.capabilities = {
        "ssh": health.checks[0].status == CheckStatus.OK,
        "password": health.checks[1].status == CheckStatus.OK,
        "agent": health.checks[2].status == CheckStatus.OK,
        "keys": health.checks[3].status == CheckStatus.OK,
    }

    for check in health.checks:
        logger.debug(f"🔍 Health {check.name}: {check.status.value} - {check.message}")

    return health
