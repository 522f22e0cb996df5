"""Tests for startup health checks."""

import sys
from pathlib import Path

from sshready.config.models import SSHClientConfig
from sshready.core.types import CheckStatus
from sshready.health import (
    check_local_keys,
    check_ssh_agent,
    check_ssh_client,
    check_sshpass,
    run_startup_checks,
)
from sshready.ssh.client import SystemSSHClient
from sshready.ssh.keys import KeyLocator

MISSING_BINARY = "sshready-test-binary-that-does-not-exist"


class TestBinaryChecks:
    """ssh is critical, sshpass only degrades password verification."""

    def test_ssh_client_available(self):
        check = check_ssh_client(SystemSSHClient(ssh_binary=sys.executable))
        assert check.status == CheckStatus.OK
        assert check.critical

    def test_ssh_client_missing(self):
        check = check_ssh_client(SystemSSHClient(ssh_binary=MISSING_BINARY))
        assert check.status == CheckStatus.ERROR
        assert MISSING_BINARY in check.message

    def test_sshpass_missing_is_warning(self):
        check = check_sshpass(SystemSSHClient(sshpass_binary=MISSING_BINARY))
        assert check.status == CheckStatus.WARNING
        assert not check.critical


class TestAgentCheck:
    def test_socket_present(self):
        check = check_ssh_agent({"SSH_AUTH_SOCK": "/tmp/agent.sock"})
        assert check.status == CheckStatus.OK
        assert check.details == {"socket": "/tmp/agent.sock"}

    def test_socket_missing(self):
        assert check_ssh_agent({}).status == CheckStatus.WARNING

    def test_disabled(self):
        check = check_ssh_agent({"SSH_AUTH_SOCK": "/tmp/agent.sock"}, enabled=False)
        assert check.status == CheckStatus.DISABLED


class TestKeyCheck:
    def test_keys_found(self, ssh_dir_with_key: Path):
        check = check_local_keys(KeyLocator(ssh_dir=ssh_dir_with_key))
        assert check.status == CheckStatus.OK
        assert check.details["keys"] == [str(ssh_dir_with_key / "id_ed25519")]

    def test_no_keys(self, empty_ssh_dir: Path):
        check = check_local_keys(KeyLocator(ssh_dir=empty_ssh_dir))
        assert check.status == CheckStatus.WARNING


class TestRunStartupChecks:
    """Aggregate health and capabilities."""

    def test_missing_ssh_blocks_start(self, empty_ssh_dir: Path):
        config = SSHClientConfig(ssh_binary=MISSING_BINARY, sshpass_binary=MISSING_BINARY, ssh_dir=empty_ssh_dir)

        health = run_startup_checks(config, environ={})

        assert not health.can_start
        assert health.has_warnings
        assert health.capabilities == {"ssh": False, "password": False, "agent": False, "keys": False}
        assert health.get_check("ssh_client").status == CheckStatus.ERROR
        assert health.get_check("nope") is None

    def test_warnings_do_not_block_start(self, ssh_dir_with_key: Path):
        config = SSHClientConfig(ssh_binary=sys.executable, sshpass_binary=MISSING_BINARY, ssh_dir=ssh_dir_with_key)

        health = run_startup_checks(config, environ={"SSH_AUTH_SOCK": "/tmp/agent.sock"})

        assert health.can_start
        assert health.has_warnings
        assert health.capabilities == {"ssh": True, "password": False, "agent": True, "keys": True}
        assert [c.name for c in health.checks] == ["ssh_client", "sshpass", "ssh_agent", "local_keys"]
