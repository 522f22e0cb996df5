"""
Tests for authentication method detection.

Covers the strategy rules and the probe's never-raise contract.
"""

import pytest

from sshready.core.exceptions import SSHClientUnavailableError
from sshready.core.types import StrategyKind
from sshready.ssh.auth_probe import AuthMethodProbe, AuthStrategy, describe, determine_strategy
from sshready.ssh.client import CommandResult

from conftest import FakeSSHServer, ScriptedSSHClient


class TestDetermineStrategy:
    """Reduction of a method list to a strategy."""

    def test_password_only(self):
        strategy = determine_strategy(["password"], has_local_keys=True)
        assert strategy.strategy == StrategyKind.PASSWORD_ONLY
        assert strategy.primary_method == "password"
        assert strategy.should_prompt_user
        assert strategy.allows_password
        assert not strategy.allows_publickey

    def test_key_only_with_local_keys(self):
        strategy = determine_strategy(["publickey"], has_local_keys=True)
        assert strategy.strategy == StrategyKind.KEY_ONLY
        assert not strategy.should_prompt_user
        assert not strategy.allows_password

    def test_key_only_without_local_keys(self):
        strategy = determine_strategy(["publickey"], has_local_keys=False)
        assert strategy.should_prompt_user

    def test_multiple_prefers_publickey(self):
        strategy = determine_strategy(["password", "publickey"], has_local_keys=True)
        assert strategy.strategy == StrategyKind.MULTIPLE_METHODS
        assert strategy.primary_method == "publickey"
        assert strategy.fallback_methods == ("password",)
        assert not strategy.should_prompt_user

    def test_multiple_without_publickey(self):
        strategy = determine_strategy(["password", "keyboard-interactive"], has_local_keys=True)
        assert strategy.strategy == StrategyKind.MULTIPLE_METHODS
        assert strategy.primary_method == "password"
        assert strategy.should_prompt_user

    def test_keyboard_interactive_counts_as_password(self):
        strategy = determine_strategy(["publickey", "keyboard-interactive"], has_local_keys=False)
        assert strategy.allows_password

    def test_empty_is_unknown(self):
        strategy = determine_strategy([], has_local_keys=True)
        assert strategy.strategy == StrategyKind.UNKNOWN
        assert strategy.primary_method == "publickey"
        assert strategy.fallback_methods == ("password",)
        assert strategy.allows_password and strategy.allows_publickey

    def test_unrecognised_methods_ignored(self):
        assert determine_strategy(["hostbased"], True).strategy == StrategyKind.UNKNOWN

    def test_single_other_method_is_unknown(self):
        strategy = determine_strategy(["gssapi-with-mic"], True)
        assert strategy.strategy == StrategyKind.UNKNOWN
        assert strategy.supported_methods == ("gssapi-with-mic",)

    def test_describe(self):
        assert describe(determine_strategy(["password"], True)) == "Server requires password authentication"
        assert describe(determine_strategy(["publickey"], True)) == "Server requires SSH key authentication"
        assert describe(AuthStrategy.unknown()) == "Authentication requirements unknown"
        assert "primary: publickey" in describe(determine_strategy(["publickey", "password"], True))


class TestAuthMethodProbe:
    """Detection through the (scripted) system client."""

    @pytest.mark.asyncio
    async def test_detects_methods_and_banner(self):
        client = ScriptedSSHClient(FakeSSHServer(methods=("password",)))
        probe = AuthMethodProbe(client)

        strategy = await probe.detect("db1", 22, "deploy", 5000, has_local_keys=True)

        assert strategy.strategy == StrategyKind.PASSWORD_ONLY
        assert strategy.server_banner == "OpenSSH_9.6p1 Ubuntu-3"
        argv = client.calls[0][0]
        assert "PreferredAuthentications=none" in argv
        assert "BatchMode=yes" in argv
        assert "-v" in argv

    @pytest.mark.asyncio
    async def test_timeout_gives_unknown(self):
        client = ScriptedSSHClient(lambda argv, pw: CommandResult(-1, "", "", timed_out=True))
        strategy = await AuthMethodProbe(client).detect("db1", 22, "deploy")
        assert strategy.strategy == StrategyKind.UNKNOWN

    @pytest.mark.asyncio
    async def test_missing_client_gives_unknown(self):
        client = ScriptedSSHClient(lambda argv, pw: SSHClientUnavailableError("ssh"))
        strategy = await AuthMethodProbe(client).detect("db1", 22, "deploy")
        assert strategy.strategy == StrategyKind.UNKNOWN

    @pytest.mark.asyncio
    async def test_unparseable_output_gives_unknown(self):
        client = ScriptedSSHClient(lambda argv, pw: CommandResult(255, "", "garbage"))
        strategy = await AuthMethodProbe(client).detect("db1", 22, "deploy")
        assert strategy.strategy == StrategyKind.UNKNOWN
