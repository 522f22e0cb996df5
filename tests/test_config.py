"""Tests for configuration loading and retry policy construction."""

import pytest

from sshready.config import Config, RetryConfig, get_config, load_config, reset_config
from sshready.core.exceptions import InvalidConfigError, ValidationError
from sshready.orchestrator import RetryPolicy


class TestDefaults:
    """Values used when nothing is overridden."""

    def test_defaults(self):
        config = load_config({})

        assert config.probe.network_timeout_ms == 5_000
        assert config.probe.method_probe_timeout_ms == 10_000
        assert config.probe.auth_timeout_ms == 15_000
        assert config.retry.max_attempts == 3
        assert config.retry.interactive is True
        assert config.retry.password_attempt_limit == 3
        assert config.cache.ttl_seconds == 900
        assert config.ssh.strict_host_key_checking == "accept-new"
        assert config.ssh.use_agent is True
        assert config.logging.log_file is None

    def test_empty_values_are_ignored(self):
        config = load_config({"SSHREADY_MAX_ATTEMPTS": ""})
        assert config.retry.max_attempts == 3


class TestEnvironmentOverrides:
    """SSHREADY_* variables."""

    def test_numeric_overrides(self):
        config = load_config({
            "SSHREADY_MAX_ATTEMPTS": "5",
            "SSHREADY_AUTH_TIMEOUT_MS": "30000",
            "SSHREADY_BACKOFF_SECONDS": "0.5",
        })

        assert config.retry.max_attempts == 5
        assert config.probe.auth_timeout_ms == 30_000
        assert config.retry.backoff_seconds == 0.5

    @pytest.mark.parametrize("value,interactive", [("1", False), ("yes", False), ("0", True), ("off", True)])
    def test_non_interactive_is_inverted(self, value, interactive):
        config = load_config({"SSHREADY_NON_INTERACTIVE": value})
        assert config.retry.interactive is interactive

    @pytest.mark.parametrize(
        "value,seconds",
        [("15m", 900), ("30s", 30), ("1h", 3600), ("120", 120), ("nonsense", 900)],
    )
    def test_cache_ttl(self, value, seconds):
        config = load_config({"SSHREADY_CACHE_TTL": value})
        assert config.cache.ttl_seconds == seconds

    def test_string_overrides(self, tmp_path):
        config = load_config({
            "SSHREADY_SSH_BINARY": "/opt/openssh/bin/ssh",
            "SSHREADY_SSH_DIR": str(tmp_path),
            "SSHREADY_LOG_LEVEL": "WARNING",
            "SSHREADY_USE_AGENT": "false",
        })

        assert config.ssh.ssh_binary == "/opt/openssh/bin/ssh"
        assert config.ssh.ssh_dir == tmp_path
        assert config.logging.file_level == "warning"
        assert config.ssh.use_agent is False


class TestInvalidValues:
    """Bad overrides name the variable that caused them."""

    def test_not_an_integer(self):
        with pytest.raises(InvalidConfigError) as exc_info:
            load_config({"SSHREADY_MAX_ATTEMPTS": "many"})
        assert exc_info.value.key == "SSHREADY_MAX_ATTEMPTS"
        assert exc_info.value.value == "many"

    def test_out_of_range(self):
        with pytest.raises(InvalidConfigError) as exc_info:
            load_config({"SSHREADY_MAX_ATTEMPTS": "0"})
        assert exc_info.value.key == "SSHREADY_MAX_ATTEMPTS"

    def test_bad_boolean(self):
        with pytest.raises(InvalidConfigError):
            load_config({"SSHREADY_NON_INTERACTIVE": "sometimes"})

    def test_bad_host_key_policy(self):
        with pytest.raises(InvalidConfigError) as exc_info:
            load_config({"SSHREADY_STRICT_HOST_KEY_CHECKING": "maybe"})
        assert exc_info.value.key == "SSHREADY_STRICT_HOST_KEY_CHECKING"


class TestGlobalConfig:
    """get_config() caches until reset_config()."""

    def test_cached_until_reset(self, monkeypatch):
        monkeypatch.setenv("SSHREADY_MAX_ATTEMPTS", "4")
        reset_config()
        try:
            first = get_config()
            assert first.retry.max_attempts == 4
            assert get_config() is first

            monkeypatch.setenv("SSHREADY_MAX_ATTEMPTS", "6")
            assert get_config().retry.max_attempts == 4

            reset_config()
            assert get_config().retry.max_attempts == 6
        finally:
            reset_config()


class TestRetryPolicy:
    """Policy validation and construction from config."""

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_attempts": 0}, {"password_attempt_limit": 0}, {"backoff_seconds": -1}],
    )
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises(ValidationError):
            RetryPolicy(**kwargs)

    def test_from_config(self):
        config = RetryConfig(max_attempts=5, interactive=False, backoff_seconds=1.5)

        policy = RetryPolicy.from_config(config, suppress_debug_output=True, max_attempts=None)

        assert policy.max_attempts == 5
        assert policy.interactive is False
        assert policy.backoff_seconds == 1.5
        assert policy.password_attempt_limit == 3
        assert policy.suppress_debug_output is True

    def test_from_config_overrides(self):
        policy = RetryPolicy.from_config(Config().retry, max_attempts=1, interactive=False)
        assert policy.max_attempts == 1
        assert policy.interactive is False
