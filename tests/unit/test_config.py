"""
Unit tests for responder configuration.
"""

import pytest

from connresponder.config import ResponderConfig


@pytest.fixture
def clean_env(monkeypatch):
    """Remove RESPONDER_* variables from the environment."""
    for name in ("RESPONDER_PORT", "RESPONDER_RESPONSE_FILE", "RESPONDER_HOST", "RESPONDER_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaults:
    """Tests for default values."""

    def test_classic_defaults(self):
        """Test the two-connection defaults."""
        config = ResponderConfig()

        assert config.port == 8080
        assert config.response_file == "Response.txt"
        assert config.backlog == 2
        assert config.buffer_size == 4096
        assert config.max_connections == 2
        assert config.completion_threshold == 2
        assert config.terminator == b"\n"
        assert config.host is None

    def test_defaults_validate(self):
        """Test that defaults are valid."""
        ResponderConfig().validate()


class TestFromEnv:
    """Tests for environment configuration."""

    def test_unset_environment(self, clean_env):
        """Test defaults when nothing is set."""
        config = ResponderConfig.from_env()

        assert config.port == "8080"
        assert config.response_file == "Response.txt"
        assert config.host is None
        assert config.log_level == "WARNING"

    def test_reads_variables(self, clean_env):
        """Test that variables are picked up."""
        clean_env.setenv("RESPONDER_PORT", "9090")
        clean_env.setenv("RESPONDER_RESPONSE_FILE", "reply.bin")
        clean_env.setenv("RESPONDER_HOST", "127.0.0.1")
        clean_env.setenv("RESPONDER_LOG_LEVEL", "DEBUG")

        config = ResponderConfig.from_env()

        assert config.port == "9090"
        assert config.response_file == "reply.bin"
        assert config.host == "127.0.0.1"
        assert config.log_level == "DEBUG"

    def test_empty_host_means_any(self, clean_env):
        """Test that an empty host falls back to the any-address."""
        clean_env.setenv("RESPONDER_HOST", "")
        assert ResponderConfig.from_env().host is None


class TestValidate:
    """Tests for validation."""

    @pytest.mark.parametrize("port", [0, 8080, "9090", "http", 65535])
    def test_valid_ports(self, port):
        """Test accepted port forms."""
        ResponderConfig(port=port).validate()

    @pytest.mark.parametrize("port", [65536, "70000", -1])
    def test_invalid_ports(self, port):
        """Test out-of-range ports."""
        with pytest.raises(ValueError):
            ResponderConfig(port=port).validate()

    @pytest.mark.parametrize("field", ["backlog", "buffer_size", "max_connections", "completion_threshold"])
    def test_positive_limits(self, field):
        """Test that limits must be positive."""
        with pytest.raises(ValueError):
            ResponderConfig(**{field: 0}).validate()

    def test_negative_probe_timeout(self):
        """Test that the accept probe can't wait a negative time."""
        with pytest.raises(ValueError):
            ResponderConfig(accept_probe_timeout=-0.5).validate()
