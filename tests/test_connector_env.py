"""Tests for connector_env module."""

import logging

import pytest

from update_connector.behavior import OutputOptions
from update_connector.connector_env import ConnectorEnv

ENV_VARS = [
    ConnectorEnv.FORMAT_VAR,
    ConnectorEnv.PRETTY_VAR,
    ConnectorEnv.INDENT_VAR,
    ConnectorEnv.OVERRIDES_VAR,
    ConnectorEnv.LOG_LEVEL_VAR,
    "ENV_FILE",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove connector variables; anything set during the test is removed afterwards."""
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


class TestConnectorEnv:
    """Test reading configuration from the environment."""

    def test_defaults(self, clean_env):
        """Test values when nothing is set."""
        assert ConnectorEnv.get_format() == "json"
        assert ConnectorEnv.get_pretty() is False
        assert ConnectorEnv.get_indent() is None
        assert ConnectorEnv.get_overrides_file() is None
        assert ConnectorEnv.get_output_options() == OutputOptions()

    def test_format(self, clean_env):
        """Test that the format is case-insensitive and checked."""
        clean_env.setenv(ConnectorEnv.FORMAT_VAR, " XML ")
        assert ConnectorEnv.get_format() == "xml"
        clean_env.setenv(ConnectorEnv.FORMAT_VAR, "yaml")
        with pytest.raises(ValueError, match="must be 'json' or 'xml'"):
            ConnectorEnv.get_format()

    @pytest.mark.parametrize("value, expected", [
        ("1", True),
        ("true", True),
        ("Yes", True),
        ("0", False),
        ("off", False),
        ("", False),
    ])
    def test_pretty(self, clean_env, value, expected):
        """Test boolean parsing of the pretty flag."""
        clean_env.setenv(ConnectorEnv.PRETTY_VAR, value)
        assert ConnectorEnv.get_pretty() is expected

    def test_indent(self, clean_env):
        """Test that the indent must be a non-negative integer."""
        clean_env.setenv(ConnectorEnv.INDENT_VAR, "2")
        assert ConnectorEnv.get_indent() == 2
        clean_env.setenv(ConnectorEnv.INDENT_VAR, "two")
        with pytest.raises(ValueError, match="must be an integer"):
            ConnectorEnv.get_indent()
        clean_env.setenv(ConnectorEnv.INDENT_VAR, "-1")
        with pytest.raises(ValueError, match="must not be negative"):
            ConnectorEnv.get_indent()

    def test_output_options(self, clean_env):
        """Test that output options combine pretty and indent."""
        clean_env.setenv(ConnectorEnv.PRETTY_VAR, "true")
        clean_env.setenv(ConnectorEnv.INDENT_VAR, "3")
        assert ConnectorEnv.get_output_options() == OutputOptions(pretty=True, indent_size=3)

    def test_load_env_file(self, clean_env, tmp_path):
        """Test loading variables from a .env file without overwriting set variables."""
        env_file = tmp_path / "connector.env"
        env_file.write_text(
            f"{ConnectorEnv.FORMAT_VAR}=xml\n{ConnectorEnv.INDENT_VAR}=3\n"
        )
        clean_env.setenv(ConnectorEnv.INDENT_VAR, "1")
        ConnectorEnv.load_env(str(env_file))
        assert ConnectorEnv.get_format() == "xml"
        assert ConnectorEnv.get_indent() == 1

    def test_load_missing_env_file(self, clean_env, tmp_path):
        """Test that a missing .env file is not an error."""
        ConnectorEnv.load_env(str(tmp_path / "missing.env"))
        assert ConnectorEnv.get_format() == "json"

    @pytest.mark.parametrize("value, expected", [
        ("DEBUG", logging.DEBUG),
        (" warning ", logging.WARNING),
        ("", logging.INFO),
        ("loud", logging.INFO),
        ("Logger", logging.INFO),
    ])
    def test_log_level(self, clean_env, value, expected):
        """Test that the log level name is case-insensitive and defaults to INFO."""
        clean_env.setenv(ConnectorEnv.LOG_LEVEL_VAR, value)
        assert ConnectorEnv.get_log_level() == expected
