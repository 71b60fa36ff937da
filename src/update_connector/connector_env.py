'''
 Process configuration from environment variables (optionally loaded from a .env file).
 This module should not import other update_connector modules apart from behavior,
 so it can be used from anywhere without circular imports.
'''
import logging
import os
from typing import Optional

from dotenv import load_dotenv

from .behavior import OutputOptions

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")


class ConnectorEnv:
    __env_loaded = False

    FORMAT_VAR = "UPDATE_CONNECTOR_FORMAT"
    PRETTY_VAR = "UPDATE_CONNECTOR_PRETTY"
    INDENT_VAR = "UPDATE_CONNECTOR_INDENT"
    OVERRIDES_VAR = "UPDATE_CONNECTOR_OVERRIDES"
    LOG_LEVEL_VAR = "LOGGER_LEVEL"

    @staticmethod
    def load_env(env_file: str = None, reload: bool = False) -> None:
        """
        Load variables from a .env file into the environment, once.

        Variables that are already set in the environment are not overwritten.
        A missing file is not an error; all variables have defaults. An
        explicitly passed env_file is always loaded.
        """
        if ConnectorEnv.__env_loaded and not reload and not env_file:
            return
        if not env_file:
            env_file = os.getenv("ENV_FILE", "./.env")
        if os.path.isfile(env_file):
            logger.debug(f"Loading environment variables from {env_file}")
            load_dotenv(env_file)
        ConnectorEnv.__env_loaded = True

    @staticmethod
    def get_format() -> str:
        value = os.getenv(ConnectorEnv.FORMAT_VAR, "json").strip().lower()
        if value not in ("json", "xml"):
            raise ValueError(f"{ConnectorEnv.FORMAT_VAR} must be 'json' or 'xml', got '{value}'.")
        return value

    @staticmethod
    def get_pretty() -> bool:
        return os.getenv(ConnectorEnv.PRETTY_VAR, "false").strip().lower() in _TRUE_VALUES

    @staticmethod
    def get_indent() -> Optional[int]:
        value = os.getenv(ConnectorEnv.INDENT_VAR, "").strip()
        if not value:
            return None
        try:
            indent = int(value)
        except ValueError:
            raise ValueError(f"{ConnectorEnv.INDENT_VAR} must be an integer, got '{value}'.")
        if indent < 0:
            raise ValueError(f"{ConnectorEnv.INDENT_VAR} must not be negative, got {indent}.")
        return indent

    @staticmethod
    def get_overrides_file() -> Optional[str]:
        return os.getenv(ConnectorEnv.OVERRIDES_VAR) or None

    @staticmethod
    def get_log_level() -> int:
        """Return the level named by LOGGER_LEVEL; unknown names fall back to INFO."""
        name = os.getenv(ConnectorEnv.LOG_LEVEL_VAR, "INFO").strip().upper()
        level = getattr(logging, name, logging.INFO)
        return level if isinstance(level, int) else logging.INFO

    @staticmethod
    def get_output_options() -> OutputOptions:
        return OutputOptions(pretty=ConnectorEnv.get_pretty(), indent_size=ConnectorEnv.get_indent())
