"""
Run Environment and Logging Setup

Resolves the active environment and the defaults that the statistics engine
and the CSV portfolio store fall back on when a call leaves them unset:

    ledger_directory:  Root directory of CSVPortfolioStore
    round_digits:      Decimal places of daily_stats output
    periods_per_year:  Annualization factor of the Sharpe-like ratio
    log_level/log_file: Used by configure_logging()

Each setting is resolved from, in order:
    1. The active environment's section of the settings file
    2. Top-level keys of the settings file
    3. Built-in defaults

The settings file is the YAML file named by TRADESTATS_SETTINGS, or
./tradestats.yaml when the variable is unset. Example:

    ledger_directory: /data/ledgers
    production:
      log_level: WARNING
      log_file: /var/log/tradestats.log
    test:
      ledger_directory: ./fixtures
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging

import yaml

from tradestats.config.config_schema import ConfigValidationError

logger = logging.getLogger(__name__)

ENV_VAR = "TRADESTATS_ENV"
SETTINGS_FILE_VAR = "TRADESTATS_SETTINGS"
DEFAULT_SETTINGS_FILE = "tradestats.yaml"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Environment(str, Enum):
    """Available environments."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


@dataclass
class EnvironmentSettings:
    """Resolved defaults for one environment."""

    name: Environment
    ledger_directory: Optional[str] = None
    round_digits: int = 2
    periods_per_year: int = 252
    log_level: str = "INFO"
    log_file: Optional[str] = None


SETTING_KEYS = (
    "ledger_directory",
    "round_digits",
    "periods_per_year",
    "log_level",
    "log_file",
)

DEFAULT_LOG_LEVELS: Dict[Environment, str] = {
    Environment.DEVELOPMENT: "DEBUG",
    Environment.STAGING: "INFO",
    Environment.PRODUCTION: "WARNING",
    Environment.TEST: "DEBUG",
}


def validate_settings(settings: EnvironmentSettings) -> List[str]:
    """
    Check resolved settings.

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    if not isinstance(settings.round_digits, int) or settings.round_digits < 0:
        errors.append(
            f"round_digits must be a non-negative integer, got {settings.round_digits!r}"
        )

    if not isinstance(settings.periods_per_year, int) or settings.periods_per_year <= 0:
        errors.append(
            f"periods_per_year must be a positive integer, got {settings.periods_per_year!r}"
        )

    level = str(settings.log_level).upper()
    if not isinstance(logging.getLevelName(level), int):
        errors.append(f"Unknown log_level '{settings.log_level}'")

    return errors


class EnvironmentManager:
    """Resolves and caches the active environment's settings."""

    _current_env: Optional[Environment] = None
    _settings: Optional[EnvironmentSettings] = None

    @classmethod
    def get_environment(cls) -> Environment:
        """
        Get the active environment.

        Priority:
        1. Explicitly set via set_environment()
        2. TRADESTATS_ENV environment variable
        3. DEVELOPMENT
        """
        if cls._current_env is not None:
            return cls._current_env

        env_str = os.environ.get(ENV_VAR, Environment.DEVELOPMENT.value).lower()
        try:
            return Environment(env_str)
        except ValueError:
            logger.warning(f"Unknown environment '{env_str}', defaulting to development")
            return Environment.DEVELOPMENT

    @classmethod
    def set_environment(cls, env: Environment) -> None:
        """Select the environment and drop cached settings."""
        cls._current_env = env
        cls._settings = None
        logger.info(f"Environment set to: {env.value}")

    @classmethod
    def settings_path(cls) -> Path:
        """Path of the settings file, whether or not it exists."""
        return Path(os.environ.get(SETTINGS_FILE_VAR, DEFAULT_SETTINGS_FILE))

    @classmethod
    def get_settings(cls) -> EnvironmentSettings:
        """
        Resolve settings for the active environment.

        Raises:
            ConfigValidationError: If the settings file is unreadable or a
                                   resolved value is invalid
        """
        if cls._settings is not None:
            return cls._settings

        env = cls.get_environment()
        values: Dict[str, Any] = {"log_level": DEFAULT_LOG_LEVELS[env]}
        values.update(cls._read_settings_file(env))

        settings = EnvironmentSettings(name=env, **values)
        errors = validate_settings(settings)
        if errors:
            raise ConfigValidationError(
                f"Invalid settings for the {env.value} environment", errors=errors
            )

        cls._settings = settings
        return settings

    @classmethod
    def _read_settings_file(cls, env: Environment) -> Dict[str, Any]:
        """Collect overrides for env from the settings file, if present."""
        path = cls.settings_path()
        if not path.exists():
            return {}

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationError(
                f"Settings file {path} is not valid YAML", errors=[str(e)]
            ) from e

        if not isinstance(data, dict):
            raise ConfigValidationError(
                f"Settings file {path} must hold a mapping",
                errors=[f"Expected a mapping, got {type(data).__name__}"],
            )

        section = data.get(env.value) or {}
        overrides = {key: data[key] for key in SETTING_KEYS if key in data}
        overrides.update({key: section[key] for key in SETTING_KEYS if key in section})

        known = set(SETTING_KEYS) | {e.value for e in Environment}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown keys in {path}: {sorted(unknown)}")

        logger.debug(f"Loaded {len(overrides)} setting(s) for {env.value} from {path}")
        return overrides

    @classmethod
    def reset(cls) -> None:
        """Forget the selected environment and cached settings."""
        cls._current_env = None
        cls._settings = None


def get_environment() -> Environment:
    """Get current environment."""
    return EnvironmentManager.get_environment()


def get_settings() -> EnvironmentSettings:
    """Get current environment settings."""
    return EnvironmentManager.get_settings()


def set_environment(env: Environment) -> None:
    """Set current environment."""
    EnvironmentManager.set_environment(env)


def configure_logging(settings: Optional[EnvironmentSettings] = None) -> None:
    """
    Configure the root logger from environment settings.

    A console handler is added when the root logger has none. A file handler
    is added for log_file unless one for the same path is already attached,
    so repeated calls do not duplicate output.
    """
    settings = settings or get_settings()
    log_level = logging.getLevelName(settings.log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    formatter = logging.Formatter(LOG_FORMAT)

    if not root_logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if settings.log_file:
        log_path = os.path.abspath(settings.log_file)
        attached = any(
            isinstance(h, logging.FileHandler) and h.baseFilename == log_path
            for h in root_logger.handlers
        )
        if not attached:
            file_handler = logging.FileHandler(log_path)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

    logger.info(f"Logging configured for {settings.name.value} environment")
