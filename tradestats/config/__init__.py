"""
Configuration Package for Trade Statistics

Provides the run configuration schema, YAML/JSON loading, and environment
management with logging setup.

Usage:
    from tradestats.config import load_config, configure_logging

    configure_logging()
    config = load_config("stats.yaml")
    result = engine.run(config)
"""

from tradestats.config.config_schema import (
    # Enums
    TradeDefinition,
    TradeStatsUse,
    DailyStatsUse,
    StatsMode,
    # Config Classes
    StatsConfig,
    # Validation
    ConfigValidator,
    ConfigValidationError,
    parse_option,
    validate_config,
)

from tradestats.config.config_loader import (
    ConfigLoader,
    load_config,
    load_config_string,
)

from tradestats.config.environment import (
    Environment,
    EnvironmentSettings,
    EnvironmentManager,
    get_environment,
    get_settings,
    set_environment,
    validate_settings,
    configure_logging,
)

__all__ = [
    # Schema Enums
    "TradeDefinition",
    "TradeStatsUse",
    "DailyStatsUse",
    "StatsMode",
    # Config Classes
    "StatsConfig",
    # Validation
    "ConfigValidator",
    "ConfigValidationError",
    "parse_option",
    "validate_config",
    # Loader
    "ConfigLoader",
    "load_config",
    "load_config_string",
    # Environment
    "Environment",
    "EnvironmentSettings",
    "EnvironmentManager",
    "get_environment",
    "get_settings",
    "set_environment",
    "validate_settings",
    "configure_logging",
]
