"""
Configuration Loader for Statistics Runs

Loads statistics run configurations from YAML and JSON files,
validates them, and converts them to StatsConfig objects.

Example YAML:
    mode: trade
    portfolios: [demo]
    symbols: [ES, NQ]
    use: trades
    trade_definition: flat.to.flat
    include_zero_days: false
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging

import yaml

from tradestats.config.config_schema import (
    ConfigValidationError,
    ConfigValidator,
    DailyStatsUse,
    StatsConfig,
    StatsMode,
    TradeDefinition,
    TradeStatsUse,
)

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Loads and parses statistics configuration files."""

    @classmethod
    def load(cls, path: Union[str, Path]) -> StatsConfig:
        """
        Load configuration from file.

        Args:
            path: Path to YAML or JSON configuration file

        Returns:
            Parsed and validated StatsConfig

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigValidationError: If configuration is invalid
            ValueError: If file format is unsupported
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        # Load raw data based on extension
        raw_data = cls._load_file(path)

        # Parse into StatsConfig
        config = cls._parse_config(raw_data)

        # Validate
        errors = ConfigValidator.validate(config)
        if errors:
            raise ConfigValidationError(
                f"Configuration validation failed: {path}", errors=errors
            )

        logger.info(
            f"Loaded {config.mode.value} statistics configuration from {path}"
        )
        return config

    @classmethod
    def load_from_string(cls, content: str, format: str = "yaml") -> StatsConfig:
        """
        Load configuration from string content.

        Args:
            content: YAML or JSON string
            format: "yaml" or "json"

        Returns:
            Parsed and validated StatsConfig
        """
        if format.lower() == "yaml":
            raw_data = yaml.safe_load(content)
        elif format.lower() == "json":
            raw_data = json.loads(content)
        else:
            raise ValueError(f"Unsupported format: {format}")

        config = cls._parse_config(raw_data)

        errors = ConfigValidator.validate(config)
        if errors:
            raise ConfigValidationError(
                "Configuration validation failed", errors=errors
            )

        return config

    @classmethod
    def _load_file(cls, path: Path) -> Dict[str, Any]:
        """Load raw data from file."""
        suffix = path.suffix.lower()

        with open(path, "r") as f:
            if suffix in (".yaml", ".yml"):
                return yaml.safe_load(f)
            elif suffix == ".json":
                return json.load(f)
            else:
                raise ValueError(f"Unsupported file format: {suffix}")

    @staticmethod
    def _as_list(value: Any) -> Optional[List[str]]:
        if value is None:
            return None
        if isinstance(value, str):
            return [value]
        return list(value)

    @classmethod
    def _parse_config(cls, data: Dict[str, Any]) -> StatsConfig:
        """Parse raw dictionary into StatsConfig."""
        if not isinstance(data, dict):
            raise ConfigValidationError(
                "Configuration must be a mapping",
                errors=[f"Expected a mapping, got {type(data).__name__}"],
            )

        mode = StatsMode.parse(data.get("mode", "trade"))

        # 'use' names the daily source in daily mode
        daily_use = data.get("daily_use")
        use = data.get("use", "txns")
        if mode == StatsMode.DAILY and daily_use is None and "use" in data:
            daily_use = use
            use = "txns"

        return StatsConfig(
            portfolios=cls._as_list(data.get("portfolios")) or [],
            symbols=cls._as_list(data.get("symbols")),
            mode=mode,
            use=TradeStatsUse.parse(use),
            trade_definition=TradeDefinition.parse(
                data.get("trade_definition", "flat.to.flat")
            ),
            include_zero_days=data.get("include_zero_days", False),
            include_open_trade=data.get("include_open_trade", True),
            daily_use=DailyStatsUse.parse(daily_use or "equity"),
            round_digits=data.get("round_digits"),
            periods_per_year=data.get("periods_per_year"),
            extra=data.get("extra", {}),
        )


def load_config(path: Union[str, Path]) -> StatsConfig:
    """
    Convenience function to load a configuration file.

    Args:
        path: Path to YAML or JSON config file

    Returns:
        Validated StatsConfig
    """
    return ConfigLoader.load(path)


def load_config_string(content: str, format: str = "yaml") -> StatsConfig:
    """
    Convenience function to load configuration from string.

    Args:
        content: YAML or JSON string
        format: "yaml" or "json"

    Returns:
        Validated StatsConfig
    """
    return ConfigLoader.load_from_string(content, format)
