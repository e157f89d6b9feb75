"""
Configuration Schema for Statistics Runs

Defines the enumerated options and the run configuration for trade and daily
statistics, including validation and strict option parsing.

Options are single enumerated values. A list of candidate values is rejected
rather than silently reduced to its first element.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar
import logging

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = errors or []
        super().__init__(message)


class TradeDefinition(str, Enum):
    """What counts as one trade."""

    FLAT_TO_FLAT = "flat.to.flat"
    FLAT_TO_REDUCED = "flat.to.reduced"

    @classmethod
    def parse(cls, value: Any) -> "TradeDefinition":
        return parse_option(cls, value, "trade_definition")


class TradeStatsUse(str, Enum):
    """Values reduced by trade statistics."""

    TXNS = "txns"
    TRADES = "trades"

    @classmethod
    def parse(cls, value: Any) -> "TradeStatsUse":
        return parse_option(cls, value, "use")


class DailyStatsUse(str, Enum):
    """Source of the daily P&L series for daily statistics."""

    EQUITY = "equity"
    TXNS = "txns"

    @classmethod
    def parse(cls, value: Any) -> "DailyStatsUse":
        return parse_option(cls, value, "use")


class StatsMode(str, Enum):
    """Statistics entry point."""

    TRADE = "trade"
    DAILY = "daily"

    @classmethod
    def parse(cls, value: Any) -> "StatsMode":
        return parse_option(cls, value, "mode")


# Accepted spellings beyond the enum values (compared lowercase)
OPTION_ALIASES: Dict[Type[Enum], Dict[str, Enum]] = {
    DailyStatsUse: {
        "eq": DailyStatsUse.EQUITY,
        "cumpl": DailyStatsUse.EQUITY,
        "trades": DailyStatsUse.TXNS,
    },
    TradeDefinition: {
        "flat_to_flat": TradeDefinition.FLAT_TO_FLAT,
        "flat_to_reduced": TradeDefinition.FLAT_TO_REDUCED,
    },
}


def parse_option(enum_cls: Type[E], value: Any, name: str) -> E:
    """
    Parse a single enumerated option value.

    Args:
        enum_cls: Target enum class
        value: Enum member or string
        name: Option name used in error messages

    Returns:
        The matching enum member

    Raises:
        ConfigValidationError: If value is multi-valued, not a string,
                               or not a supported option
    """
    if isinstance(value, enum_cls):
        return value

    valid = [m.value for m in enum_cls]

    if isinstance(value, (list, tuple, set)):
        raise ConfigValidationError(
            f"'{name}' must be a single value, got {value!r}",
            errors=[f"'{name}' must be one of {valid}, not a collection"],
        )

    if not isinstance(value, str):
        raise ConfigValidationError(
            f"'{name}' must be a string, got {type(value).__name__}",
            errors=[f"'{name}' must be one of {valid}"],
        )

    key = value.strip().lower()
    aliases = OPTION_ALIASES.get(enum_cls, {})
    if key in aliases:
        return aliases[key]

    try:
        return enum_cls(key)
    except ValueError:
        raise ConfigValidationError(
            f"Unsupported {name} '{value}'",
            errors=[f"'{name}' must be one of {valid}, got '{value}'"],
        ) from None


@dataclass
class StatsConfig:
    """Complete statistics run configuration."""

    portfolios: List[str]
    symbols: Optional[List[str]] = None
    mode: StatsMode = StatsMode.TRADE

    # Trade statistics
    use: TradeStatsUse = TradeStatsUse.TXNS
    trade_definition: TradeDefinition = TradeDefinition.FLAT_TO_FLAT
    include_zero_days: bool = False
    include_open_trade: bool = True

    # Daily statistics
    daily_use: DailyStatsUse = DailyStatsUse.EQUITY

    # None falls back to the environment settings
    round_digits: Optional[int] = None
    periods_per_year: Optional[int] = None

    extra: Dict[str, Any] = field(default_factory=dict)


class ConfigValidator:
    """Validates statistics run configuration."""

    @classmethod
    def validate(cls, config: StatsConfig) -> List[str]:
        """
        Validate a statistics configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        # Required fields
        if not isinstance(config.portfolios, list) or not config.portfolios:
            errors.append("At least one portfolio is required")
        elif not all(isinstance(p, str) and p for p in config.portfolios):
            errors.append("Portfolio names must be non-empty strings")

        if config.symbols is not None:
            if not isinstance(config.symbols, list) or not config.symbols:
                errors.append("Symbols must be a non-empty list when given")
            elif not all(isinstance(s, str) and s for s in config.symbols):
                errors.append("Symbol names must be non-empty strings")

        # Enumerated options
        for enum_cls, name in (
            (StatsMode, "mode"),
            (TradeStatsUse, "use"),
            (TradeDefinition, "trade_definition"),
            (DailyStatsUse, "daily_use"),
        ):
            try:
                parse_option(enum_cls, getattr(config, name), name)
            except ConfigValidationError as e:
                errors.extend(e.errors)

        if not isinstance(config.include_zero_days, bool):
            errors.append("include_zero_days must be true or false")

        if not isinstance(config.include_open_trade, bool):
            errors.append("include_open_trade must be true or false")

        round_digits = config.round_digits
        if round_digits is not None and (
            not isinstance(round_digits, int) or round_digits < 0
        ):
            errors.append(
                f"round_digits must be a non-negative integer, got {round_digits}"
            )

        periods = config.periods_per_year
        if periods is not None and (not isinstance(periods, int) or periods <= 0):
            errors.append(f"periods_per_year must be positive, got {periods}")

        return errors


def validate_config(config: StatsConfig) -> None:
    """
    Validate configuration and raise exception if invalid.

    Args:
        config: Statistics configuration to validate

    Raises:
        ConfigValidationError: If validation fails
    """
    errors = ConfigValidator.validate(config)
    if errors:
        raise ConfigValidationError(
            f"Configuration validation failed with {len(errors)} error(s)",
            errors=errors,
        )
