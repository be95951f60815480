"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class DetectorConfig(BaseModel):
    """Thresholds for the rule-based mistake detector.

    This is the single threshold table for every rule; rules never
    carry their own literals.
    """

    # Risk management
    account_size: float = 100_000.0  # Assumed account value for leverage checks
    max_position_pct: float = 10.0  # Position above 10% of account = over-leveraged
    wide_stop_pct: float = 5.0  # Stop further than 5% from entry
    wide_stop_high_pct: float = 10.0  # ... escalates to high severity beyond 10%
    min_risk_reward: float = 2.0  # Reward:risk below this fires
    poor_risk_reward: float = 1.5  # ... and below this is high severity

    # Timing
    market_timezone: str | None = None  # e.g. "Asia/Kolkata"; None = timestamps already local
    late_entry_hour: int = 15  # Entries at/after 15:00 local
    friday_cutoff_hour: int = 14  # Open positions entered Friday afternoon
    quick_exit_minutes: float = 5.0

    # Psychology
    revenge_window_minutes: float = 30.0
    revenge_requires_size_increase: bool = True
    max_trades_per_day: int = 5
    fomo_min_reason_length: int = 10
    negative_emotions: list[str] = Field(
        default_factory=lambda: [
            "fear", "panic", "desperate", "frustrated", "angry", "rushed",
        ]
    )
    fomo_emotions: list[str] = Field(default_factory=lambda: ["fomo", "rushed"])

    # Strategy
    min_reason_length: int = 20
    placeholder_reasons: list[str] = Field(
        default_factory=lambda: ["Imported from Excel"]
    )

    # Weekly report heuristics
    weekly_trade_limit: int = 20
    large_loss_threshold: float = -1000.0

    disabled_rules: list[str] = Field(default_factory=list)  # Rule ids to skip


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "console"  # "json" or "console"


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level application settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    detector: DetectorConfig = Field(default_factory=DetectorConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "TRADE_JOURNAL_", "env_nested_delimiter": "__"}


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.

    Raises:
        ConfigError: ``config_path`` was given but does not exist.
    """
    from .errors import ConfigError

    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        import tomli

        with open(path, "rb") as f:
            data = tomli.load(f)

    if overrides:
        data.update(overrides)

    return Settings(**data)
