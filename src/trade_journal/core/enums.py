"""Enumerations used across the trading journal."""

from enum import Enum


class TradeType(str, Enum):
    LONG = "long"
    SHORT = "short"


class TradeStatus(str, Enum):
    OPEN = "open"
    WIN = "win"
    LOSS = "loss"
    BREAKEVEN = "breakeven"


class MistakeCategory(str, Enum):
    """Rule families, in the order the detector reports them."""

    RISK_MANAGEMENT = "RISK_MANAGEMENT"
    TIMING = "TIMING"
    PSYCHOLOGY = "PSYCHOLOGY"
    STRATEGY = "STRATEGY"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
