"""Core domain models used across the trading journal.

``Trade`` is the canonical journal record handed to the analytics layer.
Records are owned by the storage layer; analytics code only reads them.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, model_validator

from .enums import TradeStatus, TradeType


class Trade(BaseModel):
    """A single journaled position with entry/exit pricing and annotations."""

    id: str
    symbol: str  # e.g. "RELIANCE", "BTC/USDT"
    trade_type: TradeType = TradeType.LONG

    # Pricing
    entry_price: Decimal
    exit_price: Decimal | None = None  # None while the position is open
    stop_loss: Decimal | None = None
    target_price: Decimal | None = None

    # Sizing
    quantity: int
    position_size: Decimal = Decimal("0")  # Filled from entry_price * quantity when omitted

    # Outcome
    pnl: Decimal | None = None  # Positive = profit
    status: TradeStatus = TradeStatus.OPEN

    # Timing
    entry_time: datetime
    exit_time: datetime | None = None

    # Annotation
    reason: str | None = None
    emotions: list[str] | None = None
    tags: list[str] | None = None
    setup_type: str | None = None  # "breakout", "pullback", ...
    timeframe: str | None = None

    @model_validator(mode="after")
    def _fill_position_size(self) -> Trade:
        if self.position_size <= 0:
            self.position_size = self.entry_price * self.quantity
        return self

    @property
    def is_closed(self) -> bool:
        return self.exit_price is not None

    @property
    def is_open(self) -> bool:
        return self.exit_price is None

    def has_tag(self, tag: str) -> bool:
        """Case-insensitive tag membership."""
        return tag.lower() in _normalized(self.tags)

    def has_emotion(self, *emotions: str) -> bool:
        """True when any of ``emotions`` was recorded (case-insensitive)."""
        recorded = _normalized(self.emotions)
        return any(e.lower() in recorded for e in emotions)


def _normalized(values: list[str] | None) -> set[str]:
    return {v.strip().lower() for v in values or [] if v and v.strip()}


__all__ = ["Trade"]
