"""Shared fixtures for the trade-journal test suite."""

from __future__ import annotations

import itertools
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Callable

import pytest

from trade_journal.core.config import DetectorConfig
from trade_journal.core.models import Trade
from trade_journal.journal.mistakes import MistakeDetector

# Tuesday 2024-01-02 10:00, a normal weekday mid-session entry
TUESDAY_10AM = datetime(2024, 1, 2, 10, 0, 0)
CLEAN_REASON = "Breakout above resistance with volume confirmation"

_ids = itertools.count(1)


def _make_trade(**overrides: Any) -> Trade:
    """Build a clean, well-planned open trade; override any field."""
    fields: dict[str, Any] = {
        "id": f"trade_{next(_ids)}",
        "symbol": "RELIANCE",
        "trade_type": "long",
        "entry_price": Decimal("100"),
        "stop_loss": Decimal("98"),
        "target_price": Decimal("106"),
        "quantity": 10,
        "reason": CLEAN_REASON,
        "entry_time": TUESDAY_10AM,
    }
    fields.update(overrides)
    return Trade(**fields)


def _make_closed_trade(
    pnl: float,
    minutes_held: int = 60,
    **overrides: Any,
) -> Trade:
    """A closed trade with exit fields derived from ``pnl``."""
    entry_time = overrides.pop("entry_time", TUESDAY_10AM)
    entry_price = Decimal(str(overrides.pop("entry_price", 100)))
    quantity = overrides.pop("quantity", 10)
    exit_price = entry_price + Decimal(str(pnl)) / quantity
    status = "win" if pnl > 0 else "loss" if pnl < 0 else "breakeven"
    return _make_trade(
        entry_price=entry_price,
        quantity=quantity,
        entry_time=entry_time,
        exit_price=exit_price,
        exit_time=entry_time + timedelta(minutes=minutes_held),
        pnl=Decimal(str(pnl)),
        status=status,
        **overrides,
    )


@pytest.fixture
def base_time() -> datetime:
    return TUESDAY_10AM


@pytest.fixture
def make_trade() -> Callable[..., Trade]:
    return _make_trade


@pytest.fixture
def make_closed_trade() -> Callable[..., Trade]:
    return _make_closed_trade


@pytest.fixture
def config() -> DetectorConfig:
    return DetectorConfig()


@pytest.fixture
def detector(config: DetectorConfig) -> MistakeDetector:
    return MistakeDetector(config)


def ids(mistakes) -> list[str]:
    return [m.id for m in mistakes]


@pytest.fixture
def rule_ids() -> Callable[[list], list[str]]:
    """Extract rule ids from a mistake list."""
    return ids
