"""Weekly performance statistics and heuristic weekly flags.

Feeds the weekly report: headline numbers for the trades of one week
plus a short list of plain-language warnings.

Usage::

    stats = calculate_weekly_stats(week_trades)
    flags = detect_weekly_flags(week_trades)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import Any, Sequence

from trade_journal.core.config import DetectorConfig
from trade_journal.core.models import Trade

from .mistakes import is_price_set, timeline_key

logger = logging.getLogger(__name__)

NO_SETUP = "None"
NO_STOP_SHARE = 0.3
MIN_CLOSED_FOR_WIN_RATE = 5
MIN_WIN_RATE_PCT = 40.0


@dataclass
class WeeklyStats:
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    open_trades: int = 0
    total_pnl: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    win_rate: float = 0.0  # Percent of closed trades
    largest_win: float = 0.0
    largest_loss: float = 0.0
    best_setup: str = NO_SETUP
    worst_setup: str = NO_SETUP
    profit_factor: float = 0.0
    avg_risk_reward: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def calculate_weekly_stats(trades: Sequence[Trade]) -> WeeklyStats:
    closed = [t for t in trades if t.is_closed and t.pnl is not None]
    wins = [float(t.pnl) for t in closed if t.pnl > 0]
    losses = [float(t.pnl) for t in closed if t.pnl < 0]

    gross_wins = sum(wins)
    gross_losses = abs(sum(losses))

    setup_pnl: dict[str, float] = defaultdict(float)
    for trade in closed:
        setup_pnl[trade.setup_type or "unknown"] += float(trade.pnl)

    best_setup = worst_setup = NO_SETUP
    if setup_pnl:
        # First-seen wins ties, matching insertion order
        best_setup = max(setup_pnl, key=setup_pnl.__getitem__)
        worst_setup = min(setup_pnl, key=setup_pnl.__getitem__)

    ratios = []
    for trade in closed:
        if not (is_price_set(trade.stop_loss) and is_price_set(trade.target_price)):
            continue
        risk = abs(trade.entry_price - trade.stop_loss)
        reward = abs(trade.target_price - trade.entry_price)
        ratios.append(float(reward / risk) if risk > 0 else 0.0)

    return WeeklyStats(
        total_trades=len(trades),
        winning_trades=len(wins),
        losing_trades=len(losses),
        open_trades=sum(1 for t in trades if t.is_open),
        total_pnl=sum(float(t.pnl) for t in closed),
        avg_win=gross_wins / len(wins) if wins else 0.0,
        avg_loss=gross_losses / len(losses) if losses else 0.0,
        win_rate=len(wins) / len(closed) * 100 if closed else 0.0,
        largest_win=max(wins) if wins else 0.0,
        largest_loss=min(losses) if losses else 0.0,
        best_setup=best_setup,
        worst_setup=worst_setup,
        profit_factor=gross_wins / gross_losses if gross_losses > 0 else gross_wins,
        avg_risk_reward=sum(ratios) / len(ratios) if ratios else 0.0,
    )


def detect_weekly_flags(
    trades: Sequence[Trade],
    config: DetectorConfig | None = None,
) -> list[str]:
    """Plain-language warnings for a week of trades."""
    cfg = config or DetectorConfig()
    flags: list[str] = []
    if not trades:
        return flags

    no_stop = sum(1 for t in trades if not is_price_set(t.stop_loss))
    if no_stop > len(trades) * NO_STOP_SHARE:
        flags.append(f"{no_stop} trades without stop loss - High risk!")

    if len(trades) > cfg.weekly_trade_limit:
        flags.append(f"{len(trades)} trades this week - Possible overtrading")

    large_losses = sum(
        1 for t in trades
        if t.pnl is not None and float(t.pnl) < cfg.large_loss_threshold
    )
    if large_losses:
        flags.append(f"{large_losses} large losses detected - Review risk management")

    closed = [t for t in trades if t.is_closed]
    if len(closed) > MIN_CLOSED_FOR_WIN_RATE:
        win_rate = sum(1 for t in closed if t.pnl is not None and t.pnl > 0) / len(closed) * 100
        if win_rate < MIN_WIN_RATE_PCT:
            flags.append(f"Win rate {win_rate:.1f}% - Below recommended 50%")

    ordered = sorted(trades, key=lambda t: timeline_key(t.entry_time, cfg))
    for prev, curr in zip(ordered, ordered[1:]):
        if prev.pnl is None or prev.pnl >= 0:
            continue
        gap = (
            timeline_key(curr.entry_time, cfg) - timeline_key(prev.entry_time, cfg)
        ).total_seconds() / 60
        if gap < cfg.revenge_window_minutes:
            flags.append(
                "Possible revenge trading detected - trades taken too quickly after losses"
            )
            break

    logger.debug("Weekly flags over %d trades: %d raised", len(trades), len(flags))
    return flags
