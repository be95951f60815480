"""Account-wide behavioural pattern analysis.

Breaks a user's trades down by entry hour, setup, recorded emotion and
weekday, finds the longest losing streak, and counts risk-management
gaps across the whole book.  The result feeds pattern reports and the
external insight generator.

Usage::

    patterns = analyse_patterns(trades)
    patterns["worst_hours"]        # lowest win-rate hours
    patterns["biggest_risk_issue"] # "No Stop Loss", ...
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Sequence

from trade_journal.core.config import DetectorConfig
from trade_journal.core.models import Trade

from .mistakes import is_price_set, market_time, timeline_key

logger = logging.getLogger(__name__)

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

# Share of trades lacking a stop/target that makes it the headline issue
RISK_ISSUE_SHARE = 0.3
MIN_TRADES_PER_HOUR = 2
WORST_HOURS_SHOWN = 3


@dataclass
class _Bucket:
    """Win/loss accumulator for one time or setup bucket."""

    wins: int = 0
    losses: int = 0
    total_pnl: float = 0.0
    symbols: list[str] = field(default_factory=list)

    def record(self, trade: Trade) -> None:
        pnl = float(trade.pnl)
        if pnl > 0:
            self.wins += 1
        else:
            self.losses += 1
        self.total_pnl += pnl
        self.symbols.append(trade.symbol)

    @property
    def win_rate(self) -> float:
        decided = self.wins + self.losses
        return self.wins / decided * 100 if decided else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "wins": self.wins,
            "losses": self.losses,
            "win_rate": round(self.win_rate, 1),
            "total_pnl": round(self.total_pnl, 2),
            "trades": list(self.symbols),
        }


def _is_closed_with_pnl(trade: Trade) -> bool:
    return trade.is_closed and trade.pnl is not None


def _lacks_reason(trade: Trade, config: DetectorConfig) -> bool:
    reason = (trade.reason or "").strip().lower()
    return not reason or reason in {p.strip().lower() for p in config.placeholder_reasons}


def _risk_reward(trade: Trade) -> float | None:
    if not (is_price_set(trade.stop_loss) and is_price_set(trade.target_price)):
        return None
    risk = abs(trade.entry_price - trade.stop_loss)
    if risk == 0:
        return None
    return float(abs(trade.target_price - trade.entry_price) / risk)


def _hourly(trades: Sequence[Trade], config: DetectorConfig) -> dict[int, dict[str, Any]]:
    buckets: dict[int, _Bucket] = defaultdict(_Bucket)
    flags: dict[int, list[str]] = defaultdict(list)

    for trade in trades:
        hour = market_time(trade.entry_time, config).hour
        bucket = buckets[hour]  # Hours with only open trades still appear
        if _is_closed_with_pnl(trade):
            bucket.record(trade)
        if not is_price_set(trade.stop_loss):
            flags[hour].append("No Stop Loss")
        if not is_price_set(trade.target_price):
            flags[hour].append("No Target")
        if _lacks_reason(trade, config):
            flags[hour].append("No Reason")

    return {
        hour: {**bucket.to_dict(), "mistakes": flags[hour]}
        for hour, bucket in sorted(buckets.items())
    }


def _worst_hours(hourly: dict[int, dict[str, Any]]) -> list[dict[str, Any]]:
    candidates = [
        {
            "hour": hour,
            "win_rate": stats["win_rate"],
            "mistakes": len(stats["mistakes"]),
            "pnl": stats["total_pnl"],
            "trade_count": len(stats["trades"]),
        }
        for hour, stats in hourly.items()
        if len(stats["trades"]) >= MIN_TRADES_PER_HOUR
    ]
    candidates.sort(key=lambda h: (h["win_rate"], h["hour"]))
    return candidates[:WORST_HOURS_SHOWN]


def _setups(closed: Sequence[Trade], config: DetectorConfig) -> dict[str, dict[str, Any]]:
    result: dict[str, dict[str, Any]] = {}
    grouped: dict[str, list[Trade]] = defaultdict(list)
    for trade in closed:
        grouped[trade.setup_type or "unknown"].append(trade)

    for setup, trades in grouped.items():
        bucket = _Bucket()
        mistakes = {"no_stop_loss": 0, "no_target": 0, "poor_rr": 0, "no_reason": 0}
        for trade in trades:
            bucket.record(trade)
            if not is_price_set(trade.stop_loss):
                mistakes["no_stop_loss"] += 1
            if not is_price_set(trade.target_price):
                mistakes["no_target"] += 1
            if _lacks_reason(trade, config):
                mistakes["no_reason"] += 1
            ratio = _risk_reward(trade)
            if ratio is not None and ratio < config.poor_risk_reward:
                mistakes["poor_rr"] += 1

        wins = [float(t.pnl) for t in trades if t.pnl > 0]
        losses = [float(t.pnl) for t in trades if t.pnl < 0]
        result[setup] = {
            **bucket.to_dict(),
            "avg_win": round(sum(wins) / len(wins), 2) if wins else 0.0,
            "avg_loss": round(abs(sum(losses) / len(losses)), 2) if losses else 0.0,
            "mistakes": mistakes,
        }
    return result


def _emotions(trades: Sequence[Trade]) -> dict[str, dict[str, Any]]:
    counts: dict[str, int] = defaultdict(int)
    buckets: dict[str, _Bucket] = defaultdict(_Bucket)
    for trade in trades:
        for emotion in trade.emotions or []:
            key = emotion.strip().lower()
            if not key:
                continue
            counts[key] += 1
            if _is_closed_with_pnl(trade):
                buckets[key].record(trade)

    return {
        emotion: {"count": counts[emotion], **buckets[emotion].to_dict()}
        for emotion in sorted(counts)
    }


def _loss_streak(closed: Sequence[Trade]) -> dict[str, Any]:
    best: list[str] = []
    current: list[str] = []
    for trade in closed:
        if trade.pnl < 0:
            current.append(trade.symbol)
            if len(current) > len(best):
                best = list(current)
        else:
            current = []
    return {"max_streak": len(best), "trades": best}


def _weekdays(closed: Sequence[Trade], config: DetectorConfig) -> dict[str, dict[str, Any]]:
    buckets: dict[int, _Bucket] = defaultdict(_Bucket)
    for trade in closed:
        buckets[market_time(trade.entry_time, config).weekday()].record(trade)
    return {DAY_NAMES[day]: b.to_dict() for day, b in sorted(buckets.items())}


def _risk_metrics(trades: Sequence[Trade], config: DetectorConfig) -> dict[str, int]:
    poor_rr = 0
    over_leveraged = 0
    for trade in trades:
        ratio = _risk_reward(trade)
        if ratio is not None and ratio < config.poor_risk_reward:
            poor_rr += 1
        if (config.account_size > 0
                and float(trade.position_size) * 100 / config.account_size > config.max_position_pct):
            over_leveraged += 1

    return {
        "trades_without_stop_loss": sum(1 for t in trades if not is_price_set(t.stop_loss)),
        "trades_without_target": sum(1 for t in trades if not is_price_set(t.target_price)),
        "trades_without_reason": sum(1 for t in trades if _lacks_reason(t, config)),
        "poor_risk_reward_trades": poor_rr,
        "over_leveraged_trades": over_leveraged,
    }


def biggest_risk_issue(risk_metrics: dict[str, int], total_trades: int) -> str:
    """Headline risk issue for summaries."""
    if risk_metrics["trades_without_stop_loss"] > total_trades * RISK_ISSUE_SHARE:
        return "No Stop Loss"
    if risk_metrics["trades_without_target"] > total_trades * RISK_ISSUE_SHARE:
        return "No Target Price"
    return "Good Risk Management"


def analyse_patterns(
    trades: Sequence[Trade],
    config: DetectorConfig | None = None,
) -> dict[str, Any]:
    """Compute the full pattern breakdown for a user's trades."""
    cfg = config or DetectorConfig()
    ordered = sorted(trades, key=lambda t: timeline_key(t.entry_time, cfg))
    closed = [t for t in ordered if _is_closed_with_pnl(t)]

    hourly = _hourly(ordered, cfg)
    risk = _risk_metrics(ordered, cfg)

    logger.debug("Pattern analysis over %d trades (%d closed)", len(ordered), len(closed))
    return {
        "hourly_performance": hourly,
        "worst_hours": _worst_hours(hourly),
        "setup_analysis": _setups(closed, cfg),
        "emotional_patterns": _emotions(ordered),
        "loss_streak": _loss_streak(closed),
        "day_of_week_performance": _weekdays(closed, cfg),
        "risk_metrics": risk,
        "biggest_risk_issue": biggest_risk_issue(risk, len(ordered)),
        "total_trades": len(ordered),
        "closed_trades": len(closed),
        "winning_trades": sum(1 for t in closed if t.pnl > 0),
        "losing_trades": sum(1 for t in closed if t.pnl < 0),
    }
