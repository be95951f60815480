"""Rule-based mistake detection and classification.

Inspects a single trade (plus the rest of the account's trades) against a
fixed rule set and flags common trading errors:

Risk management
    No stop loss, stop too wide, poor reward:risk, over-leveraged position,
    no profit target.
Timing
    Weekend entry, Friday-afternoon entry carried into the weekend,
    late-day entry, premature losing exit.
Psychology
    Revenge trading, overtrading, FOMO entry, emotional trading.
Strategy
    Undocumented trade reason / missing plan, counter-trend entry.

Every rule is a pure function returning a :class:`Mistake` or ``None``.
:class:`MistakeDetector` composes them in a fixed order (grouped by
category) and never mutates the trade or the history it is given.
Thresholds come from :class:`~trade_journal.core.config.DetectorConfig`.

Usage::

    detector = MistakeDetector(DetectorConfig(account_size=50_000))
    mistakes = detector.detect(trade, history=other_trades)
    payload = [m.to_dict() for m in mistakes]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from functools import lru_cache
from typing import Any, Callable, Iterable, Sequence
from zoneinfo import ZoneInfo

from trade_journal.core.config import DetectorConfig
from trade_journal.core.enums import MistakeCategory, Severity
from trade_journal.core.models import Trade

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = DetectorConfig()


@dataclass
class Mistake:
    """A single rule violation found on a trade."""

    id: str                     # Rule id, e.g. "NO_STOPLOSS"
    category: MistakeCategory
    severity: Severity
    title: str                  # Short label for UI badges
    message: str                # What was observed
    suggestion: str             # How to fix it
    confidence: int = 100       # 0-100

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category.value,
            "severity": self.severity.value,
            "title": self.title,
            "message": self.message,
            "suggestion": self.suggestion,
            "confidence": self.confidence,
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def is_price_set(value: Decimal | None) -> bool:
    """Stop/target of None or 0 both mean "not set"."""
    return value is not None and value != 0


@lru_cache(maxsize=32)
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def market_time(ts: datetime, config: DetectorConfig) -> datetime:
    """Wall-clock time in the market's timezone, as a naive datetime.

    Naive timestamps are assumed to be market-local already.
    """
    if ts.tzinfo is None:
        return ts
    if config.market_timezone:
        ts = ts.astimezone(_zone(config.market_timezone))
    return ts.replace(tzinfo=None)


def timeline_key(ts: datetime, config: DetectorConfig) -> datetime:
    """Naive sort key that orders timestamps by the instant they denote.

    Aware timestamps are shifted to the market timezone (UTC when none is
    configured) before the offset is dropped. Naive timestamps pass through.
    """
    if ts.tzinfo is None:
        return ts
    zone = _zone(config.market_timezone) if config.market_timezone else timezone.utc
    return ts.astimezone(zone).replace(tzinfo=None)


def _minutes_between(
    start: datetime, end: datetime, config: DetectorConfig
) -> float:
    if (start.tzinfo is None) == (end.tzinfo is None):
        delta = end - start
    else:
        delta = market_time(end, config) - market_time(start, config)
    return delta.total_seconds() / 60.0


def _fmt(value: Decimal | float) -> str:
    return f"{float(value):,.2f}"


# ---------------------------------------------------------------------------
# Risk management checks
# ---------------------------------------------------------------------------

def check_no_stop_loss(
    trade: Trade, config: DetectorConfig = _DEFAULT_CONFIG
) -> Mistake | None:
    if is_price_set(trade.stop_loss) or trade.is_closed:
        return None
    return Mistake(
        id="NO_STOPLOSS",
        category=MistakeCategory.RISK_MANAGEMENT,
        severity=Severity.HIGH,
        title="No Stop Loss Set",
        message=(
            f"Open {trade.symbol} position has no stop loss, "
            "exposing you to unlimited risk."
        ),
        suggestion=(
            "Always set a stop loss before entering a trade. Risk at most "
            "1-2% of your capital per trade."
        ),
        confidence=100,
    )


def check_wide_stop_loss(
    trade: Trade, config: DetectorConfig = _DEFAULT_CONFIG
) -> Mistake | None:
    if not is_price_set(trade.stop_loss) or trade.entry_price <= 0:
        return None

    risk_pct = float(abs(trade.entry_price - trade.stop_loss) / trade.entry_price * 100)
    if risk_pct <= config.wide_stop_pct:
        return None

    return Mistake(
        id="WIDE_STOPLOSS",
        category=MistakeCategory.RISK_MANAGEMENT,
        severity=Severity.HIGH if risk_pct > config.wide_stop_high_pct else Severity.MEDIUM,
        title="Stop Loss Too Wide",
        message=(
            f"Stop loss is {risk_pct:.1f}% away from entry "
            f"(limit {config.wide_stop_pct:g}%), which widens the risk per trade."
        ),
        suggestion="Keep the stop loss within 2-3% of entry, or reduce size to compensate.",
        confidence=90,
    )


def check_poor_risk_reward(
    trade: Trade, config: DetectorConfig = _DEFAULT_CONFIG
) -> Mistake | None:
    if not (is_price_set(trade.stop_loss) and is_price_set(trade.target_price)):
        return None

    risk = abs(trade.entry_price - trade.stop_loss)
    if risk == 0:
        return None  # Ratio undefined
    reward = abs(trade.target_price - trade.entry_price)
    ratio = float(reward / risk)
    if ratio >= config.min_risk_reward:
        return None

    return Mistake(
        id="POOR_RR_RATIO",
        category=MistakeCategory.RISK_MANAGEMENT,
        severity=Severity.HIGH if ratio < config.poor_risk_reward else Severity.MEDIUM,
        title="Poor Risk:Reward Ratio",
        message=(
            f"Risk:reward of 1:{ratio:.2f} is below the 1:{config.min_risk_reward:g} minimum."
        ),
        suggestion=(
            "Only take trades where the potential profit is at least "
            f"{config.min_risk_reward:g}x the risk."
        ),
        confidence=95,
    )


def check_over_leveraged(
    trade: Trade, config: DetectorConfig = _DEFAULT_CONFIG
) -> Mistake | None:
    if config.account_size <= 0:
        return None

    position_pct = float(trade.position_size) * 100 / config.account_size
    if position_pct <= config.max_position_pct:
        return None

    return Mistake(
        id="OVER_LEVERAGED",
        category=MistakeCategory.RISK_MANAGEMENT,
        severity=Severity.HIGH,
        title="Position Size Too Large",
        message=(
            f"Position of {_fmt(trade.position_size)} is {position_pct:.1f}% of the "
            f"{_fmt(config.account_size)} account (limit {config.max_position_pct:g}%)."
        ),
        suggestion="Keep each position to 2-5% of account value to avoid catastrophic losses.",
        confidence=85,
    )


def check_no_target(
    trade: Trade, config: DetectorConfig = _DEFAULT_CONFIG
) -> Mistake | None:
    if is_price_set(trade.target_price) or trade.is_closed:
        return None
    return Mistake(
        id="NO_TARGET",
        category=MistakeCategory.RISK_MANAGEMENT,
        severity=Severity.MEDIUM,
        title="No Target Price Set",
        message=f"Open {trade.symbol} position has no profit target.",
        suggestion="Define a profit target before entering so you know when to take gains.",
        confidence=85,
    )


# ---------------------------------------------------------------------------
# Timing checks
# ---------------------------------------------------------------------------

def check_weekend_trading(
    trade: Trade, config: DetectorConfig = _DEFAULT_CONFIG
) -> Mistake | None:
    entry = market_time(trade.entry_time, config)
    if entry.weekday() < 5:  # Mon-Fri
        return None
    return Mistake(
        id="WEEKEND_TRADING",
        category=MistakeCategory.TIMING,
        severity=Severity.LOW,
        title="Weekend Trading",
        message=f"Entered on a {entry.strftime('%A')}, when liquidity is thin and spreads are wide.",
        suggestion="Focus on weekday market hours for better execution.",
        confidence=70,
    )


def check_weekend_gap_risk(
    trade: Trade, config: DetectorConfig = _DEFAULT_CONFIG
) -> Mistake | None:
    entry = market_time(trade.entry_time, config)
    if entry.weekday() != 4 or entry.hour < config.friday_cutoff_hour or trade.is_closed:
        return None
    return Mistake(
        id="WEEKEND_GAP_RISK",
        category=MistakeCategory.TIMING,
        severity=Severity.MEDIUM,
        title="Holding Into the Weekend",
        message=(
            f"Position opened Friday at {entry.strftime('%H:%M')} is still open "
            "and exposed to a weekend gap."
        ),
        suggestion="Avoid opening new positions late on Friday, or close them before the weekend.",
        confidence=70,
    )


def check_late_day_trading(
    trade: Trade, config: DetectorConfig = _DEFAULT_CONFIG
) -> Mistake | None:
    entry = market_time(trade.entry_time, config)
    if entry.hour < config.late_entry_hour:
        return None
    return Mistake(
        id="LATE_DAY_TRADING",
        category=MistakeCategory.TIMING,
        severity=Severity.LOW,
        title="Late Day Entry",
        message=(
            f"Entered at {entry.strftime('%H:%M')}, in the volatile final part "
            "of the session."
        ),
        suggestion="Avoid entering new positions late in the session. Let existing positions run.",
        confidence=65,
    )


def check_quick_exit(
    trade: Trade, config: DetectorConfig = _DEFAULT_CONFIG
) -> Mistake | None:
    if trade.exit_time is None or trade.pnl is None or trade.pnl >= 0:
        return None

    duration = _minutes_between(trade.entry_time, trade.exit_time, config)
    if duration >= config.quick_exit_minutes:
        return None

    return Mistake(
        id="QUICK_EXIT",
        category=MistakeCategory.TIMING,
        severity=Severity.MEDIUM,
        title="Premature Exit",
        message=f"Closed at a loss after {duration:.0f} minutes. Possible panic exit.",
        suggestion=(
            "Give trades time to work. Don't exit on small fluctuations "
            "unless the stop loss is hit."
        ),
        confidence=75,
    )


# ---------------------------------------------------------------------------
# Psychology checks
# ---------------------------------------------------------------------------

def check_revenge_trading(
    trade: Trade,
    history: Sequence[Trade],
    config: DetectorConfig = _DEFAULT_CONFIG,
) -> Mistake | None:
    """Flag entries made shortly after a realised loss.

    ``history`` must exclude ``trade`` and be ordered by entry_time
    descending; the first entry strictly before ``trade`` is the
    preceding trade.
    """
    if trade.has_tag("revenge"):
        return Mistake(
            id="REVENGE_TRADING",
            category=MistakeCategory.PSYCHOLOGY,
            severity=Severity.HIGH,
            title="Revenge Trading",
            message="Trade is tagged as a revenge trade.",
            suggestion="Take a break after a losing trade. Clear your mind before the next one.",
            confidence=100,
        )

    previous = next(
        (
            t for t in history
            if _minutes_between(t.entry_time, trade.entry_time, config) > 0
        ),
        None,
    )
    if previous is None or previous.pnl is None or previous.pnl >= 0:
        return None

    gap = _minutes_between(
        previous.exit_time or previous.entry_time, trade.entry_time, config
    )
    if not 0 <= gap < config.revenge_window_minutes:
        return None
    if (config.revenge_requires_size_increase
            and trade.position_size < previous.position_size):
        return None

    return Mistake(
        id="REVENGE_TRADING",
        category=MistakeCategory.PSYCHOLOGY,
        severity=Severity.HIGH,
        title="Possible Revenge Trading",
        message=(
            f"Entered {gap:.0f} minutes after a {_fmt(previous.pnl)} loss on "
            f"{previous.symbol}, with equal or larger size."
            if config.revenge_requires_size_increase
            else f"Entered {gap:.0f} minutes after a {_fmt(previous.pnl)} loss on {previous.symbol}."
        ),
        suggestion=(
            f"Take a {config.revenge_window_minutes:g}-minute break after a losing trade. "
            "Never size up to win a loss back."
        ),
        confidence=80,
    )


def check_overtrading(
    trade: Trade,
    history: Sequence[Trade],
    config: DetectorConfig = _DEFAULT_CONFIG,
) -> Mistake | None:
    """Count same-day entries, the subject trade included."""
    if not history:
        return None

    day = market_time(trade.entry_time, config).date()
    count = 1 + sum(
        1 for t in history if market_time(t.entry_time, config).date() == day
    )
    if count <= config.max_trades_per_day:
        return None

    return Mistake(
        id="OVERTRADING",
        category=MistakeCategory.PSYCHOLOGY,
        severity=(
            Severity.HIGH if count > 2 * config.max_trades_per_day
            else Severity.MEDIUM
        ),
        title="Overtrading Detected",
        message=f"{count} trades entered on {day.isoformat()}. Quality over quantity.",
        suggestion="Limit yourself to 2-3 high-quality setups per day.",
        confidence=85,
    )


def check_fomo_entry(
    trade: Trade, config: DetectorConfig = _DEFAULT_CONFIG
) -> Mistake | None:
    triggers: list[str] = []
    if trade.has_tag("fomo"):
        triggers.append("tagged fomo")
    if trade.has_emotion(*config.fomo_emotions):
        triggers.append("felt " + "/".join(config.fomo_emotions))
    if len((trade.reason or "").strip()) < config.fomo_min_reason_length:
        triggers.append("no real entry reason")
    if not triggers:
        return None

    return Mistake(
        id="FOMO_ENTRY",
        category=MistakeCategory.PSYCHOLOGY,
        severity=Severity.HIGH,
        title="FOMO Entry",
        message=f"Entry looks driven by fear of missing out ({', '.join(triggers)}).",
        suggestion="Wait for your setup to confirm. Missing a move is cheaper than chasing it.",
        confidence=75,
    )


def check_emotional_trade(
    trade: Trade, config: DetectorConfig = _DEFAULT_CONFIG
) -> Mistake | None:
    if not trade.emotions:
        return None

    negative = {e.lower() for e in config.negative_emotions}
    found = sorted({e.strip().lower() for e in trade.emotions} & negative)
    if not found:
        return None

    return Mistake(
        id="EMOTIONAL_TRADE",
        category=MistakeCategory.PSYCHOLOGY,
        severity=Severity.MEDIUM,
        title="Emotional Trading Detected",
        message=f"Traded while feeling {', '.join(found)}. Emotions cloud judgment.",
        suggestion="Only trade when calm and following your plan. Step away when emotional.",
        confidence=90,
    )


# ---------------------------------------------------------------------------
# Strategy checks
# ---------------------------------------------------------------------------

def check_no_trade_reason(
    trade: Trade, config: DetectorConfig = _DEFAULT_CONFIG
) -> Mistake | None:
    reason = (trade.reason or "").strip()
    placeholders = {p.strip().lower() for p in config.placeholder_reasons}
    if len(reason) >= config.min_reason_length and reason.lower() not in placeholders:
        return None

    no_plan = not is_price_set(trade.stop_loss) and not is_price_set(trade.target_price)
    return Mistake(
        id="NO_TRADE_REASON",
        category=MistakeCategory.STRATEGY,
        severity=Severity.HIGH if no_plan else Severity.MEDIUM,
        title="No Trade Plan" if no_plan else "No Trade Reason Documented",
        message=(
            "Entered with no documented reason, stop loss or target."
            if no_plan
            else "Entered without properly documenting the reason/setup."
        ),
        suggestion="Write down why you took the trade. It is the only way to review your setups later.",
        confidence=100,
    )


def check_counter_trend(
    trade: Trade, config: DetectorConfig = _DEFAULT_CONFIG
) -> Mistake | None:
    # Tag-driven only: trend direction is not derived from price data.
    if not trade.has_tag("counter-trend"):
        return None
    return Mistake(
        id="COUNTER_TREND",
        category=MistakeCategory.STRATEGY,
        severity=Severity.MEDIUM,
        title="Counter-Trend Trade",
        message="Trading against the trend is riskier and has a lower win rate.",
        suggestion="Favour trend-following setups.",
        confidence=70,
    )


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

# (rule id, check, takes history) in reporting order
_RULES: tuple[tuple[str, Callable[..., Mistake | None], bool], ...] = (
    ("NO_STOPLOSS", check_no_stop_loss, False),
    ("WIDE_STOPLOSS", check_wide_stop_loss, False),
    ("POOR_RR_RATIO", check_poor_risk_reward, False),
    ("OVER_LEVERAGED", check_over_leveraged, False),
    ("NO_TARGET", check_no_target, False),
    ("WEEKEND_TRADING", check_weekend_trading, False),
    ("WEEKEND_GAP_RISK", check_weekend_gap_risk, False),
    ("LATE_DAY_TRADING", check_late_day_trading, False),
    ("QUICK_EXIT", check_quick_exit, False),
    ("REVENGE_TRADING", check_revenge_trading, True),
    ("OVERTRADING", check_overtrading, True),
    ("FOMO_ENTRY", check_fomo_entry, False),
    ("EMOTIONAL_TRADE", check_emotional_trade, False),
    ("NO_TRADE_REASON", check_no_trade_reason, False),
    ("COUNTER_TREND", check_counter_trend, False),
)

RULE_IDS: tuple[str, ...] = tuple(rule_id for rule_id, _, _ in _RULES)


class MistakeDetector:
    """Run every rule against a trade and collect what fired.

    Parameters
    ----------
    config : DetectorConfig | None
        Threshold table.  Defaults to ``DetectorConfig()``.
    """

    def __init__(self, config: DetectorConfig | None = None) -> None:
        self._config = config if config is not None else DetectorConfig()
        self._disabled = frozenset(self._config.disabled_rules)

    @property
    def config(self) -> DetectorConfig:
        return self._config

    def prepare_history(
        self, trade: Trade, history: Iterable[Trade]
    ) -> list[Trade]:
        """Drop ``trade`` itself and order the rest most-recent first."""
        config = self._config
        return sorted(
            (t for t in history if t.id != trade.id),
            key=lambda t: timeline_key(t.entry_time, config),
            reverse=True,
        )

    def detect(
        self, trade: Trade, history: Iterable[Trade] = ()
    ) -> list[Mistake]:
        """Return the mistakes found on ``trade`` in reporting order."""
        ordered = self.prepare_history(trade, history)

        mistakes: list[Mistake] = []
        for rule_id, check, takes_history in _RULES:
            if rule_id in self._disabled:
                continue
            if takes_history:
                mistake = check(trade, ordered, self._config)
            else:
                mistake = check(trade, self._config)
            if mistake is not None:
                mistakes.append(mistake)

        logger.debug(
            "Trade %s (%s): %d mistakes against %d history trades",
            trade.id, trade.symbol, len(mistakes), len(ordered),
        )
        return mistakes


def detect_trade_mistakes(
    trade: Trade,
    history: Iterable[Trade] = (),
    config: DetectorConfig | None = None,
) -> list[Mistake]:
    """Functional form of :meth:`MistakeDetector.detect`."""
    return MistakeDetector(config).detect(trade, history)
