"""Mistake roll-ups across a collection of trades.

Every call recomputes from scratch: each trade is run through the
detector with the rest of the collection as its history, and the
results are tallied by category, severity and rule id.

Usage::

    stats = get_mistake_stats(trades)
    stats.model_dump(by_alias=True)
    # {"totalMistakes": 7, "byCategory": {...}, "bySeverity": {...},
    #  "mostCommon": "NO_STOPLOSS"}
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict, Field

from trade_journal.core.config import DetectorConfig
from trade_journal.core.enums import MistakeCategory, Severity
from trade_journal.core.models import Trade

from .mistakes import Mistake, MistakeDetector

logger = logging.getLogger(__name__)

NO_MISTAKES = "None"  # mostCommon sentinel

# Severity weights for the per-trade mistake score
SEVERITY_WEIGHTS = {Severity.HIGH: 10, Severity.MEDIUM: 5, Severity.LOW: 2}


def _zero_categories() -> dict[str, int]:
    return {c.value: 0 for c in MistakeCategory}


def _zero_severities() -> dict[str, int]:
    return {s.value: 0 for s in Severity}


class MistakeStats(BaseModel):
    """Aggregate mistake exposure of a trade collection."""

    model_config = ConfigDict(populate_by_name=True)

    total_mistakes: int = Field(default=0, alias="totalMistakes")
    by_category: dict[str, int] = Field(default_factory=_zero_categories, alias="byCategory")
    by_severity: dict[str, int] = Field(default_factory=_zero_severities, alias="bySeverity")
    most_common: str = Field(default=NO_MISTAKES, alias="mostCommon")


@dataclass
class TradeAnalysis:
    """Rule-based result for one trade in a bulk run."""

    trade_id: str
    symbol: str
    mistakes: list[Mistake] = field(default_factory=list)

    @property
    def total_mistakes(self) -> int:
        return len(self.mistakes)

    @property
    def high_severity_count(self) -> int:
        return sum(1 for m in self.mistakes if m.severity == Severity.HIGH)

    @property
    def score(self) -> int:
        return calculate_mistake_score(self.mistakes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "trade_id": self.trade_id,
            "symbol": self.symbol,
            "rule_mistakes": [m.to_dict() for m in self.mistakes],
            "total_mistakes": self.total_mistakes,
            "high_severity_count": self.high_severity_count,
            "mistake_score": self.score,
        }


# ---------------------------------------------------------------------------
# Grouping helpers
# ---------------------------------------------------------------------------

def group_by_category(mistakes: Sequence[Mistake]) -> dict[str, list[Mistake]]:
    """Bucket mistakes under every category (empty lists included)."""
    groups: dict[str, list[Mistake]] = {c.value: [] for c in MistakeCategory}
    for m in mistakes:
        groups[m.category.value].append(m)
    return groups


def group_by_severity(mistakes: Sequence[Mistake]) -> dict[str, list[Mistake]]:
    """Bucket mistakes under every severity, most severe first."""
    groups: dict[str, list[Mistake]] = {
        s.value: [] for s in (Severity.HIGH, Severity.MEDIUM, Severity.LOW)
    }
    for m in mistakes:
        groups[m.severity.value].append(m)
    return groups


def calculate_mistake_score(mistakes: Sequence[Mistake]) -> int:
    """Weighted badness: high = 10, medium = 5, low = 2."""
    return sum(SEVERITY_WEIGHTS[m.severity] for m in mistakes)


# ---------------------------------------------------------------------------
# Collection-wide analysis
# ---------------------------------------------------------------------------

def analyse_trades(
    trades: Sequence[Trade],
    config: DetectorConfig | None = None,
) -> list[TradeAnalysis]:
    """Run the detector over every trade, each against all the others."""
    detector = MistakeDetector(config)
    return [
        TradeAnalysis(
            trade_id=trade.id,
            symbol=trade.symbol,
            mistakes=detector.detect(trade, trades),
        )
        for trade in trades
    ]


def get_mistake_stats(
    trades: Sequence[Trade],
    config: DetectorConfig | None = None,
) -> MistakeStats:
    """Tally mistakes over ``trades``.

    ``most_common`` is the rule id that fired most often; ties go to the
    lexicographically smallest id.
    """
    stats = MistakeStats()
    by_rule: Counter[str] = Counter()

    for analysis in analyse_trades(trades, config):
        for m in analysis.mistakes:
            stats.total_mistakes += 1
            stats.by_category[m.category.value] += 1
            stats.by_severity[m.severity.value] += 1
            by_rule[m.id] += 1

    if by_rule:
        stats.most_common = min(by_rule.items(), key=lambda kv: (-kv[1], kv[0]))[0]

    logger.debug(
        "Mistake stats over %d trades: total=%d most_common=%s",
        len(trades), stats.total_mistakes, stats.most_common,
    )
    return stats


def summarize_analyses(analyses: Sequence[TradeAnalysis]) -> dict[str, Any]:
    """Bulk-run summary: totals, averages and per-category counts."""
    total = sum(a.total_mistakes for a in analyses)
    categories = _zero_categories()
    for a in analyses:
        for m in a.mistakes:
            categories[m.category.value] += 1

    return {
        "analyzed": len(analyses),
        "total_mistakes": total,
        "high_severity_mistakes": sum(a.high_severity_count for a in analyses),
        "avg_mistakes_per_trade": round(total / len(analyses), 1) if analyses else 0.0,
        "mistake_categories": categories,
    }
