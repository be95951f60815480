"""Trade journal analytics: rule-based self-review.

Key components
--------------
**Detection**

Mistake               One flagged rule violation on a trade
MistakeDetector       Runs the rule set against a trade and its history
detect_trade_mistakes Functional form of ``MistakeDetector.detect``

**Roll-ups**

get_mistake_stats     Totals by category / severity and most common rule
analyse_trades        Per-trade detector results for a whole collection
summarize_analyses    Bulk-run summary

**Reports**

analyse_patterns      Hour / setup / emotion / weekday breakdowns
calculate_weekly_stats, detect_weekly_flags  Weekly report numbers
"""

from .mistakes import RULE_IDS, Mistake, MistakeDetector, detect_trade_mistakes
from .patterns import analyse_patterns
from .stats import (
    MistakeStats,
    TradeAnalysis,
    analyse_trades,
    calculate_mistake_score,
    get_mistake_stats,
    group_by_category,
    group_by_severity,
    summarize_analyses,
)
from .weekly import WeeklyStats, calculate_weekly_stats, detect_weekly_flags

__all__ = [
    "RULE_IDS",
    "Mistake",
    "MistakeDetector",
    "detect_trade_mistakes",
    "MistakeStats",
    "TradeAnalysis",
    "analyse_trades",
    "calculate_mistake_score",
    "get_mistake_stats",
    "group_by_category",
    "group_by_severity",
    "summarize_analyses",
    "analyse_patterns",
    "WeeklyStats",
    "calculate_weekly_stats",
    "detect_weekly_flags",
]
