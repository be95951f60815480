"""Tests for weekly report statistics and flags."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from trade_journal.core.config import DetectorConfig
from trade_journal.journal.weekly import WeeklyStats, calculate_weekly_stats, detect_weekly_flags


class TestCalculateWeeklyStats:
    def test_numbers(self, make_trade, make_closed_trade, base_time):
        trades = [
            make_closed_trade(pnl=200, entry_time=base_time, setup_type="breakout"),
            make_closed_trade(pnl=-100, entry_time=base_time + timedelta(hours=2),
                              setup_type="reversal"),
            make_closed_trade(pnl=100, entry_time=base_time + timedelta(days=1),
                              setup_type="breakout", stop_loss=None),
            make_trade(entry_time=base_time + timedelta(days=2)),
        ]
        stats = calculate_weekly_stats(trades)
        assert stats.total_trades == 4
        assert stats.winning_trades == 2
        assert stats.losing_trades == 1
        assert stats.open_trades == 1
        assert stats.total_pnl == pytest.approx(200.0)
        assert stats.avg_win == pytest.approx(150.0)
        assert stats.avg_loss == pytest.approx(100.0)
        assert stats.win_rate == pytest.approx(200 / 3)
        assert stats.largest_win == pytest.approx(200.0)
        assert stats.largest_loss == pytest.approx(-100.0)
        assert stats.best_setup == "breakout"
        assert stats.worst_setup == "reversal"
        assert stats.profit_factor == pytest.approx(3.0)
        # Two closed trades with stop+target, both 98/106 on 100 entry
        assert stats.avg_risk_reward == pytest.approx(3.0)

    def test_no_losses_profit_factor_is_gross_wins(self, make_closed_trade):
        stats = calculate_weekly_stats([make_closed_trade(pnl=75)])
        assert stats.profit_factor == pytest.approx(75.0)

    def test_open_count_follows_exit_price(self, make_trade):
        # Exit recorded but status never updated from "open"
        stale = make_trade(exit_price=Decimal("103"), pnl=Decimal("30"))
        assert stale.status.value == "open"
        assert calculate_weekly_stats([stale]).open_trades == 0

    def test_empty_week(self):
        stats = calculate_weekly_stats([])
        assert stats == WeeklyStats()
        assert stats.best_setup == "None"
        assert stats.to_dict()["win_rate"] == 0.0


class TestDetectWeeklyFlags:
    def test_clean_week(self, make_closed_trade, base_time):
        trades = [
            make_closed_trade(pnl=50, entry_time=base_time + timedelta(days=i))
            for i in range(3)
        ]
        assert detect_weekly_flags(trades) == []

    def test_empty_week(self):
        assert detect_weekly_flags([]) == []

    def test_missing_stops(self, make_trade, base_time):
        trades = [
            make_trade(stop_loss=None, entry_time=base_time + timedelta(days=i))
            for i in range(2)
        ] + [make_trade(entry_time=base_time + timedelta(days=3))]
        flags = detect_weekly_flags(trades)
        assert flags == ["2 trades without stop loss - High risk!"]

    def test_too_many_trades(self, make_trade, base_time):
        trades = [make_trade(entry_time=base_time + timedelta(hours=i)) for i in range(21)]
        assert any("Possible overtrading" in f for f in detect_weekly_flags(trades))

    def test_large_losses(self, make_closed_trade, base_time):
        trades = [make_closed_trade(pnl=-1500, entry_time=base_time, quantity=100)]
        assert "1 large losses detected - Review risk management" in detect_weekly_flags(trades)

    def test_low_win_rate(self, make_closed_trade, base_time):
        trades = [
            make_closed_trade(pnl=-10 if i % 3 else 10, entry_time=base_time + timedelta(days=i))
            for i in range(6)
        ]
        assert any(f.startswith("Win rate 33.3%") for f in detect_weekly_flags(trades))

    def test_revenge_flag_raised_once(self, make_closed_trade, base_time):
        trades = [
            make_closed_trade(pnl=-20, entry_time=base_time + timedelta(minutes=10 * i))
            for i in range(4)
        ]
        flags = detect_weekly_flags(trades)
        assert sum("revenge" in f for f in flags) == 1

    def test_revenge_gap_uses_real_instants(self, make_trade, make_closed_trade):
        ist = timezone(timedelta(hours=5, minutes=30))
        trades = [
            make_closed_trade(pnl=-20, entry_time=datetime(2024, 1, 2, 9, 0, tzinfo=timezone.utc)),
            # 09:20Z
            make_trade(entry_time=datetime(2024, 1, 2, 14, 50, tzinfo=ist)),
        ]
        assert any("revenge" in f for f in detect_weekly_flags(trades))

    def test_custom_limits(self, make_closed_trade, base_time):
        config = DetectorConfig(large_loss_threshold=-10)
        trades = [make_closed_trade(pnl=-20, entry_time=base_time, stop_loss=Decimal("97"))]
        assert any("large losses" in f for f in detect_weekly_flags(trades, config))
