"""Property tests: mistake detector invariants.

Uses hypothesis to check the rule contracts over arbitrary prices,
timestamps and annotation combinations.
"""

from datetime import datetime, timedelta
from decimal import Decimal

from hypothesis import assume, given, settings, strategies as st

from trade_journal.core.models import Trade
from trade_journal.journal.mistakes import (
    MistakeDetector,
    check_no_stop_loss,
    check_overtrading,
    check_poor_risk_reward,
    check_revenge_trading,
)

prices = st.decimals(min_value=Decimal("1"), max_value=Decimal("10000"), places=2)
optional_prices = st.none() | prices
times = st.datetimes(min_value=datetime(2020, 1, 1), max_value=datetime(2030, 1, 1))
words = st.lists(
    st.sampled_from(["fomo", "fear", "calm", "revenge", "counter-trend", "breakout", "Rushed"]),
    max_size=3,
)


@st.composite
def trades(draw, **fixed):
    fields = {
        "id": draw(st.uuids()).hex,
        "symbol": "TEST",
        "trade_type": draw(st.sampled_from(["long", "short"])),
        "entry_price": draw(prices),
        "stop_loss": draw(optional_prices),
        "target_price": draw(optional_prices),
        "quantity": draw(st.integers(min_value=1, max_value=10_000)),
        "entry_time": draw(times),
        "reason": draw(st.none() | st.text(max_size=40)),
        "emotions": draw(st.none() | words),
        "tags": draw(st.none() | words),
    }
    if draw(st.booleans()):
        fields["exit_price"] = draw(prices)
        fields["exit_time"] = fields["entry_time"] + timedelta(minutes=draw(st.integers(0, 600)))
        fields["pnl"] = draw(st.none() | st.decimals(min_value=-5000, max_value=5000, places=2))
    fields.update(fixed)
    return Trade(**fields)


@given(trade=trades(stop_loss=None, exit_price=None, exit_time=None, pnl=None))
def test_open_trade_without_stop_always_flagged(trade):
    assert check_no_stop_loss(trade) is not None


@given(trade=trades(), stop=prices)
def test_trade_with_stop_never_flagged(trade, stop):
    assert check_no_stop_loss(trade.model_copy(update={"stop_loss": stop})) is None


@given(entry=prices, stop=prices, target=prices)
def test_risk_reward_threshold_is_strict(entry, stop, target):
    assume(stop != entry)
    trade = Trade(
        id="rr", symbol="TEST", entry_price=entry, stop_loss=stop,
        target_price=target, quantity=1, entry_time=datetime(2024, 1, 2, 10),
    )
    ratio = abs(target - entry) / abs(entry - stop)
    fired = check_poor_risk_reward(trade) is not None
    assert fired == (float(ratio) < 2.0)


@given(trade=trades(), history=st.lists(trades(), max_size=8))
@settings(max_examples=50)
def test_detection_is_idempotent(trade, history):
    detector = MistakeDetector()
    snapshot = list(history)
    first = detector.detect(trade, history)
    assert detector.detect(trade, history) == first
    assert history == snapshot


@given(trade=trades())
def test_cross_trade_rules_silent_without_history(trade):
    assert check_overtrading(trade, []) is None
    if not trade.has_tag("revenge"):
        assert check_revenge_trading(trade, []) is None


@given(trade=trades(), history=st.lists(trades(), max_size=5))
@settings(max_examples=50)
def test_never_raises_on_sparse_input(trade, history):
    mistakes = MistakeDetector().detect(trade, history)
    for m in mistakes:
        payload = m.to_dict()
        assert payload["severity"] in {"low", "medium", "high"}
        assert payload["category"] in {"RISK_MANAGEMENT", "TIMING", "PSYCHOLOGY", "STRATEGY"}
