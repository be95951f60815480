"""Test trade file loading."""

import json

import pytest

from trade_journal.core.errors import TradeDataError
from trade_journal.core.file_io import load_trades, parse_trades

RECORD = {
    "id": "t1",
    "symbol": "TCS",
    "entry_price": 3500,
    "quantity": 2,
    "entry_time": "2024-01-02T10:00:00",
}


class TestLoadTrades:
    def test_array(self, tmp_path):
        path = tmp_path / "trades.json"
        path.write_text(json.dumps([RECORD]))
        trades = load_trades(path)
        assert [t.id for t in trades] == ["t1"]

    def test_wrapped(self, tmp_path):
        path = tmp_path / "trades.json"
        path.write_text(json.dumps({"trades": [RECORD, {**RECORD, "id": "t2"}]}))
        assert len(load_trades(path)) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(TradeDataError, match="not found"):
            load_trades(tmp_path / "nope.json")

    def test_bad_json(self, tmp_path):
        path = tmp_path / "trades.json"
        path.write_text("{not json")
        with pytest.raises(TradeDataError, match="not valid JSON"):
            load_trades(path)


class TestParseTrades:
    def test_invalid_record(self):
        with pytest.raises(TradeDataError, match="Invalid trade record"):
            parse_trades([{"id": "t1"}])

    def test_wrong_shape(self):
        with pytest.raises(TradeDataError):
            parse_trades({"items": []})
