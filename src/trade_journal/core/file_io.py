"""Trade file loading.

Reads journal exports: a JSON array of trade objects, or an object with
a ``"trades"`` array (the shape the journal API returns).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from .errors import TradeDataError
from .models import Trade

logger = logging.getLogger(__name__)

_TRADES = TypeAdapter(list[Trade])


def parse_trades(payload: Any) -> list[Trade]:
    """Validate decoded JSON into ``Trade`` records."""
    if isinstance(payload, dict):
        payload = payload.get("trades")
    if not isinstance(payload, list):
        raise TradeDataError("Expected a JSON array of trades or {\"trades\": [...]}")
    try:
        return _TRADES.validate_python(payload)
    except ValidationError as exc:
        raise TradeDataError(f"Invalid trade record: {exc}") from exc


def load_trades(path: str | Path) -> list[Trade]:
    """Load and validate trades from a JSON file."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
    except FileNotFoundError as exc:
        raise TradeDataError(f"Trade file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise TradeDataError(f"{path} is not valid JSON: {exc}") from exc

    trades = parse_trades(payload)
    logger.info("Loaded %d trades from %s", len(trades), path)
    return trades
