"""Custom exception hierarchy for the trading journal."""


class JournalError(Exception):
    """Base exception for all trading journal errors."""


# --- Configuration ---
class ConfigError(JournalError):
    """Invalid or missing configuration."""


# --- Trade data ---
class TradeDataError(JournalError):
    """Trade records could not be loaded or validated."""


class TradeNotFoundError(TradeDataError):
    """Requested trade id is not present in the supplied records."""

    def __init__(self, trade_id: str):
        self.trade_id = trade_id
        super().__init__(f"Trade not found: {trade_id}")
