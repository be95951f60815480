"""Trading journal core: rule-based trade mistake detection and analytics."""

__version__ = "0.1.0"
