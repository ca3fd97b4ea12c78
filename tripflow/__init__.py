"""Trip slot-filling dialogue engine."""

__version__ = "1.0.0"
