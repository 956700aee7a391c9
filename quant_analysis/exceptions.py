"""
Exceptions
==========
Only fatal conditions raise. Missing history, degenerate windows and invalid
valuation assumptions are reported through sentinel values instead.
"""


class QuantAnalysisError(Exception):
    """Base class for all package errors."""


class InsufficientDataError(QuantAnalysisError, ValueError):
    """The bar series is too short to produce any usable output."""

    def __init__(self, available: int, required: int, context: str = "analysis"):
        self.available = available
        self.required = required
        super().__init__(
            f"{context} needs at least {required} bars, got {available}"
        )


class InvalidBarsError(QuantAnalysisError, ValueError):
    """The bar frame is missing required OHLCV columns."""


class UnknownStrategyError(QuantAnalysisError, KeyError):
    """Backtest strategy key is not registered."""

    def __str__(self):
        return str(self.args[0]) if self.args else "unknown strategy"
