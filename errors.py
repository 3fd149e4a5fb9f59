"""
Exception types raised across the report pipeline.

Each stage raises one of these at its seam; the orchestrator turns them into
user-facing status messages.
"""

from typing import List, Optional


class StockReportError(Exception):
    """Base class for all pipeline errors."""


class InputValidationError(StockReportError, ValueError):
    """Raised when user input yields no usable ticker symbols."""


class CapacityError(StockReportError):
    """Raised when the ticker selection is already full."""


class LookupFailure(StockReportError):
    """Raised when market data could not be found for any requested ticker."""

    def __init__(self, message: str, invalid_tickers: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.invalid_tickers = list(invalid_tickers or [])


class ReportGenerationError(StockReportError):
    """Raised when the language model call fails or returns an unusable response."""


class QuotaExceededError(ReportGenerationError):
    """Raised when the model provider reports an exhausted billing quota."""
