"""
Data models for ticker selection, market data and reports.
"""

import re
from datetime import date
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from constants import DateOffsets
from utils import get_date_n_days_ago, validate_ticker_symbol

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# ============================================================================
# PYDANTIC MODELS (With Validation)
# ============================================================================


class TickerRequest(BaseModel):
    """Validated single-ticker market data request."""

    ticker: str = Field(..., min_length=1, description="Stock ticker symbol")

    @field_validator("ticker")
    @classmethod
    def validate_ticker(cls, v: str) -> str:
        """
        Validates the ticker symbol using centralized validation.

        Args:
            v (str): The ticker symbol to validate.

        Returns:
            str: The validated ticker symbol.
        """
        return validate_ticker_symbol(v)


class DateRange(BaseModel):
    """Inclusive calendar date range for an aggregates request. Immutable."""

    model_config = ConfigDict(frozen=True)

    start_date: str = Field(..., description="First day, YYYY-MM-DD")
    end_date: str = Field(..., description="Last day, YYYY-MM-DD")

    @field_validator("start_date", "end_date")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """
        Validates that a date string is a real calendar date in YYYY-MM-DD form.

        Args:
            v (str): The date string.

        Returns:
            str: The unchanged date string.
        """
        if not _DATE_RE.match(v):
            raise ValueError(f"Date '{v}' must use YYYY-MM-DD format")
        date.fromisoformat(v)
        return v

    @model_validator(mode="after")
    def validate_order(self) -> "DateRange":
        """Ensures the start date is strictly before the end date."""
        if self.start_date >= self.end_date:
            raise ValueError(
                f"start_date ({self.start_date}) must be before end_date ({self.end_date})"
            )
        return self

    @classmethod
    def from_offsets(
        cls,
        start_days_ago: int = DateOffsets.START_DAYS_AGO,
        end_days_ago: int = DateOffsets.END_DAYS_AGO,
        today: Optional[date] = None,
    ) -> "DateRange":
        """
        Builds a range from "N days ago" offsets.

        Args:
            start_days_ago (int): Offset of the first day.
            end_days_ago (int): Offset of the last day.
            today (Optional[date]): Reference date, defaults to the local date.

        Returns:
            DateRange: The computed range.
        """
        return cls(
            start_date=get_date_n_days_ago(start_days_ago, today),
            end_date=get_date_n_days_ago(end_days_ago, today),
        )


# ============================================================================
# DATACLASS MODELS (Internal Data Structures)
# ============================================================================


@dataclass
class AddResult:
    """Outcome of adding candidate tickers to a selection."""

    added: List[str] = field(default_factory=list)
    invalid: List[str] = field(default_factory=list)
    limit_reached: bool = False


@dataclass(frozen=True)
class StockDataValidation:
    """Result of checking a market data payload."""

    is_valid: bool
    error: Optional[str] = None


@dataclass
class PriceSeriesResult:
    """Per-ticker fetch outcome: a validated payload or a failure reason."""

    ticker: str
    payload: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.error is None and self.payload is not None


@dataclass
class FetchResult:
    """Aggregate outcome of the fetch stage."""

    valid: List[Tuple[str, Dict[str, Any]]] = field(default_factory=list)
    invalid: List[str] = field(default_factory=list)

    @property
    def valid_tickers(self) -> List[str]:
        return [ticker for ticker, _ in self.valid]


@dataclass(frozen=True)
class StatusMessage:
    """Message shown to the user. Level is "info", "warning" or "error"."""

    level: str
    text: str


@dataclass
class AddTickersResponse:
    """Result of the add-tickers action."""

    tickers: List[str]
    messages: List[StatusMessage] = field(default_factory=list)
    added: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not any(m.level == "error" for m in self.messages)


@dataclass
class ReportResponse:
    """Result of the generate-report action."""

    tickers: List[str] = field(default_factory=list)
    report: Optional[str] = None
    html: Optional[str] = None
    messages: List[StatusMessage] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.report is not None and not any(
            m.level == "error" for m in self.messages
        )

    @property
    def error(self) -> Optional[str]:
        for message in self.messages:
            if message.level == "error":
                return message.text
        return None
