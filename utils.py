"""
Utility functions and helpers.
"""

import re
import time
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable, List, Optional, Tuple

from constants import DateOffsets, LimitsAndConstraints
from errors import InputValidationError

logger = logging.getLogger(__name__)

_TICKER_RE = re.compile(LimitsAndConstraints.TICKER_PATTERN)
_SEPARATOR_RE = re.compile(LimitsAndConstraints.TICKER_SEPARATOR_PATTERN)


class ProgressTracker:
    """Progress tracker for the sequential per-ticker fetch loop."""

    def __init__(self, total: int, description: str = "Processing") -> None:
        """
        Initializes the ProgressTracker.

        Args:
            total (int): The total number of items to track.
            description (str): A description of the operation being tracked.
        """
        self.total = total
        self.current = 0
        self.description = description
        self.start_time = time.time()

    def update(self, item: str, success: bool = True) -> None:
        """
        Records one processed item.

        Args:
            item (str): The item being processed.
            success (bool): Whether the operation was successful.
        """
        self.current += 1
        elapsed = time.time() - self.start_time
        status = "ok" if success else "failed"
        logger.info(
            f"[{self.current}/{self.total}] {item} {status} | Elapsed: {elapsed:.1f}s"
        )

    def complete(self) -> None:
        """
        Marks the progress as complete.
        """
        elapsed = time.time() - self.start_time
        logger.info(f"{self.description} complete in {elapsed:.1f}s")


@dataclass(frozen=True)
class TickerLimit:
    """Outcome of a capacity check."""

    can_add: int
    exceeded: bool
    available_slots: int


def is_valid_ticker(ticker: Any) -> bool:
    """
    Checks whether a value is an acceptable ticker symbol.

    Surrounding whitespace and letter case are ignored. Anything that is not a
    string of 1-5 Latin letters is rejected.

    Args:
        ticker: The candidate symbol.

    Returns:
        bool: True if the value is a valid ticker symbol.

    Examples:
        >>> is_valid_ticker(" tsla ")
        True
        >>> is_valid_ticker("TS1A")
        False
    """
    if not ticker or not isinstance(ticker, str):
        return False
    return bool(_TICKER_RE.match(ticker.strip().upper()))


def validate_ticker_symbol(ticker: Any) -> str:
    """
    Validates and normalizes a single ticker symbol.

    This is the centralized ticker validation logic used across the application.

    Args:
        ticker: The ticker symbol to validate.

    Returns:
        str: The validated ticker symbol (uppercased and stripped).

    Raises:
        InputValidationError: If the ticker is empty or not 1-5 letters.
    """
    if not isinstance(ticker, str) or not ticker.strip():
        raise InputValidationError("Ticker cannot be empty")

    normalized = ticker.strip().upper()
    if not _TICKER_RE.match(normalized):
        raise InputValidationError(
            f"Invalid ticker '{normalized}'. Use 1-5 letters (e.g., TSLA)."
        )
    return normalized


def parse_ticker_input(raw: Any) -> List[str]:
    """
    Splits free-text input into candidate ticker symbols.

    Supports comma-separated and space-separated formats, in any mix.
    Candidates are uppercased but not yet validated.

    Args:
        raw: The input string (e.g., "TSLA, PLTR, ASTS").

    Returns:
        List[str]: The candidates in input order.
    """
    if not raw or not isinstance(raw, str):
        return []
    tokens = (token.strip().upper() for token in _SEPARATOR_RE.split(raw))
    return [token for token in tokens if token]


def filter_valid_tickers(tickers: Iterable[str]) -> Tuple[List[str], List[str]]:
    """
    Partitions tickers into valid (uppercased) and invalid (as given).

    Args:
        tickers: The candidate symbols.

    Returns:
        Tuple[List[str], List[str]]: The valid and invalid lists.
    """
    valid: List[str] = []
    invalid: List[str] = []
    for ticker in tickers:
        if is_valid_ticker(ticker):
            valid.append(ticker.strip().upper())
        else:
            invalid.append(ticker)
    return valid, invalid


def check_ticker_limit(
    current_count: int,
    requested_count: int,
    max_tickers: int = LimitsAndConstraints.DEFAULT_MAX_TICKERS,
) -> TickerLimit:
    """
    Checks how many new tickers fit under the limit.

    Args:
        current_count (int): Number of tickers already selected.
        requested_count (int): Number of tickers the user wants to add.
        max_tickers (int): Maximum allowed tickers.

    Returns:
        TickerLimit: How many can be added, whether the request exceeds the
        limit, and the raw number of free slots (negative when over capacity).
    """
    available_slots = max_tickers - current_count
    can_add = max(0, min(requested_count, available_slots))
    exceeded = requested_count > available_slots
    return TickerLimit(can_add=can_add, exceeded=exceeded, available_slots=available_slots)


def remove_duplicate_tickers(
    tickers: Iterable[str], existing_tickers: Optional[Iterable[str]] = None
) -> List[str]:
    """
    Removes repeated tickers and those already tracked, case-insensitively.

    Args:
        tickers: The ticker symbols to filter.
        existing_tickers: Already tracked tickers.

    Returns:
        List[str]: Uppercased unique tickers, in first-seen order.
    """
    existing = {t.upper() for t in (existing_tickers or [])}
    seen = set()
    unique = []
    for ticker in tickers:
        upper = ticker.upper()
        if upper not in existing and upper not in seen:
            seen.add(upper)
            unique.append(upper)
    return unique


def format_date(value: date) -> str:
    """Formats a date as YYYY-MM-DD."""
    return value.strftime(DateOffsets.DATE_FORMAT)


def get_date_n_days_ago(n: int, today: Optional[date] = None) -> str:
    """
    Returns the date n days before today as YYYY-MM-DD.

    Args:
        n (int): Number of days ago (0 is today).
        today (Optional[date]): Reference date, defaults to the local date.

    Returns:
        str: The formatted date.
    """
    reference = today if today is not None else date.today()
    return format_date(reference - timedelta(days=n))
