"""
Bounded, deduplicated ticker selection for one session.
"""

import logging
from typing import Iterable, Iterator, List

from constants import LimitsAndConstraints, Messages
from errors import CapacityError, InputValidationError
from models import AddResult, AddTickersResponse, StatusMessage
from utils import is_valid_ticker, parse_ticker_input

logger = logging.getLogger(__name__)


class TickerSelection:
    """Ordered set of ticker symbols with a fixed capacity."""

    def __init__(self, max_tickers: int = LimitsAndConstraints.DEFAULT_MAX_TICKERS) -> None:
        """
        Initializes an empty selection.

        Args:
            max_tickers (int): Maximum number of tickers the selection may hold.

        Raises:
            ValueError: If max_tickers is less than 1.
        """
        if max_tickers < 1:
            raise ValueError(f"max_tickers must be at least 1, got {max_tickers}")
        self.max_tickers = max_tickers
        self._tickers: List[str] = []

    def __len__(self) -> int:
        return len(self._tickers)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._tickers))

    def __contains__(self, ticker: object) -> bool:
        return isinstance(ticker, str) and ticker.strip().upper() in self._tickers

    def __repr__(self) -> str:
        return f"TickerSelection({self._tickers!r}, max_tickers={self.max_tickers})"

    @property
    def tickers(self) -> List[str]:
        """A copy of the selected tickers in insertion order."""
        return list(self._tickers)

    @property
    def available_slots(self) -> int:
        return self.max_tickers - len(self._tickers)

    @property
    def is_full(self) -> bool:
        return self.available_slots <= 0

    def clear(self) -> None:
        """Empties the selection."""
        self._tickers.clear()

    def add_candidates(self, candidates: Iterable[str]) -> AddResult:
        """
        Adds candidate symbols in order until the selection is full.

        Invalid candidates are collected and skipped; candidates already in
        the selection are skipped silently.

        Args:
            candidates: Candidate symbols, typically from parse_ticker_input.

        Returns:
            AddResult: Which tickers were added, which were invalid, and
            whether processing stopped at capacity.
        """
        result = AddResult()
        for candidate in candidates:
            if self.is_full:
                result.limit_reached = True
                break

            if not is_valid_ticker(candidate):
                result.invalid.append(str(candidate))
                continue

            ticker = candidate.strip().upper()
            if ticker in self._tickers:
                continue

            self._tickers.append(ticker)
            result.added.append(ticker)

        logger.debug(
            f"Added {result.added}, invalid {result.invalid}, "
            f"limit reached: {result.limit_reached}"
        )
        return result

    def _check_input(self, candidates: List[str]) -> None:
        if not candidates:
            raise InputValidationError(Messages.EMPTY_INPUT)
        if self.is_full:
            raise CapacityError(Messages.LIMIT_FULL.format(max_tickers=self.max_tickers))

    def add_from_input(self, raw: str) -> AddTickersResponse:
        """
        Parses free-text input and applies it to the selection.

        Args:
            raw (str): User input such as "tsla, pltr ASTS".

        Returns:
            AddTickersResponse: The updated selection plus the messages to show.
        """
        candidates = parse_ticker_input(raw)
        try:
            self._check_input(candidates)
        except (InputValidationError, CapacityError) as e:
            logger.info(f"Rejected ticker input {raw!r}: {e}")
            return AddTickersResponse(
                tickers=self.tickers, messages=[StatusMessage("error", str(e))]
            )

        result = self.add_candidates(candidates)
        messages: List[StatusMessage] = []

        if result.invalid and not result.added:
            messages.append(
                StatusMessage(
                    "error",
                    Messages.INVALID_TICKERS.format(tickers=", ".join(result.invalid)),
                )
            )
        elif result.invalid:
            messages.append(
                StatusMessage(
                    "warning",
                    Messages.SKIPPED_INVALID.format(tickers=", ".join(result.invalid)),
                )
            )

        if result.limit_reached:
            messages.append(
                StatusMessage(
                    "warning",
                    Messages.PARTIAL_LIMIT.format(
                        added=len(result.added), max_tickers=self.max_tickers
                    ),
                )
            )

        return AddTickersResponse(
            tickers=self.tickers, messages=messages, added=list(result.added)
        )
