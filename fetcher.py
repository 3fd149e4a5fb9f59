"""
Market data fetching from the Polygon.io aggregates API.
"""

import logging
from typing import Any, Callable, Dict, Iterable, Optional
from pydantic import ValidationError
from requests import RequestException, Session
from requests.adapters import HTTPAdapter
from constants import APIEndpoints, Defaults, Messages
from errors import InputValidationError, LookupFailure
from models import (
    DateRange,
    FetchResult,
    PriceSeriesResult,
    StockDataValidation,
    TickerRequest,
)
from utils import ProgressTracker

logger = logging.getLogger(__name__)


def validate_stock_data(data: Optional[Dict[str, Any]]) -> StockDataValidation:
    """
    Checks that an aggregates payload holds at least one daily bar.

    Args:
        data: The decoded API response body.

    Returns:
        StockDataValidation: Validity flag and the reason when invalid.
    """
    if not data:
        return StockDataValidation(is_valid=False, error=Messages.NO_DATA)

    if not isinstance(data, dict):
        return StockDataValidation(is_valid=False, error=Messages.NOT_FOUND)

    if data.get("resultsCount") == 0 or not data.get("results"):
        return StockDataValidation(is_valid=False, error=Messages.NOT_FOUND)

    return StockDataValidation(is_valid=True)


class MarketDataFetcher:
    """Fetches daily aggregates one ticker at a time over a pooled session."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = APIEndpoints.POLYGON_BASE_URL,
        timeout: int = Defaults.REQUEST_TIMEOUT,
        pool_maxsize: int = 4,
        session: Optional[Session] = None,
    ) -> None:
        """
        Initializes the MarketDataFetcher.

        Args:
            api_key (Optional[str]): Polygon.io API key.
            base_url (str): API root URL.
            timeout (int): Request timeout in seconds.
            pool_maxsize (int): The maximum number of pooled connections.
            session (Optional[Session]): Pre-built session, mainly for tests.
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else self._create_session(pool_maxsize)

    def _create_session(self, pool_maxsize: int) -> Session:
        """Create a requests Session with connection pooling and no automatic retries.

        Args:
            pool_maxsize: Max connections per pool

        Returns:
            Configured Session object
        """
        session = Session()

        # One attempt per ticker
        adapter = HTTPAdapter(
            pool_connections=1,
            pool_maxsize=pool_maxsize,
            max_retries=0,
        )
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.headers.update({"Accept": "application/json"})

        logger.debug(f"Created HTTP session with connection pool (size: {pool_maxsize})")
        return session

    def build_url(self, ticker: str, date_range: DateRange) -> str:
        """Returns the aggregates URL for a ticker and range (API key excluded)."""
        path = APIEndpoints.POLYGON_AGGS_PATH.format(
            ticker=ticker,
            start_date=date_range.start_date,
            end_date=date_range.end_date,
        )
        return f"{self.base_url}{path}"

    def fetch_series(self, ticker: str, date_range: DateRange) -> PriceSeriesResult:
        """
        Fetches the daily price series for a single ticker.

        Malformed symbols and failed requests are reported as an invalid
        result so the caller's loop can continue.

        Args:
            ticker (str): The ticker symbol to fetch.
            date_range (DateRange): Inclusive date range.

        Returns:
            PriceSeriesResult: The payload, or the reason it is unusable.
        """
        try:
            ticker = TickerRequest(ticker=ticker).ticker
        except ValidationError:
            name = ticker.strip().upper() if isinstance(ticker, str) else str(ticker)
            logger.warning(f"Rejected malformed ticker {name!r}")
            return PriceSeriesResult(ticker=name, error=Messages.INVALID_SYMBOL)

        url = self.build_url(ticker, date_range)
        logger.debug(f"Fetching aggregates for {ticker} ({date_range.start_date} to {date_range.end_date})")

        try:
            response = self.session.get(
                url, params={"apiKey": self.api_key}, timeout=self.timeout
            )
        except RequestException as e:
            logger.error(f"Network error fetching {ticker}: {e.__class__.__name__}")
            return PriceSeriesResult(ticker=ticker, error=f"Request failed: {e.__class__.__name__}")

        try:
            data = response.json()
        except ValueError:
            logger.error(f"Invalid JSON for {ticker} (HTTP {response.status_code})")
            return PriceSeriesResult(ticker=ticker, error="Invalid JSON response")

        validation = validate_stock_data(data)
        if not validation.is_valid:
            logger.warning(f"{ticker}: {validation.error}")
            return PriceSeriesResult(ticker=ticker, error=validation.error)

        if not response.ok:
            logger.warning(f"{ticker}: HTTP {response.status_code}")
            return PriceSeriesResult(ticker=ticker, error=f"HTTP {response.status_code}")

        logger.debug(f"Fetched {len(data['results'])} bars for {ticker}")
        return PriceSeriesResult(ticker=ticker, payload=data)

    def fetch_all(
        self,
        tickers: Iterable[str],
        date_range: DateRange,
        progress_callback: Optional[Callable[[str], None]] = None,
    ) -> FetchResult:
        """
        Fetches every ticker in order, one request at a time.

        Args:
            tickers: The selected tickers.
            date_range (DateRange): Inclusive date range.
            progress_callback: Called with each ticker before its request.

        Returns:
            FetchResult: Valid (ticker, payload) pairs and invalid tickers.

        Raises:
            InputValidationError: If no tickers were given.
            LookupFailure: If no ticker returned usable data.
        """
        tickers = list(tickers)
        if not tickers:
            raise InputValidationError(Messages.NO_TICKERS_SELECTED)

        result = FetchResult()
        progress = ProgressTracker(len(tickers), "Market data fetch")

        for ticker in tickers:
            if progress_callback is not None:
                progress_callback(ticker)

            series = self.fetch_series(ticker, date_range)
            if series.is_valid:
                result.valid.append((series.ticker, series.payload))
            else:
                result.invalid.append(series.ticker)
            progress.update(series.ticker, success=series.is_valid)

        progress.complete()

        if not result.valid:
            raise LookupFailure(
                Messages.ALL_NOT_FOUND.format(tickers=", ".join(result.invalid)),
                invalid_tickers=result.invalid,
            )

        if result.invalid:
            logger.warning(f"Invalid tickers skipped: {', '.join(result.invalid)}")

        return result

    def close(self) -> None:
        """Closes the HTTP session."""
        self.session.close()
        logger.debug("Closed HTTP session pool")
