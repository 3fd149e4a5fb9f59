"""
Session orchestrator coordinating ticker selection, data fetching and report generation.
"""

import time
import logging
from config import Config
from models import AddTickersResponse, DateRange, ReportResponse, StatusMessage
from fetcher import MarketDataFetcher
from ticker_set import TickerSelection
from llm_interface import ReportLLMInterface
from html_generator import HTMLGenerator
from typing import Callable, Optional
from constants import Messages
from errors import InputValidationError, LookupFailure, ReportGenerationError

logger = logging.getLogger(__name__)


class StockPredictionOrchestrator:
    """One user session: a ticker selection and the pipeline that reports on it."""

    def __init__(
        self,
        config: Config,
        fetcher: Optional[MarketDataFetcher] = None,
        llm: Optional[ReportLLMInterface] = None,
        html_gen: Optional[HTMLGenerator] = None,
        date_range: Optional[DateRange] = None,
        status_callback: Optional[Callable[[StatusMessage], None]] = None,
    ) -> None:
        """
        Initializes the orchestrator.

        Args:
            config (Config): The configuration object.
            fetcher: Market data fetcher (built from config if None).
            llm: Report generator (built from config if None).
            html_gen: HTML page generator (built from config if None).
            date_range: Session date range (computed from config offsets if None).
            status_callback: Receives progress messages while a report is built.
        """
        self.config = config
        self.selection = TickerSelection(max_tickers=config.max_tickers)
        self.date_range = date_range or DateRange.from_offsets(
            config.start_days_ago, config.end_days_ago
        )
        self.fetcher = fetcher or MarketDataFetcher(
            api_key=config.polygon_api_key,
            base_url=config.polygon_base_url,
            timeout=config.request_timeout,
        )
        self.llm = llm or ReportLLMInterface(config)
        self.html_gen = html_gen or HTMLGenerator(config)
        self.status_callback = status_callback

        logger.info(
            f"Session started - max tickers: {config.max_tickers}, "
            f"range: {self.date_range.start_date} to {self.date_range.end_date}"
        )

    def __enter__(self) -> "StockPredictionOrchestrator":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _notify(self, text: str, level: str = "info") -> None:
        if self.status_callback is not None:
            self.status_callback(StatusMessage(level, text))

    @property
    def tickers(self):
        return self.selection.tickers

    def add_tickers(self, raw: str) -> AddTickersResponse:
        """
        Adds tickers from free-text input to the session selection.

        Args:
            raw (str): User input, e.g. "TSLA, PLTR ASTS".

        Returns:
            AddTickersResponse: Updated selection and messages.
        """
        return self.selection.add_from_input(raw)

    def reset(self) -> None:
        """Clears the ticker selection."""
        self.selection.clear()

    def generate_report(self) -> ReportResponse:
        """
        Fetches market data for the selection and generates the report.

        Lookup failures for some tickers become warnings; failures for all
        tickers, and any report generation failure, become a single error
        message. The selection is never modified here.

        Returns:
            ReportResponse: The report text and HTML, or an error message.
        """
        tickers = self.selection.tickers
        response = ReportResponse(tickers=tickers)

        self._notify("Fetching stock data...")
        try:
            fetch_result = self.fetcher.fetch_all(
                tickers,
                self.date_range,
                progress_callback=lambda t: self._notify(f"Fetching data for {t}..."),
            )
        except (InputValidationError, LookupFailure) as e:
            logger.error(f"Fetch stage failed: {e}")
            response.messages.append(StatusMessage("error", str(e)))
            return response

        if fetch_result.invalid:
            warning = Messages.PARTIAL_NOT_FOUND.format(
                tickers=", ".join(fetch_result.invalid)
            )
            response.messages.append(StatusMessage("warning", warning))
            self._notify(warning, "warning")
            if self.config.warning_delay_seconds > 0:
                time.sleep(self.config.warning_delay_seconds)

        response.tickers = fetch_result.valid_tickers
        self._notify("Generating AI report...")
        try:
            report = self.llm.generate_report(fetch_result.valid)
        except ReportGenerationError as e:
            logger.error(f"Report generation failed: {e}")
            response.messages.append(StatusMessage("error", str(e)))
            return response

        response.report = report
        if self.config.generate_html:
            try:
                response.html = self.html_gen.render_page(
                    report, response.tickers, self.date_range
                )
            except OSError as e:
                logger.error(f"HTML rendering failed: {e}")
                response.messages.append(
                    StatusMessage("error", Messages.HTML_FAILED.format(error=e))
                )
        return response

    def close(self) -> None:
        """Releases HTTP resources held by the fetcher and LLM client."""
        self.fetcher.close()
        self.llm.close()
