"""
Integration tests for orchestrator.py module.

Tests the session workflow with mocked external APIs (Polygon.io, OpenAI).
"""

import pytest
from unittest.mock import Mock, patch

from config import Config
from errors import LookupFailure, QuotaExceededError, ReportGenerationError
from fetcher import MarketDataFetcher
from html_generator import HTMLGenerator
from llm_interface import ReportLLMInterface
from models import DateRange, FetchResult
from orchestrator import StockPredictionOrchestrator


@pytest.fixture
def config():
    return Config(
        openai_api_key="test-api-key",
        polygon_api_key="poly-api-key",
        max_tickers=3,
        warning_delay_seconds=0,
        generate_html=True,
    )


@pytest.fixture
def date_range():
    return DateRange(start_date="2025-12-02", end_date="2025-12-04")


@pytest.fixture
def mock_fetcher():
    return Mock(spec=MarketDataFetcher)


@pytest.fixture
def mock_llm():
    llm = Mock(spec=ReportLLMInterface)
    llm.generate_report.return_value = "## AAPL\n\n- Trend: up"
    return llm


@pytest.fixture
def orchestrator(config, mock_fetcher, mock_llm, date_range):
    return StockPredictionOrchestrator(
        config,
        fetcher=mock_fetcher,
        llm=mock_llm,
        html_gen=HTMLGenerator(config),
        date_range=date_range,
    )


AAPL_DATA = {"resultsCount": 5, "results": [{"c": 1.0}] * 5}


class TestOrchestratorInitialization:
    """Test orchestrator construction."""

    def test_session_state(self, orchestrator, date_range):
        assert orchestrator.tickers == []
        assert orchestrator.selection.max_tickers == 3
        assert orchestrator.date_range == date_range

    def test_date_range_from_config(self, mock_fetcher, mock_llm):
        config = Config(
            openai_api_key="k", polygon_api_key="p", start_days_ago=10, end_days_ago=2
        )
        orchestrator = StockPredictionOrchestrator(config, fetcher=mock_fetcher, llm=mock_llm)

        assert orchestrator.date_range.start_date < orchestrator.date_range.end_date

    def test_builds_default_components(self, config):
        with patch("orchestrator.ReportLLMInterface") as llm_cls, patch(
            "orchestrator.MarketDataFetcher"
        ) as fetcher_cls:
            StockPredictionOrchestrator(config)

        fetcher_cls.assert_called_once_with(
            api_key="poly-api-key",
            base_url="https://api.polygon.io",
            timeout=30,
        )
        llm_cls.assert_called_once_with(config)

    def test_sessions_are_independent(self, config, mock_fetcher, mock_llm):
        first = StockPredictionOrchestrator(config, fetcher=mock_fetcher, llm=mock_llm)
        second = StockPredictionOrchestrator(config, fetcher=mock_fetcher, llm=mock_llm)

        first.add_tickers("AAPL")

        assert second.tickers == []

    def test_context_manager_closes(self, config, mock_fetcher, mock_llm):
        with StockPredictionOrchestrator(config, fetcher=mock_fetcher, llm=mock_llm):
            pass

        mock_fetcher.close.assert_called_once()
        mock_llm.close.assert_called_once()


class TestAddTickers:
    """Test the add-tickers action through the orchestrator."""

    def test_add_with_limit(self, orchestrator):
        response = orchestrator.add_tickers("tsla, pltr, ASTS, nvda")

        assert response.tickers == ["TSLA", "PLTR", "ASTS"]
        assert "Only 3 ticker(s) added" in response.messages[-1].text

    def test_reset(self, orchestrator):
        orchestrator.add_tickers("AAPL")
        orchestrator.reset()

        assert orchestrator.tickers == []


class TestGenerateReport:
    """Test the generate-report action."""

    def test_full_success(self, orchestrator, mock_fetcher, mock_llm, date_range):
        orchestrator.add_tickers("AAPL")
        mock_fetcher.fetch_all.return_value = FetchResult(valid=[("AAPL", AAPL_DATA)])

        response = orchestrator.generate_report()

        assert response.ok is True
        assert response.report == "## AAPL\n\n- Trend: up"
        assert "<h2>AAPL</h2>" in response.html
        assert response.messages == []
        assert mock_fetcher.fetch_all.call_args.args[:2] == (["AAPL"], date_range)
        mock_llm.generate_report.assert_called_once_with([("AAPL", AAPL_DATA)])

    def test_partial_failure_warns_and_continues(self, orchestrator, mock_fetcher, mock_llm):
        orchestrator.add_tickers("BAD AAPL")
        mock_fetcher.fetch_all.return_value = FetchResult(
            valid=[("AAPL", AAPL_DATA)], invalid=["BAD"]
        )

        response = orchestrator.generate_report()

        assert response.ok is True
        assert response.tickers == ["AAPL"]
        assert response.messages[0].level == "warning"
        assert response.messages[0].text == (
            'Note: "BAD" not found. Generating report for valid tickers...'
        )
        mock_llm.generate_report.assert_called_once_with([("AAPL", AAPL_DATA)])
        # Selection is not pruned
        assert orchestrator.tickers == ["BAD", "AAPL"]

    def test_all_invalid_stops_before_llm(self, orchestrator, mock_fetcher, mock_llm):
        orchestrator.add_tickers("BAD NOPE")
        mock_fetcher.fetch_all.side_effect = LookupFailure(
            "Ticker(s) not found: BAD, NOPE. Please check the symbol(s) and try again.",
            invalid_tickers=["BAD", "NOPE"],
        )

        response = orchestrator.generate_report()

        assert response.ok is False
        assert "BAD, NOPE" in response.error
        assert response.report is None
        mock_llm.generate_report.assert_not_called()

    def test_no_tickers_selected(self, orchestrator, mock_llm):
        orchestrator.fetcher = MarketDataFetcher(api_key="k", session=Mock())

        response = orchestrator.generate_report()

        assert response.ok is False
        assert response.error == "Add at least one ticker before generating a report."
        mock_llm.generate_report.assert_not_called()

    def test_quota_error(self, orchestrator, mock_fetcher, mock_llm):
        orchestrator.add_tickers("AAPL")
        mock_fetcher.fetch_all.return_value = FetchResult(valid=[("AAPL", AAPL_DATA)])
        mock_llm.generate_report.side_effect = QuotaExceededError(
            "OpenAI quota exceeded. Please check your billing at "
            "platform.openai.com/account/billing"
        )

        response = orchestrator.generate_report()

        assert response.ok is False
        assert response.error.startswith("OpenAI quota exceeded")
        assert orchestrator.tickers == ["AAPL"]

    def test_retry_after_failure(self, orchestrator, mock_fetcher, mock_llm):
        orchestrator.add_tickers("AAPL")
        mock_fetcher.fetch_all.return_value = FetchResult(valid=[("AAPL", AAPL_DATA)])
        mock_llm.generate_report.side_effect = [
            ReportGenerationError("Service unavailable"),
            "## AAPL",
        ]

        first = orchestrator.generate_report()
        second = orchestrator.generate_report()

        assert first.error == "Service unavailable"
        assert second.ok is True
        assert second.report == "## AAPL"

    def test_html_disabled(self, orchestrator, mock_fetcher):
        orchestrator.config.generate_html = False
        orchestrator.add_tickers("AAPL")
        mock_fetcher.fetch_all.return_value = FetchResult(valid=[("AAPL", AAPL_DATA)])

        response = orchestrator.generate_report()

        assert response.ok is True
        assert response.html is None

    def test_html_render_failure_is_reported(self, config, mock_fetcher, mock_llm, date_range, tmp_path):
        orchestrator = StockPredictionOrchestrator(
            config,
            fetcher=mock_fetcher,
            llm=mock_llm,
            html_gen=HTMLGenerator(config, template_path=tmp_path / "missing.html"),
            date_range=date_range,
        )
        orchestrator.add_tickers("AAPL")
        mock_fetcher.fetch_all.return_value = FetchResult(valid=[("AAPL", AAPL_DATA)])

        response = orchestrator.generate_report()

        assert response.ok is False
        assert response.error.startswith("Report generated, but the HTML page")
        assert "missing.html" in response.error
        assert response.report == "## AAPL\n\n- Trend: up"
        assert response.html is None

    def test_warning_delay(self, orchestrator, mock_fetcher):
        orchestrator.config.warning_delay_seconds = 2
        orchestrator.add_tickers("BAD AAPL")
        mock_fetcher.fetch_all.return_value = FetchResult(
            valid=[("AAPL", AAPL_DATA)], invalid=["BAD"]
        )

        with patch("orchestrator.time.sleep") as sleep:
            orchestrator.generate_report()

        sleep.assert_called_once_with(2)

    def test_status_callback(self, config, mock_fetcher, mock_llm, date_range):
        messages = []
        orchestrator = StockPredictionOrchestrator(
            config,
            fetcher=mock_fetcher,
            llm=mock_llm,
            html_gen=HTMLGenerator(config),
            date_range=date_range,
            status_callback=messages.append,
        )
        orchestrator.add_tickers("AAPL")
        mock_fetcher.fetch_all.return_value = FetchResult(valid=[("AAPL", AAPL_DATA)])

        orchestrator.generate_report()

        texts = [m.text for m in messages]
        assert texts[0] == "Fetching stock data..."
        assert texts[-1] == "Generating AI report..."


class TestEndToEndWithFetcher:
    """Run the real fetcher against a mocked HTTP session."""

    def _response(self, payload):
        response = Mock()
        response.status_code = 200
        response.ok = True
        response.json.return_value = payload
        return response

    def test_unknown_ticker_skipped(self, config, mock_llm, date_range):
        session = Mock()
        session.get.side_effect = [
            self._response({"resultsCount": 0, "results": []}),
            self._response(AAPL_DATA),
        ]
        fetcher = MarketDataFetcher(api_key="k", session=session)
        orchestrator = StockPredictionOrchestrator(
            config, fetcher=fetcher, llm=mock_llm, date_range=date_range
        )
        orchestrator.add_tickers("ZZZZZ, AAPL")

        response = orchestrator.generate_report()

        assert response.ok is True
        assert response.tickers == ["AAPL"]
        mock_llm.generate_report.assert_called_once_with([("AAPL", AAPL_DATA)])

    def test_all_invalid(self, config, mock_llm, date_range):
        session = Mock()
        session.get.return_value = self._response({"resultsCount": 0, "results": []})
        fetcher = MarketDataFetcher(api_key="k", session=session)
        orchestrator = StockPredictionOrchestrator(
            config, fetcher=fetcher, llm=mock_llm, date_range=date_range
        )
        orchestrator.add_tickers("ABCD, WXYZ")

        response = orchestrator.generate_report()

        assert response.error == (
            "Ticker(s) not found: ABCD, WXYZ. Please check the symbol(s) and try again."
        )
        mock_llm.generate_report.assert_not_called()
