"""
Configuration constants for the stock prediction report agent.

This module centralizes the magic numbers, endpoints and user-facing message
templates used throughout the application.

All constants are organized into classes. Use `ClassName.CONSTANT_NAME` to
access values.
"""

# ============================================================================
# THRESHOLD CLASSES (Organized Configuration)
# ============================================================================


class LimitsAndConstraints:
    """Input limits for ticker selection."""

    # Ticker symbols: 1-5 Latin letters, compared in uppercase
    TICKER_PATTERN = r"^[A-Z]{1,5}$"

    # Separators accepted between tickers in free-text input
    TICKER_SEPARATOR_PATTERN = r"[,\s]+"

    # Selection capacity
    DEFAULT_MAX_TICKERS = 3
    MAX_TICKERS_ALLOWED = 10  # Upper bound for a configured capacity


class DateOffsets:
    """Day offsets used to compute the session date range."""

    START_DAYS_AGO = 3  # Alter to increase/decrease the data set
    END_DAYS_AGO = 1  # Yesterday is the last complete trading session
    DATE_FORMAT = "%Y-%m-%d"


class APIEndpoints:
    """Remote API locations."""

    POLYGON_BASE_URL = "https://api.polygon.io"
    POLYGON_AGGS_PATH = "/v2/aggs/ticker/{ticker}/range/1/day/{start_date}/{end_date}"
    OPENAI_BASE_URL = "https://api.openai.com/v1"

    # Provider error code reported when billing quota is exhausted
    QUOTA_ERROR_CODE = "insufficient_quota"


class Defaults:
    """Default configuration values."""

    MODEL_NAME = "gpt-3.5-turbo"
    TEMPERATURE = 0.3
    REQUEST_TIMEOUT = 30  # Seconds, applied to every remote call
    CONNECT_TIMEOUT = 10.0
    WARNING_DELAY_SECONDS = 0.0  # Pause after a partial-failure warning
    OUTPUT_DIR = "./stock_reports"


class Messages:
    """User-facing message templates."""

    EMPTY_INPUT = "Please enter at least one valid ticker symbol."
    LIMIT_FULL = "Maximum {max_tickers} tickers allowed per request."
    INVALID_TICKERS = "Invalid ticker(s): {tickers}. Use 1-5 letters (e.g., TSLA)."
    SKIPPED_INVALID = "Skipped invalid ticker(s): {tickers}."
    PARTIAL_LIMIT = "Only {added} ticker(s) added. Maximum {max_tickers} reached."
    PROMPT = "Enter a stock ticker (max {max_tickers}):"

    NO_TICKERS_SELECTED = "Add at least one ticker before generating a report."
    NO_DATA = "No data received"
    NOT_FOUND = "Ticker not found or has no data"
    INVALID_SYMBOL = "Invalid ticker symbol"
    ALL_NOT_FOUND = (
        "Ticker(s) not found: {tickers}. Please check the symbol(s) and try again."
    )
    PARTIAL_NOT_FOUND = (
        'Note: "{tickers}" not found. Generating report for valid tickers...'
    )

    QUOTA_EXCEEDED = (
        "OpenAI quota exceeded. Please check your billing at "
        "platform.openai.com/account/billing"
    )
    MALFORMED_RESPONSE = "Malformed response from report generation API"
    REPORT_FAILED = "Error generating report. Please try again."
    HTML_FAILED = "Report generated, but the HTML page could not be rendered: {error}"
