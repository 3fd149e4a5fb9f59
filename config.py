"""
Configuration management with validation.
"""

import os
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

from constants import APIEndpoints, DateOffsets, Defaults, LimitsAndConstraints

logger = logging.getLogger(__name__)

# Look for .env file in current directory, then next to this module
env_path = Path(".env")
if env_path.exists():
    load_dotenv(dotenv_path=env_path, override=False)
    logger.debug(f"Loaded environment variables from {env_path.absolute()}")
else:
    parent_env = Path(__file__).parent / ".env"
    if parent_env.exists():
        load_dotenv(dotenv_path=parent_env, override=False)
        logger.debug(f"Loaded environment variables from {parent_env.absolute()}")

_TRUE_VALUES = ("true", "1", "yes", "on")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        logger.warning(f"{name} is not an integer, using default {default}")
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        logger.warning(f"{name} is not a number, using default {default}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() in _TRUE_VALUES


class Config:
    """Application configuration with validation."""

    def __init__(
        self,
        openai_api_key: Optional[str] = None,
        openai_base_url: Optional[str] = None,
        model_name: Optional[str] = None,
        polygon_api_key: Optional[str] = None,
        polygon_base_url: Optional[str] = None,
        max_tickers: Optional[int] = None,
        start_days_ago: Optional[int] = None,
        end_days_ago: Optional[int] = None,
        request_timeout: Optional[int] = None,
        warning_delay_seconds: Optional[float] = None,
        generate_html: Optional[bool] = None,
        open_in_browser: Optional[bool] = None,
    ):
        """Initialize configuration, loading from environment variables if not specified."""
        self.openai_api_key = (
            openai_api_key
            if openai_api_key is not None
            else os.getenv("OPENAI_API_KEY")
        )
        self.openai_base_url = (
            openai_base_url
            if openai_base_url is not None
            else os.getenv("OPENAI_BASE_URL", APIEndpoints.OPENAI_BASE_URL)
        )
        self.model_name = (
            model_name
            if model_name is not None
            else os.getenv("OPENAI_MODEL", Defaults.MODEL_NAME)
        )
        self.polygon_api_key = (
            polygon_api_key
            if polygon_api_key is not None
            else os.getenv("POLYGON_API_KEY")
        )
        self.polygon_base_url = (
            polygon_base_url
            if polygon_base_url is not None
            else os.getenv("POLYGON_BASE_URL", APIEndpoints.POLYGON_BASE_URL)
        )

        self.max_tickers = (
            max_tickers
            if max_tickers is not None
            else _env_int("MAX_TICKERS", LimitsAndConstraints.DEFAULT_MAX_TICKERS)
        )
        self.start_days_ago = (
            start_days_ago
            if start_days_ago is not None
            else _env_int("START_DAYS_AGO", DateOffsets.START_DAYS_AGO)
        )
        self.end_days_ago = (
            end_days_ago
            if end_days_ago is not None
            else _env_int("END_DAYS_AGO", DateOffsets.END_DAYS_AGO)
        )
        self.request_timeout = (
            request_timeout
            if request_timeout is not None
            else _env_int("REQUEST_TIMEOUT", Defaults.REQUEST_TIMEOUT)
        )
        self.warning_delay_seconds = (
            warning_delay_seconds
            if warning_delay_seconds is not None
            else _env_float("WARNING_DELAY_SECONDS", Defaults.WARNING_DELAY_SECONDS)
        )

        # HTML output settings
        self.generate_html = (
            generate_html
            if generate_html is not None
            else _env_bool("GENERATE_HTML", True)
        )
        self.open_in_browser = (
            open_in_browser
            if open_in_browser is not None
            else _env_bool("OPEN_IN_BROWSER", True)
        )

        # Computed field
        self.provider = None

        self.__post_init__()

    def __repr__(self) -> str:
        """Safe string representation that masks API keys."""
        return (
            f"Config(openai_api_key='{self._mask_api_key(self.openai_api_key)}', "
            f"polygon_api_key='{self._mask_api_key(self.polygon_api_key)}', "
            f"openai_base_url='{self.openai_base_url}', "
            f"model_name='{self.model_name}', max_tickers={self.max_tickers}, ...)"
        )

    def __str__(self) -> str:
        """Safe string conversion that masks API keys."""
        return self.__repr__()

    @staticmethod
    def _mask_api_key(api_key: Optional[str]) -> str:
        """Mask API key for safe logging/display."""
        if not api_key:
            return "NOT_SET"
        if len(api_key) <= 8:
            return "***"
        return f"{api_key[:4]}...{api_key[-4:]}"

    def _get_provider_from_url(self) -> str:
        """Extract provider name from base URL."""
        if not self.openai_base_url:
            return "openai"

        parsed = urlparse(self.openai_base_url)
        domain = parsed.netloc.lower()

        match domain:
            case d if "openai" in d:
                return "openai"
            case d if "groq" in d:
                return "groq"
            case d if "openrouter" in d:
                return "openrouter"
            case d if "generativelanguage.googleapis.com" in d:
                return "google"
            case d if "localhost" in d or "127.0.0.1" in d:
                return "ollama" if "11434" in self.openai_base_url else "local"
            case _:
                return "unknown"

    @staticmethod
    def _validate_url(name: str, url: Optional[str]) -> None:
        if not url:
            return
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(
                f"{name} must be a valid URL with scheme and host. Got: {url}"
            )
        if parsed.scheme not in ("http", "https"):
            raise ValueError(f"{name} must use http or https scheme. Got: {parsed.scheme}")

    def __post_init__(self) -> None:
        """Validate configuration values."""
        self.provider = self._get_provider_from_url()

        # Empty strings are rejected, None is allowed for testing
        if self.openai_api_key is not None and self.openai_api_key == "":
            raise ValueError("OPENAI_API_KEY cannot be empty string")
        if self.polygon_api_key is not None and self.polygon_api_key == "":
            raise ValueError("POLYGON_API_KEY cannot be empty string")

        self._validate_url("OPENAI_BASE_URL", self.openai_base_url)
        self._validate_url("POLYGON_BASE_URL", self.polygon_base_url)

        if not (1 <= self.max_tickers <= LimitsAndConstraints.MAX_TICKERS_ALLOWED):
            raise ValueError(
                f"max_tickers must be between 1 and "
                f"{LimitsAndConstraints.MAX_TICKERS_ALLOWED}. Got: {self.max_tickers}"
            )

        if not (0 <= self.end_days_ago < self.start_days_ago):
            raise ValueError(
                f"Date offsets must satisfy 0 <= end_days_ago < start_days_ago. "
                f"Got: start={self.start_days_ago}, end={self.end_days_ago}"
            )

        if self.request_timeout <= 0:
            raise ValueError(
                f"request_timeout must be a positive number of seconds. Got: {self.request_timeout}"
            )

        if not (5 <= self.request_timeout <= 300):
            logger.warning(
                f"request_timeout {self.request_timeout} outside recommended range [5, 300]"
            )

        if self.warning_delay_seconds < 0:
            logger.warning(
                f"warning_delay_seconds {self.warning_delay_seconds} is negative, using 0"
            )
            self.warning_delay_seconds = 0.0

        if self.openai_api_key:
            logger.info(
                f"Configuration loaded - Provider: {self.provider}, Model: {self.model_name}, "
                f"API Key: {self._mask_api_key(self.openai_api_key)}"
            )

    @classmethod
    def from_env(cls, **overrides) -> "Config":
        """
        Loads the configuration from environment variables.

        Keyword overrides set to None fall back to the environment like any
        unset constructor argument.

        Returns:
            Config: The configuration object.

        Raises:
            ValueError: If OPENAI_API_KEY or POLYGON_API_KEY is not set.
        """
        missing = [
            name for name in ("OPENAI_API_KEY", "POLYGON_API_KEY") if not os.getenv(name)
        ]
        if missing:
            raise ValueError(
                f"{' and '.join(missing)} environment variable(s) must be set"
            )
        return cls(**overrides)
