"""
LLM integration for prediction report generation.
"""

import json
import logging
import httpx
import openai
from config import Config
from httpx import Limits, Timeout
from langchain_openai import ChatOpenAI
from typing import Any, Dict, Optional, Sequence, Tuple
from langchain_core.prompts import ChatPromptTemplate
from constants import APIEndpoints, Defaults, Messages
from errors import QuotaExceededError, ReportGenerationError

logger = logging.getLogger(__name__)

SECTION_DELIMITER = "\n\n---\n\n"

SYSTEM_INSTRUCTION = """You are a stock market analyst. Analyze the provided stock data and generate a prediction report for EACH stock separately.

For EACH stock ticker, include:
- Stock name/ticker as a header
- Brief summary of recent price movements
- Key trends identified
- Short-term prediction (next few days)
- Risk assessment

Make sure to provide a separate analysis section for each stock. Keep the response clear and easy to understand for non-experts."""

USER_TEMPLATE = """Analyze the following stock data and provide a separate prediction report for each stock:

{stock_data}"""


def format_stock_data(valid_results: Sequence[Tuple[str, Dict[str, Any]]]) -> str:
    """
    Serializes each ticker's payload into a labelled block.

    Args:
        valid_results: (ticker, payload) pairs in report order.

    Returns:
        str: Blocks of "Stock: T" / "Data: {json}" separated by a delimiter line.
    """
    blocks = [
        f"Stock: {ticker}\nData: {json.dumps(payload)}"
        for ticker, payload in valid_results
    ]
    return SECTION_DELIMITER.join(blocks)


class ReportLLMInterface:
    """LLM interface for the per-ticker prediction report."""

    def __init__(
        self,
        config: Config,
        max_connections: int = 5,
        max_keepalive_connections: int = 2,
    ) -> None:
        """
        Initializes the ReportLLMInterface.

        Args:
            config (Config): The configuration object.
            max_connections (int): The maximum number of concurrent connections.
            max_keepalive_connections (int): The maximum number of idle connections to keep alive.
        """
        self.config = config
        self.http_client = self._create_pooled_http_client(
            max_connections, max_keepalive_connections
        )

        # Single attempt per report request
        self.llm = ChatOpenAI(
            api_key=config.openai_api_key,
            base_url=config.openai_base_url,
            model=config.model_name,
            temperature=Defaults.TEMPERATURE,
            timeout=config.request_timeout,
            max_retries=0,
            http_client=self.http_client,
        )

        logger.info(
            f"LLM initialized - Provider: {config.provider}, Model: {config.model_name}, "
            f"Temperature: {Defaults.TEMPERATURE}"
        )

        self.report_prompt = ChatPromptTemplate.from_messages(
            [("system", SYSTEM_INSTRUCTION), ("user", USER_TEMPLATE)]
        )
        self.report_chain = self.report_prompt | self.llm

    def _create_pooled_http_client(
        self, max_connections: int, max_keepalive: int
    ) -> httpx.Client:
        """Create an httpx client with connection pooling and explicit timeouts.

        Args:
            max_connections: Maximum total connections
            max_keepalive: Maximum idle connections to keep alive

        Returns:
            httpx.Client with connection pooling configured
        """
        limits = Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive,
            keepalive_expiry=30.0,
        )
        timeout = Timeout(
            connect=Defaults.CONNECT_TIMEOUT,
            read=self.config.request_timeout,
            write=Defaults.CONNECT_TIMEOUT,
            pool=5.0,
        )
        client = httpx.Client(
            limits=limits,
            timeout=timeout,
            http2=True,
            follow_redirects=True,
        )
        logger.debug(
            f"Created HTTP client with connection pool "
            f"(max: {max_connections}, keepalive: {max_keepalive})"
        )
        return client

    @staticmethod
    def _error_from_payload(error: Any) -> ReportGenerationError:
        """Maps a provider error object to the matching exception."""
        if isinstance(error, dict):
            code = error.get("code")
            message = error.get("message")
        else:
            code, message = None, None

        if code == APIEndpoints.QUOTA_ERROR_CODE:
            return QuotaExceededError(Messages.QUOTA_EXCEEDED)
        return ReportGenerationError(message or str(error) or Messages.REPORT_FAILED)

    def _error_from_api_exception(self, e: openai.APIError) -> ReportGenerationError:
        if e.code == APIEndpoints.QUOTA_ERROR_CODE:
            return QuotaExceededError(Messages.QUOTA_EXCEEDED)
        if isinstance(e.body, dict) and e.body.get("message"):
            return ReportGenerationError(e.body["message"])
        return ReportGenerationError(e.message or Messages.REPORT_FAILED)

    def generate_report(self, valid_results: Sequence[Tuple[str, Dict[str, Any]]]) -> str:
        """
        Generates the prediction report with one LLM call.

        Args:
            valid_results: (ticker, payload) pairs that passed validation.

        Returns:
            str: The report text (markdown-style).

        Raises:
            QuotaExceededError: If the provider reports an exhausted quota.
            ReportGenerationError: For any other API error or a malformed response.
        """
        if not valid_results:
            raise ReportGenerationError("No valid stock data to report on.")

        tickers = [ticker for ticker, _ in valid_results]
        logger.info(f"Generating report for {', '.join(tickers)}")

        try:
            response = self.report_chain.invoke(
                {"stock_data": format_stock_data(valid_results)}
            )
        except openai.APIError as e:
            logger.error(f"OpenAI API error: {e.__class__.__name__} (code: {e.code})")
            raise self._error_from_api_exception(e) from e
        except ValueError as e:
            # Error objects embedded in a successful response surface as ValueError
            payload = e.args[0] if e.args else None
            if isinstance(payload, dict):
                logger.error(f"OpenAI API error payload (code: {payload.get('code')})")
                raise self._error_from_payload(payload) from e
            logger.error(f"Malformed report response: {e}")
            raise ReportGenerationError(Messages.MALFORMED_RESPONSE) from e
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            logger.error(f"Malformed report response: {e}")
            raise ReportGenerationError(Messages.MALFORMED_RESPONSE) from e

        content: Optional[str] = getattr(response, "content", None)
        if not isinstance(content, str) or not content.strip():
            logger.error("Report response has no text content")
            raise ReportGenerationError(Messages.MALFORMED_RESPONSE)

        logger.info("Generated report")
        return content.strip()

    def close(self) -> None:
        """Closes the pooled HTTP client."""
        self.http_client.close()
