"""
HTML rendering of the prediction report.

The report text is markdown-style (headers, bold, bullets). It is converted to
HTML with mistune and placed into a page template.
"""

import re
import logging
import mistune
import html as html_lib  # Import as html_lib to avoid conflict with variable named 'html'
from pathlib import Path
from config import Config
from models import DateRange
from typing import List, Optional
from datetime import datetime, timezone
from mistune.renderers.html import HTMLRenderer

logger = logging.getLogger(__name__)

_BLOCKED_SCHEMES = ("javascript:", "data:", "vbscript:")


class SafeHTMLRenderer(HTMLRenderer):
    """Custom mistune renderer that blocks script-capable URLs."""

    def link(self, text: str, url: str, title: Optional[str] = None) -> str:
        """Render link, dropping the anchor for dangerous URLs.

        Args:
            text: Link text (already rendered)
            url: Link URL
            title: Optional title attribute

        Returns:
            Safe HTML link or plain text if URL is dangerous
        """
        if url and url.strip().lower().startswith(_BLOCKED_SCHEMES):
            logger.warning(f"Blocked dangerous URL in link: {url}")
            return text
        return super().link(text, url, title)

    def image(self, text: str, url: str, title: Optional[str] = None) -> str:
        """Render image, replacing it with its alt text for dangerous URLs."""
        if url and url.strip().lower().startswith(_BLOCKED_SCHEMES):
            logger.warning(f"Blocked dangerous URL in image: {url}")
            return html_lib.escape(text)
        return super().image(text, url, title)


_markdown = mistune.create_markdown(
    renderer=SafeHTMLRenderer(escape=True),  # Raw HTML in model output is escaped
    plugins=["table", "strikethrough"],
)


def format_report_html(report_text: str) -> str:
    """
    Converts markdown-style report text to an HTML fragment.

    Args:
        report_text: The report as returned by the language model.

    Returns:
        str: HTML with headers, bold text, lists and paragraphs.
    """
    if not report_text:
        return ""
    return _markdown(report_text)


class HTMLGenerator:
    """Places the converted report into a styled HTML page."""

    def __init__(self, config: Config, template_path: Optional[Path] = None):
        """
        Initialize HTML generator.

        Args:
            config: Configuration object containing AI model/provider info.
            template_path: Path to HTML template file. Uses default if None.
        """
        if template_path is None:
            template_path = Path(__file__).parent / "templates" / "report_template.html"

        self.config = config
        self.template_path = template_path
        self._template_content: Optional[str] = None

    def _load_template(self) -> str:
        """Load HTML template from file.

        Returns:
            Template content as string

        Raises:
            FileNotFoundError: If template file doesn't exist
        """
        if self._template_content is None:
            if not self.template_path.exists():
                raise FileNotFoundError(f"Template not found: {self.template_path}")

            with self.template_path.open("r", encoding="utf-8") as f:
                self._template_content = f.read()

        return self._template_content

    @staticmethod
    def extract_title(report_text: str, tickers: List[str]) -> str:
        """Returns the first top-level header, or a title built from the tickers."""
        match = re.search(r"^# (.+?)$", report_text or "", re.MULTILINE)
        if match:
            return match.group(1).strip()
        return f"Stock Prediction Report: {', '.join(tickers)}"

    def render_page(
        self,
        report_text: str,
        tickers: List[str],
        date_range: DateRange,
        title: Optional[str] = None,
    ) -> str:
        """
        Renders a complete HTML page for a report.

        Args:
            report_text: Markdown-style report text.
            tickers: Tickers covered by the report.
            date_range: Price data range the report was built from.
            title: Page title (default: extracted from the report or the tickers).

        Returns:
            str: The HTML document.
        """
        if title is None:
            title = self.extract_title(report_text, tickers)

        content = format_report_html(report_text)
        template = self._load_template()
        generation_time = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")

        replacements = {
            "{{ title }}": html_lib.escape(title),
            "{{ tickers }}": html_lib.escape(", ".join(tickers)),
            "{{ start_date }}": html_lib.escape(date_range.start_date),
            "{{ end_date }}": html_lib.escape(date_range.end_date),
            "{{ generation_time }}": html_lib.escape(generation_time),
            "{{ ai_model }}": html_lib.escape(self.config.model_name or ""),
            "{{ ai_provider }}": html_lib.escape(self.config.provider or ""),
        }
        page = template
        for placeholder, value in replacements.items():
            page = page.replace(placeholder, value)
        # Content last so placeholders inside the report are left alone
        return page.replace("{{ content }}", content)
