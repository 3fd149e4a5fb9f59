"""
CLI entry point for the stock prediction report agent.
"""

import sys
import logging
import argparse
import webbrowser
from pathlib import Path
from typing import Callable, List, Optional

from config import Config
from constants import Defaults, Messages
from models import StatusMessage
from orchestrator import StockPredictionOrchestrator

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

_PREFIXES = {"info": "", "warning": "⚠️  ", "error": "❌ "}


def setup_cli() -> argparse.ArgumentParser:
    """
    Sets up the command-line interface.

    Returns:
        argparse.ArgumentParser: The argument parser.
    """
    parser = argparse.ArgumentParser(
        description="AI stock prediction reports from recent daily prices",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Comma or space separated tickers
  %(prog)s --tickers "TSLA, PLTR, ASTS"

  # Repeat the flag to add in several steps
  %(prog)s -t tsla -t "pltr nvda"

  # Prompt for tickers interactively
  %(prog)s
        """,
    )

    parser.add_argument(
        "--tickers",
        "-t",
        action="append",
        default=[],
        help='Ticker symbols, comma or space separated (e.g., "TSLA, PLTR"). Repeatable.',
    )

    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=Defaults.OUTPUT_DIR,
        help=f"Output directory (default: {Defaults.OUTPUT_DIR})",
    )

    parser.add_argument(
        "--max-tickers",
        type=int,
        default=None,
        help="Maximum tickers per report (default: MAX_TICKERS or 3)",
    )

    parser.add_argument(
        "--no-html",
        action="store_true",
        help="Disable HTML report generation (only write markdown)",
    )

    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Don't open HTML report in browser automatically",
    )

    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )

    return parser


def print_message(message: StatusMessage) -> None:
    """Prints a status message with a level marker."""
    print(f"{_PREFIXES.get(message.level, '')}{message.text}")


def validate_output_dir(output_dir: str) -> Path:
    """Validate output directory is within the working or home directory."""
    output_path = Path(output_dir).resolve()
    for base in (Path.cwd().resolve(), Path.home().resolve()):
        try:
            output_path.relative_to(base)
            return output_path
        except ValueError:
            continue
    raise ValueError(
        f"Output directory must be within current working directory or home directory. "
        f"Got: {output_dir} (resolved to: {output_path})"
    )


def collect_tickers(
    orchestrator: StockPredictionOrchestrator,
    inputs: List[str],
    prompt: Optional[Callable[[str], str]] = None,
) -> None:
    """
    Feeds ticker input into the session.

    Uses the given inputs when present, otherwise prompts until the user
    enters a blank line or the selection is full.
    """
    for raw in inputs:
        response = orchestrator.add_tickers(raw)
        for message in response.messages:
            print_message(message)

    if inputs or prompt is None:
        return

    label = Messages.PROMPT.format(max_tickers=orchestrator.selection.max_tickers)
    while not orchestrator.selection.is_full:
        raw = prompt(f"{label} ").strip()
        if not raw:
            break
        response = orchestrator.add_tickers(raw)
        for message in response.messages:
            print_message(message)
        if response.tickers:
            print(f"Selected: {', '.join(response.tickers)}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = setup_cli()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = Config.from_env(
            max_tickers=args.max_tickers,
            generate_html=False if args.no_html else None,
            open_in_browser=False if args.no_browser else None,
        )

        output_dir = validate_output_dir(args.output)

        with StockPredictionOrchestrator(config, status_callback=print_message) as orchestrator:
            print("=" * 42)
            print("STOCK PREDICTION REPORT")
            print("=" * 42)

            collect_tickers(orchestrator, args.tickers, prompt=input)
            if not orchestrator.tickers:
                print_message(StatusMessage("error", Messages.NO_TICKERS_SELECTED))
                return 1

            print(f"📊 Tickers: {', '.join(orchestrator.tickers)}")
            print(
                f"📅 Range: {orchestrator.date_range.start_date} to "
                f"{orchestrator.date_range.end_date}"
            )

            result = orchestrator.generate_report()
            if not result.ok:
                print_message(StatusMessage("error", result.error or Messages.REPORT_FAILED))
                return 1

        output_dir.mkdir(parents=True, exist_ok=True)
        markdown_path = output_dir / "report.md"
        markdown_path.write_text(result.report, encoding="utf-8")

        html_path = None
        if result.html is not None:
            html_path = output_dir / "report.html"
            html_path.write_text(result.html, encoding="utf-8")

        print("\n" + result.report + "\n")
        print("=" * 42)
        print(f"📄 Markdown: {markdown_path}")
        if html_path is not None:
            print(f"🌐 HTML: {html_path}")

        if html_path is not None and config.open_in_browser:
            try:
                answer = input(f"Open report in browser? ({html_path}) [Y/n]: ").strip()
                if answer == "" or answer.lower() in ("y", "yes"):
                    webbrowser.open(html_path.as_uri(), new=2)
            except (OSError, EOFError) as e:
                logger.warning(f"Failed to open browser: {e}")

        return 0

    except KeyboardInterrupt:
        print("\n\n⚠️  Operation cancelled by user")
        return 1

    except Exception as e:  # Top-level error handler
        logger.error(f"Fatal error: {e}", exc_info=args.verbose)
        print(f"\n❌ Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
