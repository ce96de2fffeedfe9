"""Command-line interface for the Realtime Results scraper."""

import argparse
import logging
import sys
from pathlib import Path

from .scraper import OUTPUT_FORMATS, RealtimeResultsScraper, ScraperConfig


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def positive_int(value: str) -> int:
    """argparse type for --top."""
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value}")
    return n


def _config_from_args(args: argparse.Namespace, url: str) -> ScraperConfig:
    return ScraperConfig(
        url=url,
        output_dir=Path(args.dest),
        output_format=args.output,
        top_n=args.top,
        metadata=not args.no_metadata,
        timeout=getattr(args, "timeout", 30.0),
        delay_between_requests=getattr(args, "delay", 0.0),
        use_browser=getattr(args, "browser", False) or getattr(args, "show_browser", False),
        headless=not getattr(args, "show_browser", False),
        save_debug_html=getattr(args, "debug_html", False),
    )


def cmd_scrape(args: argparse.Namespace) -> int:
    """Run the scrape command."""
    url = args.url
    if not url:
        print("Enter meet or event URL:", file=sys.stderr)
        url = sys.stdin.readline().strip()
        if not url:
            logging.error("No URL provided")
            return 1

    config = _config_from_args(args, url.strip())
    summary = RealtimeResultsScraper(config).run()
    return summary.exit_code


def cmd_parse(args: argparse.Namespace) -> int:
    """Parse a saved event page."""
    path = Path(args.file)
    if not path.is_file():
        logging.error(f"Input file does not exist: {path}")
        return 1

    config = _config_from_args(args, str(path))
    summary = RealtimeResultsScraper(config).run_file(path)
    return summary.exit_code


def _add_output_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output",
        "-o",
        choices=OUTPUT_FORMATS,
        default="csv",
        help="Output format (default: csv)",
    )
    parser.add_argument(
        "--top",
        "-t",
        type=positive_int,
        default=None,
        help="Keep only the first N results of each event (default: all)",
    )
    parser.add_argument(
        "--no-metadata",
        action="store_true",
        help="Skip the metadata CSV / metadata block",
    )
    parser.add_argument(
        "--dest", default=".", help="Directory to create meet folders in (default: .)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="realtime-results",
        description="Parse HY-TEK Realtime Results swim meet pages into CSV",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Every event of a meet, one folder per event
  realtime-results scrape https://swimmeetresults.tech/NCAA-Division-I-Men-2024

  # A single event, top 8 places, printed to the console
  realtime-results scrape https://swimmeetresults.tech/NCAA-Division-I-Men-2024/240327F003.htm -o stdout -t 8

  # A page saved to disk
  realtime-results parse ./240327F003.htm --no-metadata
        """,
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Scrape command
    scrape_parser = subparsers.add_parser("scrape", help="Scrape a meet or event URL")
    scrape_parser.add_argument("url", nargs="?", help="Meet or event URL (prompted if omitted)")
    _add_output_arguments(scrape_parser)
    scrape_parser.add_argument(
        "--timeout", type=float, default=30.0, help="Request timeout in seconds (default: 30)"
    )
    scrape_parser.add_argument(
        "--delay",
        "-d",
        type=float,
        default=0.0,
        help="Delay between event requests in seconds (default: 0)",
    )
    scrape_parser.add_argument(
        "--browser", action="store_true", help="Fetch pages with headless Chrome"
    )
    scrape_parser.add_argument(
        "--show-browser",
        action="store_true",
        help="Fetch pages with a visible Chrome window",
    )
    scrape_parser.add_argument(
        "--debug-html",
        action="store_true",
        help="Save raw HTML pages for debugging",
    )
    scrape_parser.set_defaults(func=cmd_scrape)

    # Parse command
    parse_parser = subparsers.add_parser("parse", help="Parse a saved event page")
    parse_parser.add_argument("file", help="Saved event .htm file")
    _add_output_arguments(parse_parser)
    parse_parser.set_defaults(func=cmd_parse)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
