"""Fetch Realtime Results meets or events and write parsed results."""

import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TextIO

from .errors import FetchError, FormatError, RealtimeResultsError, WriteError
from .event_parser import parse_event
from .fetcher import BrowserFetcher, HttpFetcher, save_debug_html
from .index_parser import index_candidates, parse_event_index
from .models import EventLink, EventOutcome, ParsedEvent, RunSummary
from .naming import OutputNamer, sanitize_name
from .output import OutputOptions, format_event_table, write_event_files
from .text import extract_frame_sources, extract_links, html_to_lines, page_title

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("csv", "stdout")


@dataclass
class ScraperConfig:
    """Configuration for one scraper run."""

    url: str
    output_dir: Path = Path(".")
    output_format: str = "csv"
    top_n: Optional[int] = None
    metadata: bool = True
    timeout: float = 30.0
    delay_between_requests: float = 0.0
    use_browser: bool = False
    headless: bool = True
    save_debug_html: bool = False

    @property
    def output_options(self) -> OutputOptions:
        return OutputOptions(metadata=self.metadata, top_n=self.top_n)


class RealtimeResultsScraper:
    """
    Scrapes a meet (index page) or a single event page.

    Events are processed one at a time in index order. A failure in one
    event is recorded in the RunSummary and the run moves on.
    """

    def __init__(
        self,
        config: ScraperConfig,
        fetcher=None,
        namer: Optional[OutputNamer] = None,
        stream: Optional[TextIO] = None,
    ):
        if config.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Unknown output format: {config.output_format}")
        self.config = config
        self.fetcher = fetcher
        self.namer = namer or OutputNamer()
        self.stream = stream or sys.stdout
        self._meet_dir: Optional[Path] = None
        self._meet_title: Optional[str] = None

    def _create_fetcher(self):
        if self.config.use_browser:
            return BrowserFetcher(timeout=self.config.timeout, headless=self.config.headless)
        return HttpFetcher(timeout=self.config.timeout)

    def run(self) -> RunSummary:
        """Scrape the configured URL."""
        summary = RunSummary(url=self.config.url)
        owns_fetcher = self.fetcher is None
        if owns_fetcher:
            self.fetcher = self._create_fetcher()

        try:
            self._scrape(summary)
        finally:
            if owns_fetcher:
                self.fetcher.close()
                self.fetcher = None

        log_summary(summary)
        return summary

    def run_file(self, path: Path) -> RunSummary:
        """Parse a saved event page instead of fetching one."""
        summary = RunSummary(url=str(path))
        try:
            html = path.read_bytes()
        except OSError as e:
            summary.add(EventOutcome(label=path.name, url=str(path), ok=False, error=str(e)))
        else:
            summary.add(self._process_event(path.name, str(path), html=html))
        log_summary(summary)
        return summary

    def _scrape(self, summary: RunSummary) -> None:
        url = self.config.url
        logger.info(f"Fetching {url}")
        try:
            html = self._fetch(url, "page")
        except FetchError as e:
            logger.error(f"Failed to fetch {url}: {e.reason}")
            summary.add(EventOutcome(label=url, url=url, ok=False, error=str(e)))
            return

        events, index_html = self._discover_events(url, html)
        if not events:
            logger.info("No event links found; treating the page as a single event")
            summary.add(self._process_event(url, url, html=html))
            return

        self._meet_title = page_title(index_html)
        logger.info(f"Found {len(events)} events")
        for i, event in enumerate(events):
            if i and self.config.delay_between_requests:
                time.sleep(self.config.delay_between_requests)
            summary.add(self._process_event(event.label, event.url))

    def _discover_events(self, url: str, html: str) -> tuple[list[EventLink], str]:
        """Find event links on the page itself or on its evtindex.htm."""
        events = parse_event_index(extract_links(html, url))
        if events:
            return events, html

        for index_url in index_candidates(url, extract_frame_sources(html, url)):
            try:
                index_html = self._fetch(index_url, "evtindex")
            except FetchError as e:
                logger.debug(f"No event index at {index_url}: {e.reason}")
                continue
            events = parse_event_index(extract_links(index_html, index_url))
            if events:
                return events, index_html
        return [], html

    def _fetch(self, url: str, label: str) -> str:
        html = self.fetcher.fetch(url)
        if self.config.save_debug_html:
            save_debug_html(self.config.output_dir / "debug", sanitize_name(label), html)
        return html

    def _process_event(self, label: str, url: str, html: Optional[str | bytes] = None) -> EventOutcome:
        try:
            if html is None:
                html = self._fetch(url, label)
            lines = html_to_lines(html)
            if not lines:
                raise FormatError("Page has no text content")
            parsed = parse_event(lines, source_url=url)
            output_path = self._emit(parsed)
        except RealtimeResultsError as e:
            logger.error(f"  {label}: {e}")
            return EventOutcome(label=label, url=url, ok=False, error=str(e))

        logger.info(f"  {parsed.metadata.name}: {len(parsed.records)} results")
        return EventOutcome(
            label=label,
            url=url,
            ok=True,
            record_count=len(parsed.records),
            output_path=str(output_path) if output_path else None,
        )

    def _emit(self, parsed: ParsedEvent) -> Optional[Path]:
        options = self.config.output_options
        if self.config.output_format == "stdout":
            print(format_event_table(parsed, options), file=self.stream)
            print(file=self.stream)
            return None

        try:
            meet_dir = self._ensure_meet_dir(parsed)
            event_dir, event_name = self.namer.make_dir(meet_dir, event_folder_base(parsed))
        except OSError as e:
            raise WriteError(f"Could not create output directory: {e}") from e
        return write_event_files(parsed, event_dir, event_name, options)

    def _ensure_meet_dir(self, parsed: ParsedEvent) -> Path:
        if self._meet_dir is None:
            title = parsed.metadata.meet_name or self._meet_title or "UnknownMeet"
            self._meet_dir, name = self.namer.make_dir(self.config.output_dir, title)
            logger.info(f"Created meet folder: {name}")
        return self._meet_dir


def event_folder_base(parsed: ParsedEvent) -> str:
    """Event folder name; prelims and finals of one event get distinct names."""
    meta = parsed.metadata
    return f"{meta.name} {meta.session}" if meta.session else meta.name


def log_summary(summary: RunSummary) -> None:
    """Log the end-of-run report of successes and failures."""
    logger.info(
        f"Parsed {len(summary.succeeded)} of {len(summary.outcomes)} event(s) from {summary.url}"
    )
    for outcome in summary.failed:
        logger.warning(f"  FAILED {outcome.label}: {outcome.error}")


def scrape_results(
    url: str,
    output_dir: Path = Path("."),
    output_format: str = "csv",
    top_n: Optional[int] = None,
    metadata: bool = True,
    timeout: float = 30.0,
    delay: float = 0.0,
    use_browser: bool = False,
    headless: bool = True,
    save_debug_html: bool = False,
) -> RunSummary:
    """
    Main entry point for scraping a meet or event.

    Args:
        url: Meet URL (directory, index.htm or evtindex.htm) or event page URL
        output_dir: Root directory for meet/event folders
        output_format: "csv" or "stdout"
        top_n: Keep only the first N results of each event
        metadata: Also write the metadata CSV / print the metadata block
        timeout: Per-request timeout in seconds
        delay: Seconds to wait between event requests
        use_browser: Fetch with Chrome via Selenium instead of requests
        headless: Run the browser in headless mode
        save_debug_html: Save raw page HTML for debugging

    Returns:
        RunSummary with one outcome per event
    """
    config = ScraperConfig(
        url=url,
        output_dir=output_dir,
        output_format=output_format,
        top_n=top_n,
        metadata=metadata,
        timeout=timeout,
        delay_between_requests=delay,
        use_browser=use_browser,
        headless=headless,
        save_debug_html=save_debug_html,
    )
    return RealtimeResultsScraper(config).run()
