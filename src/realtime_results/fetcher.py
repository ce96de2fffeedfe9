"""Page fetchers: plain HTTP via requests, or a Selenium-driven Chrome."""

import logging
from pathlib import Path
from typing import Optional

import requests
from selenium import webdriver
from selenium.common.exceptions import WebDriverException

from .errors import FetchError

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class HttpFetcher:
    """Fetches pages with a single requests.Session. One attempt per URL."""

    def __init__(self, timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})

    def fetch(self, url: str) -> str:
        logger.debug(f"GET {url}")
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(url, str(e)) from e

        # Meet Manager pages rarely declare a charset
        if response.encoding is None or response.encoding.lower() == "iso-8859-1":
            response.encoding = response.apparent_encoding
        return response.text

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class BrowserFetcher:
    """Fetches pages through a Chrome browser for hosts that block plain HTTP clients."""

    def __init__(self, timeout: float = 30.0, headless: bool = True):
        self.timeout = timeout
        self.headless = headless
        self.driver = None

    def _create_driver(self) -> webdriver.Chrome:
        """Create a headless Chrome browser instance."""
        options = webdriver.ChromeOptions()
        if self.headless:
            options.add_argument("--headless=new")
        options.add_argument("--no-sandbox")
        options.add_argument("--disable-dev-shm-usage")
        options.add_argument("--disable-gpu")
        options.add_argument(f"user-agent={USER_AGENT}")
        driver = webdriver.Chrome(options=options)
        driver.set_page_load_timeout(self.timeout)
        return driver

    def fetch(self, url: str) -> str:
        try:
            if self.driver is None:
                self.driver = self._create_driver()
                logger.info("Browser started.")
            self.driver.get(url)
            return self.driver.page_source
        except WebDriverException as e:
            raise FetchError(url, e.msg or str(e)) from e

    def close(self) -> None:
        if self.driver:
            self.driver.quit()
            self.driver = None
            logger.info("Browser closed.")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


def save_debug_html(debug_dir: Path, label: str, html: str) -> Path:
    """Save raw page HTML for debugging."""
    debug_dir.mkdir(parents=True, exist_ok=True)
    path = debug_dir / f"{label}.html"
    with open(path, "w", encoding="utf-8") as f:
        f.write(html)
    logger.debug(f"Saved debug HTML to {path}")
    return path
