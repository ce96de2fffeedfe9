"""Shared fixtures: saved Realtime Results pages and an offline fetcher."""

from pathlib import Path

import pytest

from realtime_results.errors import FetchError
from realtime_results.text import html_to_lines

DATA_DIR = Path(__file__).parent / "data"

MEET_URL = "https://results.example.com/NCAA-Division-I-Men-2024"


def read_page(name: str) -> str:
    return (DATA_DIR / name).read_text(encoding="utf-8")


class FakeFetcher:
    """Serves pages from a dict; unknown URLs fail like a 404."""

    def __init__(self, pages: dict[str, str]):
        self.pages = pages
        self.requested: list[str] = []
        self.closed = False

    def fetch(self, url: str) -> str:
        self.requested.append(url)
        if url not in self.pages:
            raise FetchError(url, "404 Client Error: Not Found")
        return self.pages[url]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def page():
    return read_page


@pytest.fixture
def page_lines():
    def _lines(name: str) -> list[str]:
        return html_to_lines(read_page(name))

    return _lines


@pytest.fixture
def meet_pages():
    """A meet whose 500 free prelims page is missing."""
    return {
        f"{MEET_URL}/evtindex.htm": read_page("evtindex.htm"),
        f"{MEET_URL}/240327F001.htm": read_page("relay_finals.htm"),
        f"{MEET_URL}/240327F003.htm": read_page("individual_finals.htm"),
    }
