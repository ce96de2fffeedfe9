"""Turn Realtime Results HTML into plain text lines and links."""

import logging
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


def _soup(html: str | bytes) -> BeautifulSoup:
    # Bytes let BeautifulSoup detect the charset (Meet Manager often writes Windows-1252)
    return BeautifulSoup(html or "", "lxml")


def _clean_lines(text: str) -> list[str]:
    """Split text into lines, keeping leading spaces and one blank between blocks."""
    text = text.replace("\r\n", "\n").replace("\r", "\n").replace("\xa0", " ")

    lines = []
    for raw in text.split("\n"):
        line = raw.expandtabs(8).rstrip()
        if not line and (not lines or not lines[-1]):
            continue
        lines.append(line)

    while lines and not lines[-1]:
        lines.pop()
    return lines


def html_to_lines(html: str | bytes) -> list[str]:
    """
    Extract the preformatted result text from a page.

    Meet Manager writes each event as one or more <pre> blocks, so their
    text is used when present; otherwise the whole page text is used.
    Column spacing is preserved and blank lines are kept (collapsed to one)
    because they separate sections.

    Returns:
        List of lines; empty when the page has no text content
    """
    soup = _soup(html)
    for tag in soup(["script", "style"]):
        tag.decompose()

    pres = soup.find_all("pre")
    if pres:
        text = "\n\n".join(pre.get_text() for pre in pres)
    else:
        body = soup.body or soup
        text = body.get_text("\n")

    lines = _clean_lines(text)
    logger.debug(f"Normalized page to {len(lines)} lines ({len(pres)} <pre> blocks)")
    return lines


def extract_links(html: str, base_url: str = "") -> list[tuple[str, str]]:
    """Return (link text, absolute href) for every <a href> in page order."""
    links = []
    for a in _soup(html).find_all("a", href=True):
        text = " ".join(a.get_text(" ").split())
        links.append((text, urljoin(base_url, a["href"].strip())))
    return links


def extract_frame_sources(html: str, base_url: str = "") -> list[str]:
    """Return absolute src URLs of <frame> and <iframe> elements."""
    soup = _soup(html)
    return [
        urljoin(base_url, frame["src"].strip())
        for frame in soup.find_all(["frame", "iframe"], src=True)
    ]


def page_title(html: str) -> Optional[str]:
    """Return the page <title> text, if any."""
    title = _soup(html).find("title")
    if not title:
        return None
    text = " ".join(title.get_text().split())
    return text or None
