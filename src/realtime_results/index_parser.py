"""Parse a meet's event index page into event result links."""

import logging
import re
from typing import Iterable, Optional
from urllib.parse import urljoin, urlparse

from .models import EventLink

logger = logging.getLogger(__name__)

# Pages on a Realtime Results site that are navigation, not event results
INDEX_PAGE = "evtindex.htm"
NAVIGATION_PAGES = {"index.htm", INDEX_PAGE}

# Meet Manager event page file names, e.g. "240327F003.htm"
_EVENT_CODE_RE = re.compile(r"([PFS])(\d{3})\.htm$", re.IGNORECASE)

SESSIONS = {"P": "Prelims", "F": "Finals", "S": "Swim-off"}


def _page_name(url: str) -> str:
    return urlparse(url).path.rstrip("/").rsplit("/", 1)[-1].lower()


def index_candidates(url: str, frame_sources: Iterable[str]) -> list[str]:
    """
    URLs that may hold the event index for a meet page.

    The meet's index.htm is a frameset whose left frame is evtindex.htm; a
    bare meet directory URL serves the same frameset.
    """
    candidates = [src for src in frame_sources if _page_name(src) == INDEX_PAGE]
    if not _page_name(url).endswith(".htm"):
        candidates.append(urljoin(url.rstrip("/") + "/", INDEX_PAGE))
    return [c for i, c in enumerate(candidates) if c != url and c not in candidates[:i]]


def is_event_url(url: str) -> bool:
    """True if the URL names a .htm page that is not a navigation page."""
    name = _page_name(url)
    return name.endswith(".htm") and name not in NAVIGATION_PAGES


def session_from_url(url: str) -> Optional[str]:
    """Return "Prelims"/"Finals" from a Meet Manager file code, if present."""
    match = _EVENT_CODE_RE.search(_page_name(url))
    if not match:
        return None
    return SESSIONS[match.group(1).upper()]


def event_number_from_url(url: str) -> Optional[int]:
    match = _EVENT_CODE_RE.search(_page_name(url))
    return int(match.group(2)) if match else None


def parse_event_index(links: Iterable[tuple[str, str]]) -> list[EventLink]:
    """
    Select event result links from an index page.

    Args:
        links: (link text, absolute URL) pairs in page order

    Returns:
        EventLink list in page order, one per distinct URL
    """
    events = []
    seen = set()

    for text, url in links:
        if not is_event_url(url):
            continue
        if url in seen:
            logger.debug(f"Skipping duplicate event link {url}")
            continue
        seen.add(url)

        label = " ".join(text.split()) or _page_name(url)
        events.append(
            EventLink(
                label=label,
                url=url,
                event_number=event_number_from_url(url),
                session=session_from_url(url),
            )
        )

    logger.debug(f"Found {len(events)} event links")
    return events
