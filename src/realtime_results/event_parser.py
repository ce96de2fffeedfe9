"""Parser for the preformatted text of a single Realtime Results event page.

A Meet Manager event page looks like this once the markup is stripped:

                       Site License HY-TEK's MEET MANAGER 8.0 - 10:47 AM  3/28/2024
                 2024 NCAA Division I Men's Championships - 3/27/2024 to 3/30/2024
                                Indiana University Natatorium
                                           Results

    Event 3  Men 500 Yard Freestyle
    ===============================================================================
        NCAA: N 4:02.31  3/23/2022 Leon Marchand, Arizona State
    ===============================================================================
                        Name           Yr School                 Prelims     Finals Points
    ===============================================================================
      A - Final
        1 Marchand, Leon           JR Arizona St               4:07.52    4:02.31N  20
          r:+0.62  21.09        44.62 (23.53)  1:08.61 (23.99)  1:32.73 (24.12)

Rows are located by shape rather than by fixed column offsets: every
whitespace-separated token is classified (place, time, status, name) and a
row is assembled from the right-hand time columns and the left-hand place.
Lines after a row that are not rows themselves carry splits, relay legs or
a DQ reason for that row.
"""

import enum
import logging
import re
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

from .errors import FormatError
from .index_parser import session_from_url
from .models import (
    Course,
    EventMetadata,
    ParsedEvent,
    RelaySwimmer,
    ResultRecord,
    normalize_course,
)

logger = logging.getLogger(__name__)


class TokenKind(enum.Enum):
    PLACE = "place"
    TIME = "time"
    STATUS = "status"
    NAME = "name"
    UNKNOWN = "unknown"


STATUS_TOKENS = {"NT", "DQ", "SCR", "DNS", "NS", "DFS", "EX", "DSQ", "DNF"}
DQ_TOKENS = {"DQ", "DSQ", "DFS"}
SEED_STATUS_TOKENS = {"NT"}

# Class years (collegiate) or ages (club meets) printed after the name
YEAR_TOKENS = {"FR", "SO", "JR", "SR", "GR", "5Y", "RS", "FF"}

GENDERS = {"men", "women", "boys", "girls", "mixed", "male", "female"}
COURSE_WORDS = {
    "yard", "yards", "meter", "meters", "metre", "metres",
    "lc", "sc", "lcm", "scm", "scy", "long", "short", "course",
}
STROKE_WORDS = {
    "freestyle", "free", "backstroke", "back", "breaststroke", "breast",
    "butterfly", "fly", "individual", "medley", "im",
}

# Swim times: 21.09, 1:08.61, 16:25.29, x1:58.33 (exhibition), 4:02.31N (record flag)
TIME_RE = re.compile(r"^[xX]?(?:\d{1,2}:){0,2}\d{1,2}\.\d{2}[A-Za-z*#]{0,4}$")
PLACE_RE = re.compile(r"^\*?(\d{1,3})\.?$")
NO_PLACE_RE = re.compile(r"^-{2,}$")
POINTS_RE = re.compile(r"^\d{1,3}(?:\.\d)?$")
REACTION_RE = re.compile(r"^r:[+\-]?\d*\.?\d+$")

EVENT_RE = re.compile(r"^\s*Event\s+(\d+)\b", re.IGNORECASE)
DELIMITER_RE = re.compile(r"^\s*[=\-]{5,}\s*$")
LICENSE_TIMESTAMP_RE = re.compile(r"\d{1,2}:\d{2}\s*[AP]M\s+\d{1,2}/\d{1,2}/\d{2,4}", re.IGNORECASE)
DATE_RE = re.compile(r"\d{1,2}/\d{1,2}/\d{2,4}(?:\s+to\s+\d{1,2}/\d{1,2}/\d{2,4})?")
SECTION_RE = re.compile(
    r"^\s*(?:"
    r"Heat\s+\d+(?:\s+of\s+\d+)?"
    r"|Section\s+\d+"
    r"|Preliminaries|Prelims|Finals|Semi-?Finals|Swim-?offs?|Time\s+Trials?"
    r"|[A-Z]\s*-\s*Final"
    r"|(?:Championship|Consolation|Bonus)\s+Final"
    r")\b",
    re.IGNORECASE,
)
RELAY_LEG_RE = re.compile(r"^\s*[1-8]\)")
_LEG_SPLIT_RE = re.compile(r"(?:^|\s)([1-8])\)")

_COLUMN_NAME_WORDS = {"name", "team", "school"}
_COLUMN_TIME_WORDS = {"time", "seed", "finals", "prelims", "prelim"}
_SESSION_COLUMN_WORDS = {"seed", "prelims", "prelim", "finals", "final", "semis", "swim-off"}

# Unicode letters, so "Álvarez" and "Öberg" count as names
_LETTER_RE = re.compile(r"[^\W\d_]")
_NAME_START_RE = re.compile(r"[^\W\d_]|['\"]")


def classify_token(token: str) -> TokenKind:
    """Classify one whitespace-delimited token of a result line."""
    if TIME_RE.match(token):
        return TokenKind.TIME
    if token.lstrip("xX") in STATUS_TOKENS or token in STATUS_TOKENS:
        return TokenKind.STATUS
    if PLACE_RE.match(token):
        return TokenKind.PLACE
    if _LETTER_RE.search(token):
        return TokenKind.NAME
    return TokenKind.UNKNOWN


def is_time(token: str) -> bool:
    return bool(TIME_RE.match(token))


def is_year_token(token: str) -> bool:
    return token.upper() in YEAR_TOKENS or bool(re.fullmatch(r"\d{1,2}", token))


def is_column_header(line: str) -> bool:
    """True for the column title row, e.g. 'Name  Yr School  Seed Time  Finals Time'."""
    words = {w.strip(":").lower() for w in line.split()}
    return bool(words & _COLUMN_NAME_WORDS) and bool(words & _COLUMN_TIME_WORDS)


def is_section_marker(line: str) -> bool:
    return bool(SECTION_RE.match(line)) and not is_column_header(line)


def _tokens(line: str) -> list[tuple[str, int, int]]:
    return [(m.group(), m.start(), m.end()) for m in re.finditer(r"\S+", line)]


def _cells(tokens: list[tuple[str, int, int]]) -> list[list[str]]:
    """Group tokens into columns separated by runs of two or more spaces."""
    cells: list[list[str]] = []
    prev_end = None
    for text, start, end in tokens:
        if prev_end is None or start - prev_end >= 2:
            cells.append([text])
        else:
            cells[-1].append(text)
        prev_end = end
    return cells


def _row_start(line: str) -> Optional[tuple[Optional[int], list[tuple[str, int, int]]]]:
    """Return (place, remaining tokens) if the line begins a result row."""
    tokens = _tokens(line)
    if len(tokens) < 2:
        return None

    first = tokens[0][0]
    place_match = PLACE_RE.match(first)
    if place_match:
        place = int(place_match.group(1))
    elif NO_PLACE_RE.match(first):
        place = None
    else:
        return None

    # The name column must start with a letter (any script) or a quote; this
    # keeps "1)" relay legs and lines of numbers out.
    if not _NAME_START_RE.match(tokens[1][0]):
        return None
    return place, tokens[1:]


def time_columns(column_header: str) -> int:
    """Number of time columns (seed/prelims/finals) named in a column header; 2 if unknown."""
    words = [w.strip(":").lower() for w in column_header.split()]
    count = sum(1 for w in words if w in _SESSION_COLUMN_WORDS)
    if count == 0:
        return 1 if "time" in words else 2
    return min(count, 2)


def _is_seed_mark(token: str) -> bool:
    # Seed columns hold a time or NT; other status codes next to the
    # finals column are team codes.
    return is_time(token) or token.lstrip("xX") in SEED_STATUS_TOKENS


def _take_marks(rest: list[tuple[str, int, int]], max_marks: int = 2):
    """Pop points, finals and seed columns off the right-hand end of a row."""
    points = None
    if (
        len(rest) >= 3
        and POINTS_RE.match(rest[-1][0])
        and classify_token(rest[-2][0]) in (TokenKind.TIME, TokenKind.STATUS)
    ):
        points = float(rest.pop()[0])

    marks: list[str] = []
    while len(rest) > 1 and len(marks) < max_marks:
        token = rest[-1][0]
        if marks:
            if not _is_seed_mark(token):
                break
        elif classify_token(token) not in (TokenKind.TIME, TokenKind.STATUS):
            break
        marks.insert(0, rest.pop()[0])

    if len(marks) == 2:
        seed_time, finals_time = marks
    elif marks:
        seed_time, finals_time = None, marks[0]
    else:
        seed_time = finals_time = None
    return seed_time, finals_time, points


def _split_individual(middle: list[tuple[str, int, int]]) -> tuple[str, str, str]:
    """Split the name column block into (name, year, team)."""
    cells = _cells(middle)

    # A year/age column starts its own cell in aligned output
    for ci in range(1, len(cells)):
        if is_year_token(cells[ci][0]):
            name = " ".join(t for cell in cells[:ci] for t in cell)
            team = " ".join(cells[ci][1:] + [t for cell in cells[ci + 1:] for t in cell])
            return name, cells[ci][0], team

    words = [t for t, _, _ in middle]
    if len(cells) == 1:
        for i in range(1, len(words)):
            if is_year_token(words[i]):
                return " ".join(words[:i]), words[i], " ".join(words[i + 1:])
        return " ".join(words), "", ""

    return " ".join(cells[0]), "", " ".join(t for cell in cells[1:] for t in cell)


def _split_relay(middle: list[tuple[str, int, int]]) -> tuple[str, str]:
    """Split a relay team block into (display name, team)."""
    words = [t for t, _, _ in middle]
    if len(words) > 1 and re.fullmatch(r"[A-Z]", words[-1]):
        return " ".join(words), " ".join(words[:-1])
    name = " ".join(words)
    return name, name


def parse_relay_legs(line: str) -> list[RelaySwimmer]:
    """
    Parse a relay leg line such as
    '1) Chaney, Adam SR               2) r:0.18 Smith, Julian JR'.
    """
    parts = _LEG_SPLIT_RE.split(line)
    swimmers = []
    for i in range(1, len(parts) - 1, 2):
        leg = int(parts[i])
        words = parts[i + 1].split()
        reaction = None
        if words and REACTION_RE.match(words[0]):
            reaction = words.pop(0)
        if not words:
            continue
        year = ""
        if len(words) > 1 and is_year_token(words[-1]):
            year = words.pop()
        swimmers.append(RelaySwimmer(leg=leg, name=" ".join(words), year=year, reaction_time=reaction))
    return swimmers


def parse_race_info(headline: str) -> dict:
    """
    Classify the words of an 'Event N ...' headline.

    Returns a dict with event_number, gender, distance, course, stroke and
    is_relay; values are None when the headline does not carry them.
    """
    words = headline.split()
    info = {
        "event_number": None,
        "gender": None,
        "distance": None,
        "course": Course.UNKNOWN,
        "stroke": None,
        "is_relay": "relay" in headline.lower(),
    }
    match = EVENT_RE.match(headline)
    if match:
        info["event_number"] = int(match.group(1))
        words = words[2:]

    course_words = []
    stroke_words = []
    for word in words:
        lower = word.lower()
        if lower in GENDERS and info["gender"] is None:
            info["gender"] = word
        elif word.isdigit() and info["distance"] is None:
            info["distance"] = int(word)
        elif lower in COURSE_WORDS:
            course_words.append(word)
        elif lower in STROKE_WORDS:
            stroke_words.append(word)

    info["course"] = normalize_course(" ".join(course_words))
    if stroke_words:
        info["stroke"] = " ".join(stroke_words)
    return info


def _check_single_event(lines: list[str]) -> None:
    numbers = []
    for line in lines:
        match = EVENT_RE.match(line)
        if match and int(match.group(1)) not in numbers:
            numbers.append(int(match.group(1)))
    if len(numbers) > 1:
        raise FormatError(
            f"Page holds {len(numbers)} events ({', '.join(map(str, numbers))}); "
            "multi-event pages are not supported"
        )


def _meet_name_and_venue(header_lines: list[str]) -> tuple[Optional[str], Optional[str]]:
    """Meet name and venue follow the 'Site License' / 'Licensed to' line."""
    for i, line in enumerate(header_lines):
        if "license" in line.lower():
            after = header_lines[i + 1:]
            break
    else:
        after = header_lines

    after = [line for line in after if line.lower() != "results"]

    meet_name = after[0] if after else None
    venue = after[1] if len(after) > 1 else None
    return meet_name, venue


@dataclass
class _RowDraft:
    """Mutable row while its continuation lines are still being read."""

    place: Optional[int]
    name: str
    team: str
    seed_time: Optional[str]
    finals_time: Optional[str]
    points: Optional[float]
    year: str = ""
    splits: list[str] = field(default_factory=list)
    reaction_time: Optional[str] = None
    relay_swimmers: list[RelaySwimmer] = field(default_factory=list)
    dq_notes: list[str] = field(default_factory=list)

    @property
    def is_dq(self) -> bool:
        marks = {(self.seed_time or "").lstrip("xX"), (self.finals_time or "").lstrip("xX")}
        return bool(marks & DQ_TOKENS)

    def freeze(self) -> ResultRecord:
        return ResultRecord(
            place=self.place,
            name=self.name,
            team=self.team,
            seed_time=self.seed_time,
            finals_time=self.finals_time,
            points=self.points,
            splits=tuple(self.splits),
            year=self.year,
            reaction_time=self.reaction_time,
            relay_swimmers=tuple(self.relay_swimmers),
            dq_reason=" ".join(self.dq_notes) or None,
        )


class EventPageParser:
    """Parses the body (rows after the header) of one event page."""

    def __init__(self, is_relay: bool, max_marks: int = 2):
        self.is_relay = is_relay
        self.max_marks = max_marks
        self.records: list[ResultRecord] = []
        self.skipped: list[str] = []
        self.session: Optional[str] = None
        self._current: Optional[_RowDraft] = None

    def feed(self, line: str) -> None:
        stripped = line.strip()

        if not stripped or DELIMITER_RE.match(stripped) or is_column_header(stripped):
            self._close()
            return

        if is_section_marker(stripped):
            self._close()
            self._note_session(stripped)
            return

        row = self._parse_row(line)
        if row is not None:
            self._close()
            self._current = row
            return

        self._continue(stripped)

    def finish(self) -> None:
        self._close()

    def _close(self) -> None:
        if self._current is not None:
            self.records.append(self._current.freeze())
            self._current = None

    def _note_session(self, marker: str) -> None:
        lower = marker.lower()
        if self.session is None:
            if "prelim" in lower:
                self.session = "Prelims"
            elif "final" in lower and "semi" not in lower:
                self.session = "Finals"

    def _parse_row(self, line: str) -> Optional[_RowDraft]:
        start = _row_start(line)
        if start is None:
            return None
        place, rest = start
        rest = list(rest)
        seed_time, finals_time, points = _take_marks(rest, self.max_marks)

        if self.is_relay:
            name, team = _split_relay(rest)
            year = ""
        else:
            name, year, team = _split_individual(rest)

        return _RowDraft(
            place=place,
            name=name,
            team=team,
            seed_time=seed_time,
            finals_time=finals_time,
            points=points,
            year=year,
        )

    def _continue(self, stripped: str) -> None:
        current = self._current
        if current is None:
            self._skip(stripped)
            return

        if RELAY_LEG_RE.match(stripped):
            current.relay_swimmers.extend(parse_relay_legs(stripped))
            return

        found_time = False
        for token in stripped.split():
            if token.startswith("("):
                continue
            if REACTION_RE.match(token):
                current.reaction_time = current.reaction_time or token
                found_time = True
            elif is_time(token):
                current.splits.append(token)
                found_time = True

        if found_time:
            return
        if current.is_dq:
            current.dq_notes.append(stripped)
            return
        self._skip(stripped)

    def _skip(self, stripped: str) -> None:
        logger.debug(f"Skipping unclassified line: {stripped!r}")
        self.skipped.append(stripped)


def _parse_header(lines: list[str], source_url: Optional[str]) -> tuple[EventMetadata, int, str]:
    """
    Read the page header up to the column titles, a section marker or the
    first row after the event headline.

    Returns:
        (metadata, index of the first body line, column header text)
    """
    header_lines: list[str] = []
    headline = None
    records: list[str] = []
    column_header = ""
    body_start = len(lines)

    for i, line in enumerate(lines):
        stripped = line.strip()
        if headline is None:
            if EVENT_RE.match(stripped):
                headline = " ".join(stripped.split())
            elif stripped:
                header_lines.append(stripped)
            continue

        if is_column_header(stripped):
            column_header = stripped
            body_start = i
            break
        if is_section_marker(stripped) or _row_start(line) is not None:
            body_start = i
            break
        if stripped and not DELIMITER_RE.match(stripped):
            # Record holders and time standards sit between '====' rules
            record = stripped.strip("=").strip()
            if record:
                records.append(record)

    if headline is None:
        raise FormatError("No 'Event N' headline found; not a Realtime Results event page")

    info = parse_race_info(headline)
    course = info["course"]
    if course == Course.UNKNOWN:
        for line in header_lines:
            codes = {w.upper() for w in re.findall(r"\b[A-Za-z]{3}\b", line)}
            for code in (Course.SCY, Course.SCM, Course.LCM):
                if code in codes:
                    course = code
                    break
            if course != Course.UNKNOWN:
                break

    date_time = None
    header_text = "\n".join(header_lines)
    match = LICENSE_TIMESTAMP_RE.search(header_text) or DATE_RE.search(header_text)
    if match:
        date_time = " ".join(match.group().split())

    meet_name, venue = _meet_name_and_venue(header_lines)
    is_relay = info["is_relay"] or "relay" in column_header.lower()

    metadata = EventMetadata(
        name=headline,
        course=course,
        date_time=date_time,
        event_number=info["event_number"],
        gender=info["gender"],
        distance=info["distance"],
        stroke=info["stroke"],
        is_relay=is_relay,
        session=session_from_url(source_url) if source_url else None,
        meet_name=meet_name,
        venue=venue,
        records=tuple(records),
    )
    return metadata, body_start, column_header


def parse_event(lines: Iterable[str], source_url: Optional[str] = None) -> ParsedEvent:
    """
    Parse one event page's normalized text lines.

    Args:
        lines: Output of text.html_to_lines for the event page
        source_url: Page URL, used to read the Prelims/Finals session code

    Returns:
        ParsedEvent with metadata and records in page order

    Raises:
        FormatError: No event headline, or more than one event on the page
    """
    lines = list(lines)
    _check_single_event(lines)
    metadata, body_start, column_header = _parse_header(lines, source_url)

    parser = EventPageParser(
        is_relay=metadata.is_relay,
        max_marks=time_columns(column_header) if column_header else 2,
    )
    for line in lines[body_start:]:
        parser.feed(line)
    parser.finish()

    if metadata.session is None and parser.session is not None:
        metadata = replace(metadata, session=parser.session)

    logger.debug(
        f"Parsed {metadata.name!r}: {len(parser.records)} records, "
        f"{len(parser.skipped)} skipped lines"
    )
    return ParsedEvent(
        metadata=metadata,
        records=tuple(parser.records),
        skipped_lines=tuple(parser.skipped),
    )
