"""Data models for Realtime Results events."""

from dataclasses import dataclass, field
from typing import Optional

# Column order of the results and metadata CSV files
RESULT_FIELDS = [
    "place",
    "name",
    "team",
    "seed_time",
    "finals_time",
    "points",
    "splits",
]
METADATA_FIELDS = ["name", "course", "date_time"]

# In-field delimiter for the splits column
SPLIT_DELIMITER = "|"


class Course:
    """Pool course codes."""

    SCY = "SCY"
    LCM = "LCM"
    SCM = "SCM"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RelaySwimmer:
    """One leg of a relay team."""

    leg: int
    name: str
    year: str = ""
    reaction_time: Optional[str] = None


@dataclass(frozen=True)
class ResultRecord:
    """A single placing (individual swimmer or relay team) within an event."""

    place: Optional[int]
    name: str
    team: str = ""
    seed_time: Optional[str] = None
    finals_time: Optional[str] = None
    points: Optional[float] = None
    splits: tuple[str, ...] = ()
    year: str = ""
    reaction_time: Optional[str] = None
    relay_swimmers: tuple[RelaySwimmer, ...] = ()
    dq_reason: Optional[str] = None

    def to_row(self) -> dict:
        """Convert to a results CSV row."""
        return {
            "place": "" if self.place is None else str(self.place),
            "name": self.name,
            "team": self.team,
            "seed_time": self.seed_time or "",
            "finals_time": self.finals_time or "",
            "points": format_points(self.points),
            "splits": SPLIT_DELIMITER.join(self.splits),
        }


@dataclass(frozen=True)
class EventMetadata:
    """Event-level information printed above the result rows."""

    name: str
    course: str = Course.UNKNOWN
    date_time: Optional[str] = None
    event_number: Optional[int] = None
    gender: Optional[str] = None
    distance: Optional[int] = None
    stroke: Optional[str] = None
    is_relay: bool = False
    session: Optional[str] = None
    meet_name: Optional[str] = None
    venue: Optional[str] = None
    records: tuple[str, ...] = ()

    def __post_init__(self):
        if not self.name.strip():
            raise ValueError("event name must not be empty")

    def to_row(self) -> dict:
        """Convert to a metadata CSV row."""
        return {
            "name": self.name,
            "course": self.course,
            "date_time": self.date_time or "",
        }


@dataclass(frozen=True)
class ParsedEvent:
    """Output of parsing one event page."""

    metadata: EventMetadata
    records: tuple[ResultRecord, ...] = ()
    skipped_lines: tuple[str, ...] = ()


@dataclass(frozen=True)
class EventLink:
    """An event result page listed on a meet index."""

    label: str
    url: str
    event_number: Optional[int] = None
    session: Optional[str] = None


@dataclass
class EventOutcome:
    """Result of processing one event during a run."""

    label: str
    url: str
    ok: bool
    error: Optional[str] = None
    record_count: int = 0
    output_path: Optional[str] = None


@dataclass
class RunSummary:
    """Collects per-event outcomes across a run."""

    url: str
    outcomes: list[EventOutcome] = field(default_factory=list)

    def add(self, outcome: EventOutcome) -> None:
        self.outcomes.append(outcome)

    @property
    def succeeded(self) -> list[EventOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[EventOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def exit_code(self) -> int:
        """0 when at least one event was parsed, 1 otherwise."""
        return 0 if self.succeeded else 1


def format_points(points: Optional[float]) -> str:
    """Render points without a trailing '.0' for whole numbers."""
    if points is None:
        return ""
    if float(points).is_integer():
        return str(int(points))
    return str(points)


def normalize_course(course: str) -> str:
    """
    Map course text from an event headline to a course code.

    Handles both codes ("SCY", "LCM") and spelled-out headline words
    ("Yard", "LC Meter", "Short Course Meters"). Bare "Meter" means long
    course, which is how Meet Manager prints LCM events.
    """
    course = " ".join(course.strip().lower().split())
    if not course:
        return Course.UNKNOWN

    mappings = {
        "scy": Course.SCY,
        "scm": Course.SCM,
        "lcm": Course.LCM,
    }
    if course in mappings:
        return mappings[course]

    if "yard" in course:
        return Course.SCY
    words = course.split()
    if "lc" in words or "long" in words:
        return Course.LCM
    if "sc" in words or "short" in words:
        return Course.SCM
    if "meter" in course:
        return Course.LCM
    return Course.UNKNOWN
