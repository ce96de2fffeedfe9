"""CSV and console output for parsed events."""

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, TextIO

from .errors import WriteError
from .models import (
    METADATA_FIELDS,
    RESULT_FIELDS,
    EventMetadata,
    ParsedEvent,
    ResultRecord,
)

logger = logging.getLogger(__name__)


@dataclass
class OutputOptions:
    """Filtering and metadata switches shared by CSV and console output."""

    metadata: bool = True
    top_n: Optional[int] = None


def filter_top_n(records: Iterable[ResultRecord], top_n: Optional[int]) -> list[ResultRecord]:
    """Keep the first top_n records in page order; None keeps them all."""
    records = list(records)
    if top_n is None:
        return records
    return records[:top_n]


def write_results_csv(records: Iterable[ResultRecord], f: TextIO) -> int:
    """Write result rows with the fixed header. Returns the number of rows."""
    writer = csv.DictWriter(f, fieldnames=RESULT_FIELDS)
    writer.writeheader()
    count = 0
    for record in records:
        writer.writerow(record.to_row())
        count += 1
    return count


def write_metadata_csv(metadata: EventMetadata, f: TextIO) -> None:
    """Write the single-row metadata file."""
    writer = csv.DictWriter(f, fieldnames=METADATA_FIELDS)
    writer.writeheader()
    writer.writerow(metadata.to_row())


def write_event_files(
    parsed: ParsedEvent,
    event_dir: Path,
    file_suffix: str,
    options: OutputOptions,
) -> Path:
    """
    Write results (and optionally metadata) CSVs for one event.

    Args:
        parsed: Parsed event
        event_dir: Existing directory for this event
        file_suffix: Unique "<Event>_<timestamp>_<random>" part of the file names
        options: top-N filter and metadata switch

    Returns:
        Path of the results CSV
    """
    results_path = event_dir / f"results_{file_suffix}.csv"
    metadata_path = event_dir / f"metadata_{file_suffix}.csv"

    records = filter_top_n(parsed.records, options.top_n)
    try:
        with open(results_path, "w", newline="", encoding="utf-8") as f:
            count = write_results_csv(records, f)
        logger.debug(f"Wrote {count} rows to {results_path}")

        if options.metadata:
            with open(metadata_path, "w", newline="", encoding="utf-8") as f:
                write_metadata_csv(parsed.metadata, f)
    except OSError as e:
        raise WriteError(f"Could not write {event_dir}: {e}") from e

    return results_path


def _race_line(metadata: EventMetadata) -> str:
    parts = [
        metadata.gender or "?",
        str(metadata.distance) if metadata.distance else "?",
        metadata.course,
        metadata.stroke or "?",
    ]
    if metadata.is_relay:
        parts.append("Relay")
    return " ".join(parts)


def format_event_table(parsed: ParsedEvent, options: OutputOptions) -> str:
    """Render one event as an aligned plain-text table."""
    meta = parsed.metadata
    lines = []

    if options.metadata:
        if meta.meet_name:
            lines.append(f"Meet: {meta.meet_name}")
        if meta.venue:
            lines.append(f"Venue: {meta.venue}")
        if meta.date_time:
            lines.append(f"Date: {meta.date_time}")
        lines.append(f"Race: {_race_line(meta)}")
        if meta.records:
            lines.append("Records:")
            lines.extend(f"  {r}" for r in meta.records)
        lines.append("")

    title = meta.name if not meta.session else f"{meta.name} ({meta.session})"
    lines.append(f"Event: {title}")
    lines.append("-" * 80)

    for record in filter_top_n(parsed.records, options.top_n):
        place = f"{record.place:>3}" if record.place is not None else " --"
        lines.append(
            f"{place}  {record.name:<28} {record.year:<3} {record.team:<22} "
            f"{record.seed_time or '':>10} {record.finals_time or '':>10} "
            f"{'' if record.points is None else format(record.points, 'g'):>5}".rstrip()
        )
        for swimmer in record.relay_swimmers:
            reaction = f" {swimmer.reaction_time}" if swimmer.reaction_time else ""
            lines.append(f"       {swimmer.leg}) {swimmer.name} {swimmer.year}{reaction}".rstrip())
        if record.splits:
            reaction = f"{record.reaction_time} " if record.reaction_time else ""
            lines.append(f"       Splits: {reaction}{' '.join(record.splits)}")
        if record.dq_reason:
            lines.append(f"       {record.dq_reason}")

    if not parsed.records:
        lines.append("  (no results)")
    return "\n".join(lines)
