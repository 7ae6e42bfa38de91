"""Event-log parser — tab-separated exports to LogEntry records.

Handles the Windows Event Viewer "Save As Text" layout
(Level, Date and Time, Source, Event ID, Task Category, Description) and
degrades to looser column sets or whole-line entries for anything else.
"""

import datetime
import logging

from threatscan.models import LogEntry

logger = logging.getLogger(__name__)

BOM = "\ufeff"
HEADER_SEARCH_LINES = 5
STRICT_MIN_FIELDS = 5
LOOSE_MIN_FIELDS = 3
FREEFORM_MIN_LENGTH = 10

DEFAULT_LEVEL = "Information"
DEFAULT_SOURCE = "Unknown"
DEFAULT_EVENT_ID = "0"
DEFAULT_CATEGORY = "None"


def _now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def _is_header(line: str) -> bool:
    lowered = line.lower()
    return "level" in lowered and ("date" in lowered or "time" in lowered)


def find_header_index(lines: list[str]) -> int:
    """Return the index of the column header within the first lines, or -1."""
    for i, line in enumerate(lines[:HEADER_SEARCH_LINES]):
        if _is_header(line):
            return i
    return -1


def parse_strict_columns(fields: list[str]) -> LogEntry:
    """Five or more fields: Level, Date and Time, Source, Event ID, Task Category, ..."""
    return LogEntry(
        level=fields[0] or DEFAULT_LEVEL,
        timestamp=fields[1] or _now_iso(),
        source=fields[2] or DEFAULT_SOURCE,
        event_id=fields[3] or DEFAULT_EVENT_ID,
        category=fields[4] or DEFAULT_CATEGORY,
        description=" ".join(fields[5:]).strip(),
    )


def parse_loose_columns(fields: list[str]) -> LogEntry:
    """Three or four fields: Date and Time, Source, Event ID, [Description]."""
    return LogEntry(
        level=DEFAULT_LEVEL,
        timestamp=fields[0] or _now_iso(),
        source=fields[1] or DEFAULT_SOURCE,
        event_id=fields[2] or DEFAULT_EVENT_ID,
        category=DEFAULT_CATEGORY,
        description=" ".join(fields[3:]).strip(),
    )


def parse_freeform_line(line: str) -> LogEntry:
    return LogEntry(
        level=DEFAULT_LEVEL,
        timestamp=_now_iso(),
        source=DEFAULT_SOURCE,
        event_id=DEFAULT_EVENT_ID,
        category=DEFAULT_CATEGORY,
        description=line,
    )


def parse_line(line: str) -> LogEntry | None:
    """Parse one data line. Returns None for blank, comment or too-short lines."""
    stripped = line.strip()
    if not stripped:
        return None

    fields = [part.strip() for part in stripped.split("\t")]
    if len(fields) >= STRICT_MIN_FIELDS:
        return parse_strict_columns(fields)
    if len(fields) >= LOOSE_MIN_FIELDS:
        return parse_loose_columns(fields)
    if len(stripped) > FREEFORM_MIN_LENGTH and not stripped.startswith("#"):
        return parse_freeform_line(stripped)
    return None


def parse_event_log(raw_text: str) -> list[LogEntry]:
    """Parse a raw export into entries, preserving line order."""
    if raw_text.startswith(BOM):
        raw_text = raw_text[len(BOM):]
    if not raw_text:
        return []

    lines = raw_text.split("\n")
    header_index = find_header_index(lines)
    start = header_index + 1 if header_index >= 0 else 0

    entries = []
    skipped = 0
    for line in lines[start:]:
        entry = parse_line(line)
        if entry is None:
            skipped += 1
            continue
        entries.append(entry)

    logger.debug(
        "Parsed %d entries (header at line %d, %d lines skipped)",
        len(entries), header_index, skipped,
    )
    return entries


def group_into_batches(entries: list[LogEntry], batch_size: int = 10) -> list[list[LogEntry]]:
    """Split entries into consecutive chunks of at most batch_size."""
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    return [entries[i:i + batch_size] for i in range(0, len(entries), batch_size)]
