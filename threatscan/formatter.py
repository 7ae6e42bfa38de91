"""Canonical two-line text block for a single entry.

The same bytes are stored in the Log Store and handed to the analyzer, whose
prompt expects exactly this column order.
"""

from threatscan.models import LogEntry

HEADER_FIELDS = ("Level", "Date and Time", "Source", "Event ID", "Task Category")
HEADER_LINE = "\t".join(HEADER_FIELDS)


def format_entry(entry: LogEntry) -> str:
    fields = [entry.level, entry.timestamp, entry.source, entry.event_id, entry.category]
    if entry.description:
        fields.append(entry.description)
    return HEADER_LINE + "\n" + "\t".join(fields)
