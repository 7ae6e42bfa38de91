"""Synthetic Windows event-log exports for scans without a real log source."""

import random
from datetime import datetime

from threatscan.formatter import HEADER_LINE

SAMPLE_EVENTS = [
    ("Information", "System", "7036", "None",
     "The Windows Update service entered the running state."),
    ("Information", "Service Control Manager", "7040", "None",
     "The start type of the Windows Update service was changed."),
    ("Warning", "Microsoft-Windows-DistributedCOM", "10016", "None",
     "The application-specific permission settings do not grant Local Activation permission."),
    ("Information", "Microsoft-Windows-Security-Auditing", "4624", "Logon",
     "An account was successfully logged on."),
    ("Information", "Microsoft-Windows-Kernel-General", "16", "None",
     "The access history in hive was cleared."),
]

EXTRA_EVENTS = [
    ("Error", "Service Control Manager", "7034", "None",
     "The Print Spooler service terminated unexpectedly."),
    ("Error", "Service Control Manager", "7031", "None",
     "The Windows Defender Antivirus service terminated unexpectedly."),
    ("Information", "Microsoft-Windows-Security-Auditing", "4625", "Logon",
     "An account failed to log on."),
    ("Information", "Microsoft-Windows-Security-Auditing", "4672", "Special Logon",
     "Special privileges assigned to new logon."),
    ("Critical", "Microsoft-Windows-Kernel-Power", "41", "(63)",
     "The system has rebooted without cleanly shutting down first."),
    ("Information", "Netwtw10", "7021", "None", "Roam Complete"),
]


def simulate_event_log(now: datetime | None = None, count: int | None = None, rng=None) -> str:
    """Return a tab-separated export with a header line.

    With count=None the fixed sample set is returned; otherwise `count`
    events are drawn from the sample and extra pools.
    """
    now = now or datetime.now()
    timestamp = now.strftime("%Y-%m-%d %H:%M:%S")

    if count is None:
        events = SAMPLE_EVENTS
    else:
        rng = rng or random.Random()
        pool = SAMPLE_EVENTS + EXTRA_EVENTS
        events = [rng.choice(pool) for _ in range(count)]

    lines = [HEADER_LINE]
    for level, source, event_id, category, description in events:
        lines.append("\t".join([level, timestamp, source, event_id, category, description]))
    return "\n".join(lines)
