"""
Context Extraction

Free-text notes and a coarse time of day for the expense.
"""

import re
from datetime import datetime, time, timedelta
from typing import Optional


NOTES_MAX_LENGTH = 500

NOTE_PATTERNS = (
    re.compile(r"\bfor\s+(.+)$", re.IGNORECASE),
    re.compile(r"\bnote:\s*(.+)$", re.IGNORECASE),
)

# Checked in order, first hit wins
TIME_OF_DAY_HINTS = (
    ("this morning", time(9, 0)),
    ("this afternoon", time(14, 0)),
    ("this evening", time(19, 0)),
)


def extract_notes(transcript: str, max_length: int = NOTES_MAX_LENGTH) -> Optional[str]:
    """Text after "for" (or "note:"), if it fits in `max_length` characters."""
    for pattern in NOTE_PATTERNS:
        match = pattern.search(transcript.strip())
        if match is None:
            continue
        note = match.group(1).strip()
        if note and len(note) <= max_length:
            return note
    return None


def extract_occurred_at(transcript: str, reference_time: Optional[datetime] = None) -> datetime:
    """
    When the expense happened, relative to `reference_time`.

    "yesterday" is one day earlier; "this morning", "this afternoon" and
    "this evening" pin 09:00, 14:00 and 19:00 of the reference day.
    Anything else is the reference time itself.
    """
    now = reference_time or datetime.now()
    lowered = transcript.lower()

    if re.search(r"\byesterday\b", lowered):
        return now - timedelta(days=1)
    for phrase, at in TIME_OF_DAY_HINTS:
        if phrase in lowered:
            return datetime.combine(now.date(), at, tzinfo=now.tzinfo)
    return now
