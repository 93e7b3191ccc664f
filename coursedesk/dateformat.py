"""
Date formatting for course timestamps.

The backend sends ISO 8601 timestamps with an offset, e.g.

    2020-01-01T20:00:00Z
    2020-05-02T12:34:00+02:00

The form shows them as 'DD.MM.YYYY HH:mm' in the timestamp's own offset.
Formatting never converts to the machine's local timezone, so the same
input always gives the same output.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Optional

DISPLAY_FORMAT = "%d.%m.%Y %H:%M"

# '+2:00' -> '+02:00'
_SHORT_OFFSET = re.compile(r"([+-])(\d):(\d{2})$")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO timestamp leniently.

    Returns None for empty, non-string or unparseable values.
    """
    if not isinstance(value, str):
        return None
    raw = value.strip()
    if not raw:
        return None

    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    raw = _SHORT_OFFSET.sub(r"\g<1>0\2:\3", raw)

    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def format_date(value: Any) -> str:
    """
    Format an ISO timestamp for display. Unparseable input gives ''.
    """
    dt = parse_timestamp(value)
    if dt is None:
        return ""
    return dt.strftime(DISPLAY_FORMAT)


def parse_display_date(text: Any, like: Any = None) -> Optional[str]:
    """
    Turn a 'DD.MM.YYYY HH:mm' entry back into an ISO timestamp.

    The offset is taken from `like` (normally the previous value of the
    field) so editing a date keeps its timezone; otherwise UTC is used.
    Returns None when the text cannot be parsed.
    """
    if not isinstance(text, str) or not text.strip():
        return None
    try:
        dt = datetime.strptime(text.strip(), DISPLAY_FORMAT)
    except ValueError:
        return None

    previous = parse_timestamp(like)
    tz = previous.tzinfo if previous is not None and previous.tzinfo is not None else timezone.utc
    return dt.replace(tzinfo=tz).isoformat()
