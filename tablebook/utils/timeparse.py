import re
from datetime import date, datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo

from dateutil import parser as dateparser

_RANGE_SEPARATOR = "-"
_MERIDIEM_RE = re.compile(r"([AP]M)", re.IGNORECASE)
_NON_CLOCK_CHARS_RE = re.compile(r"[^0-9:]")
_ISO_PREFIX_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")

UNPARSEABLE = -1


def time_to_minutes(value: Any) -> int:
    """
    Convert a slot string to minutes since midnight, or ``UNPARSEABLE`` (-1).

    Ranges such as "05:00 PM - 07:00 PM" are reduced to their start time.
    12-hour values are shifted to 24-hour when an AM/PM marker is present.

    Examples:
      "05:30 PM - 07:30 PM" → 1050
      "12:15 AM"            → 15
      "18:00"               → 1080
      "garbage"             → -1
    """
    if not value:
        return UNPARSEABLE

    start = str(value).split(_RANGE_SEPARATOR)[0].strip()
    meridiem = _MERIDIEM_RE.search(start)
    parts = _NON_CLOCK_CHARS_RE.sub("", start).split(":")
    if len(parts) < 2 or not parts[0].isdigit() or not parts[1].isdigit():
        return UNPARSEABLE

    hour, minute = int(parts[0]), int(parts[1])
    if meridiem:
        marker = meridiem.group(1).upper()
        if marker == "PM" and hour != 12:
            hour += 12
        if marker == "AM" and hour == 12:
            hour = 0
    return hour * 60 + minute


def normalize_date(value: Any) -> str:
    """
    Return a ``YYYY-MM-DD`` string for comparison.

    Date objects use their own calendar fields and ISO-prefixed strings are
    truncated, so no timezone conversion can shift the day. Anything else is
    parsed leniently; if that fails the trimmed input comes back unchanged.
    """
    if not value:
        return ""

    if isinstance(value, (date, datetime)):
        return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"

    text = str(value).strip()
    iso = _ISO_PREFIX_RE.match(text)
    if iso:
        return f"{iso.group(1)}-{iso.group(2)}-{iso.group(3)}"

    try:
        parsed = dateparser.parse(text)
    except (ValueError, OverflowError):
        return text
    return f"{parsed.year:04d}-{parsed.month:02d}-{parsed.day:02d}"


def is_slot_active(booking_time: Any, now_time: Any, duration_minutes: int) -> bool:
    """True while ``now_time`` falls inside the booking's slot window."""
    start = time_to_minutes(booking_time)
    now = time_to_minutes(now_time)
    if start < 0 or now < 0:
        return True
    return start <= now < start + duration_minutes


def _now(tz_name: str, now: Optional[datetime] = None) -> datetime:
    tz = ZoneInfo(tz_name)
    return now.astimezone(tz) if now else datetime.now(tz)


def today_string(tz_name: str, now: Optional[datetime] = None) -> str:
    return _now(tz_name, now).strftime("%Y-%m-%d")


def current_time_string(tz_name: str, now: Optional[datetime] = None) -> str:
    return _now(tz_name, now).strftime("%H:%M")
