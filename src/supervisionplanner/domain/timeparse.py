"""Parsing and formatting helpers for times and dates entered by people.

Times use a 12-hour clock ("2 pm", "2:30 pm"); dates are ISO
("2025-03-10") or short US style ("03-10-25").
"""

import logging
import re
from datetime import date, timedelta
from typing import Iterable, Optional

from supervisionplanner.domain.errors import MalformedIntervalError, TimeParseError
from supervisionplanner.domain.models import DayKey, DayWindow, TimeBlock

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*([ap]m)$", re.IGNORECASE)
_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_MDY_RE = re.compile(r"^(\d{2})-(\d{2})-(\d{2})$")
_WEEKDAY_ABBR = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def parse_time(text: str) -> int:
    """Parse a 12-hour clock time into minutes from midnight.

    Args:
        text: Time such as "9 am", "2:30 PM" or "12 pm".

    Returns:
        Minutes from midnight.

    Raises:
        TimeParseError: If the text is not a valid time.
    """
    match = _TIME_RE.match(text.strip())
    if not match:
        raise TimeParseError(f"Bad time: {text}")
    hour = int(match.group(1))
    mins = int(match.group(2)) if match.group(2) else 0
    if hour > 12 or mins > 59:
        raise TimeParseError(f"Invalid time: {text}")
    hour %= 12
    if match.group(3).lower() == "pm":
        hour += 12
    return hour * 60 + mins


def format_time(minutes: int) -> str:
    """Format minutes from midnight as "h:mm am/pm"."""
    h24, m = divmod(minutes, 60)
    ampm = "pm" if h24 >= 12 else "am"
    h12 = 12 if h24 % 12 == 0 else h24 % 12
    return f"{h12}:{m:02d} {ampm}"


def parse_blocks(text: str) -> list[TimeBlock]:
    """Parse a comma-separated list of ranges like "9 am-12 pm, 1 pm-3 pm".

    Segments that cannot be parsed, or whose end is not after the start,
    are skipped.
    """
    blocks = []
    for part in (text or "").split(","):
        seg = part.strip()
        if not seg:
            continue
        pieces = [p.strip() for p in seg.split("-")]
        if len(pieces) != 2:
            logger.debug("Skipping time range %r", seg)
            continue
        try:
            blocks.append(TimeBlock(parse_time(pieces[0]), parse_time(pieces[1])))
        except (TimeParseError, MalformedIntervalError) as exc:
            logger.debug("Skipping time range %r: %s", seg, exc)
    return blocks


def parse_date_token(token: str) -> Optional[date]:
    """Parse "YYYY-MM-DD" or "MM-DD-YY"; None if neither matches."""
    token = token.strip()
    try:
        if _ISO_RE.match(token):
            return date.fromisoformat(token)
        match = _MDY_RE.match(token)
        if match:
            mm, dd, yy = match.groups()
            year = 2000 + int(yy) if int(yy) < 50 else 1900 + int(yy)
            return date(year, int(mm), int(dd))
    except ValueError:
        logger.debug("Ignoring impossible date %r", token)
    return None


def normalize_closed_dates(raw: str, start_date: date, end_date: date) -> list[date]:
    """Turn free-text closed dates into a sorted, de-duplicated list in range.

    Args:
        raw: Comma and/or whitespace separated date tokens.
        start_date: First date of the range.
        end_date: Last date of the range (inclusive).
    """
    tokens = [t for t in re.split(r"[,\s]+", raw or "") if t]
    parsed = {d for d in (parse_date_token(t) for t in tokens) if d is not None}
    return sorted(d for d in parsed if start_date <= d <= end_date)


def format_mdy(d: date) -> str:
    """Format a date as MM-DD-YY."""
    return d.strftime("%m-%d-%y")


def format_weekday_mdy(d: date) -> str:
    """Format a date as "Mon MM-DD-YY"."""
    return f"{_WEEKDAY_ABBR[d.weekday()]} {format_mdy(d)}"


def estimate_supervision_hours(
    windows: Iterable[DayWindow],
    start_date: date,
    end_date: date,
    closed: Iterable[date] = (),
    percent: float = 10.0,
) -> float:
    """Estimate supervision hours as a percentage of attended hours.

    Attended minutes are the client's weekly windows summed over every
    non-closed date of the range.

    Args:
        windows: The client's weekday windows.
        start_date: First date of the range.
        end_date: Last date of the range (inclusive).
        closed: Dates to leave out.
        percent: Supervision percentage (e.g. 10 for 10%).

    Raises:
        ValueError: If percent is not positive.
    """
    if not percent > 0:
        raise ValueError("Supervision percent must be greater than 0")
    windows = list(windows)
    closed = set(closed)
    attended = 0
    current = start_date
    while current <= end_date:
        if current not in closed:
            day = DayKey.from_date(current)
            attended += sum(
                b.duration_minutes for w in windows if w.day == day for b in w.blocks
            )
        current += timedelta(days=1)
    return round(attended / 60 * percent / 100, 2)
