"""
Open-hours logic for location pages.

`location_hours` rows look like:
    {"day_of_week": 1, "open_time": "07:00 AM", "close_time": "09:00 PM", "is_closed": False}

Day numbering: 1-6 are Monday-Saturday; Sunday shows up as 7 (site data) or
0 (SerpAPI import), and both are accepted.

Times are interpreted in the location's local time zone, derived from its
state. Everything here is pure given `now`, which keeps it testable.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, time
from typing import Any, Iterable
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "America/New_York"

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

MINUTES_PER_DAY = 24 * 60
MINUTES_PER_WEEK = 7 * MINUTES_PER_DAY

# Whole states map to one zone. Alabama is Central and Arizona keeps Phoenix (no DST);
# both were listed as Eastern and Denver before and are corrected on purpose.
STATE_TIMEZONES = {
    # Eastern
    "Connecticut": "America/New_York", "Delaware": "America/New_York", "District of Columbia": "America/New_York",
    "Florida": "America/New_York", "Georgia": "America/New_York", "Indiana": "America/New_York",
    "Kentucky": "America/New_York", "Maine": "America/New_York", "Maryland": "America/New_York",
    "Massachusetts": "America/New_York", "Michigan": "America/New_York", "New Hampshire": "America/New_York",
    "New Jersey": "America/New_York", "New York": "America/New_York", "North Carolina": "America/New_York",
    "Ohio": "America/New_York", "Pennsylvania": "America/New_York", "Rhode Island": "America/New_York",
    "South Carolina": "America/New_York", "Tennessee": "America/New_York", "Vermont": "America/New_York",
    "Virginia": "America/New_York", "West Virginia": "America/New_York",
    # Central
    "Alabama": "America/Chicago", "Arkansas": "America/Chicago", "Illinois": "America/Chicago",
    "Iowa": "America/Chicago", "Kansas": "America/Chicago", "Louisiana": "America/Chicago",
    "Minnesota": "America/Chicago", "Mississippi": "America/Chicago", "Missouri": "America/Chicago",
    "Nebraska": "America/Chicago", "North Dakota": "America/Chicago", "Oklahoma": "America/Chicago",
    "South Dakota": "America/Chicago", "Texas": "America/Chicago", "Wisconsin": "America/Chicago",
    # Mountain
    "Arizona": "America/Phoenix", "Colorado": "America/Denver", "Idaho": "America/Denver",
    "Montana": "America/Denver", "New Mexico": "America/Denver", "Utah": "America/Denver",
    "Wyoming": "America/Denver",
    # Pacific and beyond
    "California": "America/Los_Angeles", "Nevada": "America/Los_Angeles", "Oregon": "America/Los_Angeles",
    "Washington": "America/Los_Angeles", "Alaska": "America/Anchorage", "Hawaii": "Pacific/Honolulu",
}

_TIME_12H = re.compile(r"^\s*(\d{1,2})(?::(\d{2}))?\s*([ap])\.?\s*m\.?\s*$", re.IGNORECASE)
_TIME_24H = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::\d{2})?\s*$")


@dataclass(frozen=True)
class OpenStatus:
    is_open: bool
    next_open: str | None = None


def state_timezone(state: str | None) -> str:
    return STATE_TIMEZONES.get((state or "").strip(), DEFAULT_TIMEZONE)


def _local_now(state: str | None, now: datetime | None) -> datetime:
    tz = ZoneInfo(state_timezone(state))
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        # Naive datetimes are taken as already local to the business.
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def timezone_abbreviation(state: str | None, now: datetime | None = None) -> str:
    return _local_now(state, now).tzname() or ""


def parse_time(value: Any) -> time | None:
    """
    "07:00 PM" / "7 pm" / "7:30am" / "19:30" / time(19, 30) -> time, else None.
    """
    if isinstance(value, time):
        return value
    text = str(value or "")
    match = _TIME_12H.match(text)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2) or 0)
        if not 1 <= hour <= 12 or minute > 59:
            return None
        hour = hour % 12
        if match.group(3).lower() == "p":
            hour += 12
        return time(hour, minute)

    match = _TIME_24H.match(text)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour > 23 or minute > 59:
            return None
        return time(hour, minute)
    return None


def _clock(value: time) -> str:
    hour = value.hour % 12 or 12
    period = "AM" if value.hour < 12 else "PM"
    if value.minute:
        return f"{hour}:{value.minute:02d} {period}"
    return f"{hour} {period}"


def format_time(value: Any) -> str:
    """
    "07:00 PM" -> "7 PM", "07:30 PM" -> "7:30 PM". Unparseable input is returned as-is.
    """
    parsed = parse_time(value)
    if parsed is None:
        return "" if value is None else str(value)
    return _clock(parsed)


def _weekday(day_of_week: Any) -> int | None:
    try:
        day = int(day_of_week)
    except (TypeError, ValueError):
        return None
    if day in (0, 7):
        return 6
    if 1 <= day <= 6:
        return day - 1
    return None


def is_open_24_hours(row: dict[str, Any] | None) -> bool:
    if not row or row.get("is_closed"):
        return False
    opens = parse_time(row.get("open_time"))
    closes = parse_time(row.get("close_time"))
    return opens == time(0, 0) and closes in (time(23, 59), time(0, 0))


def all_days_open_24_hours(hours: Iterable[dict[str, Any]] | None) -> bool:
    rows = list(hours or [])
    return bool(rows) and all(is_open_24_hours(row) for row in rows)


def weekly_intervals(hours: Iterable[dict[str, Any]] | None) -> list[tuple[int, int]]:
    """
    Open intervals as (start, end) minutes from Monday 00:00 local time.

    A close time at or before the open time means the span runs past midnight;
    `end` may then exceed one week and callers wrap it.
    """
    intervals: list[tuple[int, int]] = []
    for row in hours or []:
        if row.get("is_closed"):
            continue
        weekday = _weekday(row.get("day_of_week"))
        if weekday is None:
            continue
        day_start = weekday * MINUTES_PER_DAY

        if is_open_24_hours(row):
            intervals.append((day_start, day_start + MINUTES_PER_DAY))
            continue

        opens = parse_time(row.get("open_time"))
        closes = parse_time(row.get("close_time"))
        if opens is None or closes is None:
            continue
        open_min = opens.hour * 60 + opens.minute
        close_min = closes.hour * 60 + closes.minute
        if closes == time(23, 59):
            close_min = MINUTES_PER_DAY
        if close_min <= open_min:
            close_min += MINUTES_PER_DAY
        intervals.append((day_start + open_min, day_start + close_min))

    intervals.sort()
    return intervals


def _minute_of_week(local: datetime) -> int:
    return local.weekday() * MINUTES_PER_DAY + local.hour * 60 + local.minute


def _describe_opening(start: int, today: int) -> str:
    day_index = start // MINUTES_PER_DAY
    minute_of_day = start % MINUTES_PER_DAY
    label = _clock(time(minute_of_day // 60, minute_of_day % 60))
    offset = day_index - today
    if offset == 0:
        return label
    if offset == 1:
        return f"tomorrow {label}"
    return f"{DAY_NAMES[day_index % 7]} {label}"


def is_business_open(
    hours: Iterable[dict[str, Any]] | None,
    state: str | None,
    now: datetime | None = None,
) -> OpenStatus:
    """
    Open/closed right now, plus when it opens next if closed.

    A location without any hours rows is listed as open 24 hours.
    """
    rows = list(hours or [])
    if not rows:
        return OpenStatus(is_open=True)

    local = _local_now(state, now)
    current = _minute_of_week(local)
    intervals = weekly_intervals(rows)

    for start, end in intervals:
        # Check this week's span and last week's span spilling into Monday.
        if start <= current < end or start <= current + MINUTES_PER_WEEK < end:
            return OpenStatus(is_open=True)

    upcoming = [start for start, _end in intervals if start > current]
    upcoming += [start + MINUTES_PER_WEEK for start, _end in intervals]
    if not upcoming:
        return OpenStatus(is_open=False)

    next_start = min(upcoming)
    return OpenStatus(
        is_open=False,
        next_open=_describe_opening(next_start, local.weekday()),
    )


def get_next_open_time(
    hours: Iterable[dict[str, Any]] | None,
    state: str | None,
    now: datetime | None = None,
) -> str | None:
    return is_business_open(hours, state, now).next_open


def format_hours(
    hours: Iterable[dict[str, Any]] | None,
    state: str | None,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """
    Monday-to-Sunday display rows: {"day", "hours", "is_today"}.
    """
    by_weekday: dict[int, dict[str, Any]] = {}
    for row in hours or []:
        weekday = _weekday(row.get("day_of_week"))
        if weekday is not None and weekday not in by_weekday:
            by_weekday[weekday] = row

    today = _local_now(state, now).weekday()
    formatted: list[dict[str, Any]] = []
    for weekday, day_name in enumerate(DAY_NAMES):
        row = by_weekday.get(weekday)
        if row is None or row.get("is_closed"):
            label = "Closed"
        elif is_open_24_hours(row):
            label = "24h"
        else:
            label = f"{format_time(row.get('open_time'))}-{format_time(row.get('close_time'))}"
        formatted.append({"day": day_name, "hours": label, "is_today": weekday == today})
    return formatted


def open_status(location: dict[str, Any], now: datetime | None = None) -> dict[str, Any]:
    """
    Everything the location page shows in its hours box.
    """
    hours = location.get("location_hours") or []
    state = location.get("state")
    local = _local_now(state, now)

    if location.get("business_status") == "CLOSED_TEMPORARILY":
        status = OpenStatus(is_open=False)
        temporarily_closed = True
    else:
        status = is_business_open(hours, state, local)
        temporarily_closed = False

    return {
        "is_open": status.is_open,
        "next_open": status.next_open,
        "is_temporarily_closed": temporarily_closed,
        "is_open_24_hours": not hours or all_days_open_24_hours(hours),
        "current_time": _clock(local.time()),
        "timezone_abbr": local.tzname() or "",
    }
