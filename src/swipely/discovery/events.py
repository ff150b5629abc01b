"""Event listing helpers: human-readable times and Google Calendar links."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Mapping, Optional
from urllib.parse import quote

import pandas as pd

from ..errors import ValidationError
from .timeutils import as_utc

GOOGLE_CALENDAR_BASE = "https://calendar.google.com/calendar/render?action=TEMPLATE"
DEFAULT_EVENT_DURATION = timedelta(hours=2)

# Characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_uri_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def _clock(ts: pd.Timestamp) -> str:
    hour = ts.hour % 12 or 12
    suffix = "AM" if ts.hour < 12 else "PM"
    return f"{hour}:{ts.minute:02d} {suffix}"


def _day(ts: pd.Timestamp, with_year: bool) -> str:
    label = f"{ts.strftime('%b')} {ts.day}"
    return f"{label}, {ts.year}" if with_year else label


def format_event_date(start: Any, now: Optional[Any] = None) -> str:
    """'Today at 6:30 PM', 'Tomorrow at 9:00 AM', 'Nov 20 at ...' or 'Nov 20, 2027 at ...'."""
    start_ts = as_utc(start)
    current = as_utc(now)
    if start_ts.date() == current.date():
        day = "Today"
    elif start_ts.date() == (current + pd.Timedelta(days=1)).date():
        day = "Tomorrow"
    else:
        day = _day(start_ts, with_year=start_ts.year != current.year)
    return f"{day} at {_clock(start_ts)}"


def format_event_date_range(start: Any, end: Any, now: Optional[Any] = None) -> str:
    start_ts = as_utc(start)
    end_ts = as_utc(end)
    if start_ts.date() == end_ts.date():
        return format_event_date(start_ts, now)
    return f"{_day(start_ts, False)} - {_day(end_ts, False)}"


def hours_until(start: Any, now: Optional[Any] = None) -> float:
    return (as_utc(start) - as_utc(now)).total_seconds() / 3600.0


def is_event_soon(start: Any, now: Optional[Any] = None) -> bool:
    """True when the event starts within the next 24 hours."""
    hours = hours_until(start, now)
    return 0 < hours <= 24


def is_event_in_progress(start: Any, end: Any, now: Optional[Any] = None) -> bool:
    current = as_utc(now)
    return as_utc(start) <= current <= as_utc(end)


def is_event_past(end: Any, now: Optional[Any] = None) -> bool:
    return as_utc(now) > as_utc(end)


def _plural(count: int, unit: str) -> str:
    return f"in {count} {unit}{'' if count == 1 else 's'}"


def time_until_event(start: Any, now: Optional[Any] = None) -> str:
    seconds = (as_utc(start) - as_utc(now)).total_seconds()
    if seconds < 0:
        return "Started"
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)
    if minutes < 60:
        return f"in {minutes} min"
    if hours < 24:
        return _plural(hours, "hr")
    if days < 7:
        return _plural(days, "day")
    return _plural(days // 7, "week")


def format_google_utc(moment: Any) -> str:
    """Google Calendar's compact UTC form, e.g. 20251120T183000Z."""
    return as_utc(moment).strftime("%Y%m%dT%H%M%SZ")


def build_google_calendar_url(
    title: str,
    start: Any,
    end: Any,
    location: Optional[str] = None,
    details: Optional[str] = None,
) -> str:
    url = (
        f"{GOOGLE_CALENDAR_BASE}"
        f"&text={encode_uri_component(title or '')}"
        f"&dates={format_google_utc(start)}/{format_google_utc(end)}"
    )
    if location:
        url += f"&location={encode_uri_component(location)}"
    if details:
        url += f"&details={encode_uri_component(details)}"
    return url


def calendar_url_for_listing(listing: Mapping[str, Any]) -> str:
    """Calendar link for an event listing; plain places have no dates to add."""
    start = listing.get("event_start_date")
    if not start:
        raise ValidationError("Only events can be added to a calendar")
    start_ts = as_utc(start)
    end = listing.get("event_end_date")
    end_ts = as_utc(end) if end else start_ts + DEFAULT_EVENT_DURATION
    return build_google_calendar_url(
        title=listing.get("title") or "",
        start=start_ts,
        end=end_ts,
        location=listing.get("subtitle") or listing.get("city"),
        details=listing.get("description"),
    )


def event_summary(listing: Mapping[str, Any], now: Optional[datetime] = None) -> Optional[dict]:
    start = listing.get("event_start_date")
    if not start:
        return None
    end = listing.get("event_end_date")
    summary = {
        "label": format_event_date_range(start, end, now) if end else format_event_date(start, now),
        "starts_in": time_until_event(start, now),
        "is_soon": is_event_soon(start, now),
        "in_progress": bool(end) and is_event_in_progress(start, end, now),
        "is_past": bool(end) and is_event_past(end, now),
    }
    return summary
