from datetime import datetime, timezone
from urllib.parse import urlencode

from app.core.constants import GOOGLE_CALENDAR_RENDER_URL


def format_calendar_timestamp(value: datetime) -> str:
    """UTC basic-format timestamp, e.g. 20231015T090000Z."""
    return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def build_google_calendar_link(title: str, start: datetime, end: datetime, location: str) -> str:
    """Pre-filled "add to Google Calendar" link for a booked slot."""
    query = urlencode(
        {
            "action": "TEMPLATE",
            "text": title,
            "dates": f"{format_calendar_timestamp(start)}/{format_calendar_timestamp(end)}",
            "location": location,
        }
    )
    return f"{GOOGLE_CALENDAR_RENDER_URL}?{query}"
