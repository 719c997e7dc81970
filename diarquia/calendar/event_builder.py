from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from diarquia.core.catalog import describe_service
from diarquia.core.renderer import render_text
from diarquia.schemas.booking import BookingRequest

EVENT_TIMEZONE = "America/Santiago"
EVENT_LOCATION = "Almte. Pastene 70, Providencia, Santiago, Chile"
EVENT_COLOR_ID = "9"
EVENT_DURATION = timedelta(hours=1)
REMINDER_OVERRIDES = [
    {"method": "email", "minutes": 24 * 60},
    {"method": "popup", "minutes": 60},
]
# Used when the hour of the booking time cannot be read.
FALLBACK_END_HOUR = 0


def _parse_int(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def compute_event_window(date: str, time: str) -> Tuple[str, str]:
    """
    Return (start, end) local datetime strings for a booking.

    Start is the submitted date and time verbatim. End is one hour later.
    When the hour cannot be parsed the end hour is FALLBACK_END_HOUR, and an
    unparseable minute becomes 00.
    """
    start = f"{date}T{time}:00"

    parts = (time or "").split(":")
    hour = _parse_int(parts[0])
    minute = _parse_int(parts[1]) if len(parts) > 1 else None

    if hour is None:
        end_minute = minute if minute is not None else 0
        return start, f"{date}T{FALLBACK_END_HOUR:02d}:{end_minute:02d}:00"

    minute = minute or 0
    try:
        day = datetime.strptime(date, "%Y-%m-%d")
    except ValueError:
        # Date is not ISO; keep plain string arithmetic on the clock fields.
        return start, f"{date}T{hour + 1:02d}:{minute:02d}:00"

    end = day + timedelta(hours=hour, minutes=minute) + EVENT_DURATION
    return start, end.strftime("%Y-%m-%dT%H:%M:%S")


def build_event_payload(booking: BookingRequest) -> Dict[str, Any]:
    """Build the Google Calendar event resource for a validated booking."""
    service_description = describe_service(booking.service)
    start, end = compute_event_window(booking.date, booking.time)

    description = render_text(
        "calendar_event_description.txt",
        name=booking.name,
        email=booking.email,
        phone=booking.phone,
        service_description=service_description,
    )

    # No attendees: a service account cannot invite guests without
    # domain-wide delegation, the API answers 403.
    return {
        "summary": f"{service_description} - {booking.name}",
        "description": description,
        "location": EVENT_LOCATION,
        "start": {"dateTime": start, "timeZone": EVENT_TIMEZONE},
        "end": {"dateTime": end, "timeZone": EVENT_TIMEZONE},
        "reminders": {"useDefault": False, "overrides": [dict(r) for r in REMINDER_OVERRIDES]},
        "colorId": EVENT_COLOR_ID,
    }
