import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List

from diarquia.calendar.event_builder import build_event_payload
from diarquia.calendar.types import CalendarEvent
from diarquia.schemas.booking import BookingRequest


class MockCalendarProvider:
    """In-memory calendar for local runs without Google credentials."""

    def __init__(self) -> None:
        self.events: List[Dict[str, Any]] = []

    async def create_event(self, booking: BookingRequest) -> CalendarEvent:
        event_id = uuid.uuid4().hex
        created = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        payload = build_event_payload(booking)
        self.events.append({
            **payload,
            "id": event_id,
            "status": "confirmed",
            "created": created,
            "htmlLink": f"https://calendar.local/event?eid={event_id}",
        })
        return CalendarEvent(
            id=event_id,
            html_link=f"https://calendar.local/event?eid={event_id}",
            status="confirmed",
            created=created,
        )

    async def list_events(self, start_date: str, end_date: str) -> List[Dict[str, Any]]:
        selected = []
        for e in self.events:
            day = str(e["start"]["dateTime"])[:10]
            if start_date <= day <= end_date:
                selected.append(e)
        return sorted(selected, key=lambda e: e["start"]["dateTime"])
