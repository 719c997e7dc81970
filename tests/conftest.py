"""Shared fixtures: a valid booking and in-memory stand-ins for both providers."""
import pytest
from fastapi.testclient import TestClient

from diarquia.booking.orchestrator import BookingOrchestrator
from diarquia.calendar.types import CalendarEvent
from diarquia.channels.types import NotificationReceipt
from diarquia.channels.whatsapp_client import normalize_phone
from diarquia.core.config import AppConfig
from diarquia.main import create_app
from diarquia.routes.bookings import get_orchestrator


VALID_BOOKING = {
    "name": "Juan Pérez",
    "email": "juan.perez@example.cl",
    "phone": "+56 912345678",
    "service": "corte-barba-diarquia",
    "date": "2025-03-15",
    "time": "10:30",
}


class FakeCalendar:
    """Records every create_event call; optionally fails with a given error."""

    def __init__(self, error=None):
        self.error = error
        self.calls = []

    async def create_event(self, booking):
        self.calls.append(booking)
        if self.error is not None:
            raise self.error
        n = len(self.calls)
        return CalendarEvent(
            id=f"evt{n}",
            html_link=f"https://www.google.com/calendar/event?eid=evt{n}",
            status="confirmed",
            created="2025-03-01T12:00:00.000Z",
        )

    async def list_events(self, start_date, end_date):
        return []


class FakeNotifier:
    """Records every confirmation; optionally fails with a given error."""

    def __init__(self, error=None):
        self.error = error
        self.calls = []

    async def send_confirmation(self, booking):
        self.calls.append(booking)
        if self.error is not None:
            raise self.error
        return NotificationReceipt(
            message_id=f"wamid.{len(self.calls)}",
            status="sent",
            recipient=normalize_phone(booking.phone),
        )

    async def send_message(self, phone, text):
        self.calls.append((phone, text))
        return NotificationReceipt(message_id=f"wamid.{len(self.calls)}", recipient=normalize_phone(phone))


@pytest.fixture
def valid_booking():
    return dict(VALID_BOOKING)


@pytest.fixture
def fake_calendar():
    return FakeCalendar()


@pytest.fixture
def fake_notifier():
    return FakeNotifier()


@pytest.fixture
def make_client():
    """Build a TestClient whose bookings route uses the given providers."""

    def _make(calendar, notifier, config=None):
        app = create_app(config or AppConfig(environment="production"))
        orchestrator = BookingOrchestrator(calendar=calendar, notifier=notifier)
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator
        return TestClient(app)

    return _make
