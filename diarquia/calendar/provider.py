from typing import Any, Dict, List, Protocol

from diarquia.calendar.types import CalendarEvent
from diarquia.core.config import AppConfig
from diarquia.schemas.booking import BookingRequest


class CalendarProvider(Protocol):
    async def create_event(self, booking: BookingRequest) -> CalendarEvent:
        """
        Create a timed event for a validated booking.

        Raises CalendarError or ConfigurationError.
        """
        ...

    async def list_events(self, start_date: str, end_date: str) -> List[Dict[str, Any]]:
        ...


def select_calendar_provider(config: AppConfig) -> CalendarProvider:
    """Factory function to select calendar provider based on CALENDAR_PROVIDER."""
    provider = config.calendar_provider

    if provider == "google":
        from diarquia.calendar.google_adapter import create_google_calendar_adapter
        return create_google_calendar_adapter(config)
    elif provider == "mock":
        from diarquia.calendar.mock_provider import MockCalendarProvider
        return MockCalendarProvider()
    else:
        raise ValueError(f"Unsupported CALENDAR_PROVIDER: {provider}")
