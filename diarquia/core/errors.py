"""
Error taxonomy for the booking pipeline.

Components raise these and never translate them to HTTP; the bookings route
and the app-level handlers in main.py are the only places that map them to
status codes.
"""
from typing import Any, Dict, List, Optional

CALENDAR_PROVIDER = "Google Calendar"
MESSAGING_PROVIDER = "WhatsApp"


class BookingError(Exception):
    """Base class for every failure raised inside the booking pipeline."""

    provider: Optional[str] = None

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.message = message
        # Set by the orchestrator when the calendar event was already created.
        self.calendar_event = None
        if provider is not None:
            self.provider = provider

    def __str__(self) -> str:
        if self.provider:
            return f"{self.provider}: {self.message}"
        return self.message

    @property
    def concerns_calendar(self) -> bool:
        return self.provider == CALENDAR_PROVIDER


class ValidationError(BookingError):
    """Client-side input problem. Always a 400."""

    def details(self) -> Optional[Dict[str, Any]]:
        return None


class MissingFieldsError(ValidationError):
    def __init__(self, missing_fields: List[str]):
        super().__init__("All fields are required")
        self.missing_fields = list(missing_fields)

    def details(self) -> Optional[Dict[str, Any]]:
        return {"missingFields": self.missing_fields}


class InvalidEmailFormatError(ValidationError):
    def __init__(self):
        super().__init__("The email format is not valid")


class InvalidPhoneFormatError(ValidationError):
    def __init__(self):
        super().__init__("The phone format must be +56 9XXXXXXXX")


class ConfigurationError(BookingError):
    """Deployment secrets are missing or unusable."""

    def __init__(self, message: str, provider: Optional[str] = None, missing_keys: Optional[List[str]] = None):
        super().__init__(message, provider=provider)
        self.missing_keys = list(missing_keys or [])


class CalendarError(BookingError):
    provider = CALENDAR_PROVIDER

    def __init__(self, reason: str, status_code: Optional[int] = None):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code


class NotificationError(BookingError):
    provider = MESSAGING_PROVIDER

    def __init__(self, reason: str, status_code: Optional[int] = None):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code
