import logging
from typing import Protocol

from diarquia.booking.validator import validate_booking
from diarquia.calendar.provider import CalendarProvider
from diarquia.channels.types import NotificationReceipt
from diarquia.observability.logger import log_error
from diarquia.schemas.booking import (
    AppointmentInfo,
    BookingRequest,
    BookingResult,
    CustomerInfo,
)

logger = logging.getLogger(__name__)


class NotificationSender(Protocol):
    async def send_confirmation(self, booking: BookingRequest) -> NotificationReceipt:
        ...

    async def send_message(self, phone: str, text: str) -> NotificationReceipt:
        ...


class BookingOrchestrator:
    """
    Runs one booking through validate -> calendar -> confirmation.

    Steps are strictly sequential. A failing step stops the pipeline and its
    error propagates to the caller. Nothing is rolled back: if the
    confirmation fails, the calendar event stays in place and the
    raised error carries it as `calendar_event`.
    """

    def __init__(self, calendar: CalendarProvider, notifier: NotificationSender):
        self.calendar = calendar
        self.notifier = notifier

    async def process_booking(self, request: BookingRequest) -> BookingResult:
        validate_booking(request)

        logger.info("Creating calendar event")
        event = await self.calendar.create_event(request)
        logger.info(f"Calendar event created: {event.id}")

        logger.info("Sending WhatsApp confirmation")
        try:
            receipt = await self.notifier.send_confirmation(request)
        except Exception as exc:
            exc.calendar_event = event
            log_error(exc, {"stage": "confirmation", "calendar_event_id": event.id, "partial_booking": True})
            raise
        logger.info(f"WhatsApp confirmation sent: {receipt.message_id}")

        return BookingResult(
            booking_id=event.id,
            calendar_event_id=event.id,
            calendar_event_link=event.html_link,
            whatsapp_message_id=receipt.message_id,
            customer=CustomerInfo(name=request.name, email=request.email, phone=request.phone),
            appointment=AppointmentInfo(service=request.service, date=request.date, time=request.time),
        )
