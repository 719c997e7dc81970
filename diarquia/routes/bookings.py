import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from diarquia.booking.orchestrator import BookingOrchestrator
from diarquia.calendar.provider import select_calendar_provider
from diarquia.channels.whatsapp_client import select_messaging_client
from diarquia.core.config import AppConfig
from diarquia.core.errors import (
    CALENDAR_PROVIDER,
    MESSAGING_PROVIDER,
    BookingError,
    ConfigurationError,
    ValidationError,
)
from diarquia.observability.logger import log_error, mask_email, mask_phone
from diarquia.routes.responses import envelope_response, get_config, internal_error_response
from diarquia.schemas.booking import BookingRequest

logger = logging.getLogger(__name__)

router = APIRouter()

CALENDAR_UNAVAILABLE = "Could not connect to Google Calendar. Please try again later."


def get_orchestrator(config: AppConfig = Depends(get_config)) -> BookingOrchestrator:
    # Built per request: adapters hold no state shared between bookings.
    try:
        calendar = select_calendar_provider(config)
    except ValueError as exc:
        raise ConfigurationError(str(exc), provider=CALENDAR_PROVIDER) from exc
    try:
        notifier = select_messaging_client(config)
    except ValueError as exc:
        raise ConfigurationError(str(exc), provider=MESSAGING_PROVIDER) from exc
    return BookingOrchestrator(calendar=calendar, notifier=notifier)


def booking_error_response(exc: Exception, config: AppConfig) -> JSONResponse:
    if isinstance(exc, ValidationError):
        return envelope_response(400, message=exc.message, details=exc.details())
    if isinstance(exc, BookingError) and exc.concerns_calendar:
        return envelope_response(503, message=CALENDAR_UNAVAILABLE)
    return internal_error_response(exc, config)


@router.post("")
async def create_booking(
    body: BookingRequest,
    config: AppConfig = Depends(get_config),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    """
    Register a booking: Google Calendar event first, WhatsApp confirmation second.

    400 for invalid input, 503 when Google Calendar fails, 500 otherwise.
    """
    logger.info(
        f"Processing booking: service={body.service} date={body.date} time={body.time} "
        f"email={mask_email(body.email)} phone={mask_phone(body.phone)}"
    )
    try:
        result = await orchestrator.process_booking(body)
    except Exception as exc:
        context = {"stage": "create_booking"}
        calendar_event = getattr(exc, "calendar_event", None)
        if calendar_event is not None:
            context["calendar_event_id"] = calendar_event.id
        log_error(exc, context)
        return booking_error_response(exc, config)

    return envelope_response(
        201,
        message="Booking created successfully",
        success=True,
        data=result.model_dump(),
    )
