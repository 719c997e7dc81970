from typing import Any, Dict, Optional

from pydantic import BaseModel


class BookingRequest(BaseModel):
    # Every field is optional here so absent values reach the validator and
    # come back as a 400 envelope listing them.
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    service: Optional[str] = None
    date: Optional[str] = None  # YYYY-MM-DD
    time: Optional[str] = None  # HH:MM


class CustomerInfo(BaseModel):
    name: str
    email: str
    phone: str


class AppointmentInfo(BaseModel):
    service: str
    date: str
    time: str


class BookingResult(BaseModel):
    booking_id: str
    calendar_event_id: str
    calendar_event_link: Optional[str] = None
    whatsapp_message_id: str
    customer: CustomerInfo
    appointment: AppointmentInfo


class Envelope(BaseModel):
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None
    details: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    path: Optional[str] = None

    def to_content(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
