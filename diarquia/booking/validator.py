import re
from typing import Any, Mapping, Union

from diarquia.core.errors import (
    InvalidEmailFormatError,
    InvalidPhoneFormatError,
    MissingFieldsError,
)
from diarquia.schemas.booking import BookingRequest

REQUIRED_FIELDS = ("name", "email", "phone", "service", "date", "time")

EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
# Chilean mobile: optional +, country code 56, optional space, 9 and 8 digits.
PHONE_RE = re.compile(r"\+?56\s?9\d{8}", re.ASCII)
_WHITESPACE_RE = re.compile(r"\s")


def _field(request: Union[BookingRequest, Mapping[str, Any]], name: str) -> Any:
    if isinstance(request, Mapping):
        return request.get(name)
    return getattr(request, name, None)


def validate_booking(request: Union[BookingRequest, Mapping[str, Any]]) -> None:
    """
    Gate a booking submission before any provider is contacted.

    Raises MissingFieldsError, InvalidEmailFormatError or
    InvalidPhoneFormatError; returns None when the submission is acceptable.
    """
    missing = [name for name in REQUIRED_FIELDS if not _field(request, name)]
    if missing:
        raise MissingFieldsError(missing)

    if not EMAIL_RE.fullmatch(_field(request, "email")):
        raise InvalidEmailFormatError()

    phone = _WHITESPACE_RE.sub("", _field(request, "phone"))
    if not PHONE_RE.fullmatch(phone):
        raise InvalidPhoneFormatError()
