import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote
from zoneinfo import ZoneInfo

import httpx
from jose import jwt
from jose.exceptions import JOSEError

from diarquia.calendar.event_builder import EVENT_TIMEZONE, build_event_payload
from diarquia.calendar.types import CalendarEvent
from diarquia.core.config import AppConfig
from diarquia.core.errors import CALENDAR_PROVIDER, CalendarError, ConfigurationError
from diarquia.observability.logger import log_event, timing
from diarquia.schemas.booking import BookingRequest

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"
CALENDAR_API = "https://www.googleapis.com/calendar/v3"
CALENDAR_SCOPE = "https://www.googleapis.com/auth/calendar"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
ASSERTION_LIFETIME_SECONDS = 3600


def _provider_message(response: httpx.Response) -> str:
    """Extract the error message from a Google API or OAuth error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or f"HTTP {response.status_code}"
    if isinstance(error, str):
        return body.get("error_description") or error
    return f"HTTP {response.status_code}"


def _raise_for_status(response: httpx.Response) -> None:
    status = response.status_code
    if status < 400:
        return
    if status == 401:
        raise CalendarError("invalid credentials", status_code=status)
    if status == 403:
        raise CalendarError("insufficient permissions", status_code=status)
    if status == 404:
        raise CalendarError("calendar not found", status_code=status)
    raise CalendarError(_provider_message(response), status_code=status)


class GoogleCalendarAdapter:
    """Google Calendar adapter authenticated as a service account."""

    def __init__(self, config: AppConfig):
        self.config = config
        self.timeout = config.provider_timeout_seconds
        self._access_token: Optional[str] = None
        self._token_expires_at: float = 0.0

    @property
    def calendar_id(self) -> str:
        return self.config.google_calendar_id or "primary"

    def _require_config(self) -> None:
        required = {
            "GOOGLE_CLIENT_EMAIL": self.config.google_client_email,
            "GOOGLE_PRIVATE_KEY": self.config.google_private_key,
            "GOOGLE_CALENDAR_ID": self.config.google_calendar_id,
        }
        missing = [key for key, value in required.items() if not value]
        if missing:
            raise ConfigurationError(
                f"missing environment variables: {', '.join(missing)}",
                provider=CALENDAR_PROVIDER,
                missing_keys=missing,
            )

    def _private_key(self) -> str:
        # Keys stored in env files carry literal "\n" sequences.
        return (self.config.google_private_key or "").replace("\\n", "\n")

    def _build_assertion(self, now: float) -> str:
        claims = {
            "iss": self.config.google_client_email,
            "scope": CALENDAR_SCOPE,
            "aud": TOKEN_URI,
            "iat": int(now),
            "exp": int(now) + ASSERTION_LIFETIME_SECONDS,
        }
        headers = {"kid": self.config.google_private_key_id} if self.config.google_private_key_id else None
        try:
            return jwt.encode(claims, self._private_key(), algorithm="RS256", headers=headers)
        except JOSEError as exc:
            raise ConfigurationError(
                f"GOOGLE_PRIVATE_KEY cannot sign the token request: {exc}",
                provider=CALENDAR_PROVIDER,
            ) from exc

    async def _get_access_token(self) -> str:
        """Get or refresh an access token through the JWT bearer grant."""
        now = time.time()
        if self._access_token and now < self._token_expires_at - 60:  # Refresh 1min early
            return self._access_token

        data = {"grant_type": JWT_BEARER_GRANT, "assertion": self._build_assertion(now)}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(TOKEN_URI, data=data)
        except httpx.HTTPError as exc:
            raise CalendarError(f"token request failed: {exc}") from exc

        # The token endpoint answers 400 invalid_grant for a bad key or account.
        if response.status_code in (400, 401):
            raise CalendarError("invalid credentials", status_code=response.status_code)
        _raise_for_status(response)

        try:
            token_data = response.json()
            access_token = token_data["access_token"]
            expires_in = float(token_data.get("expires_in", 3600))
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise CalendarError(f"unexpected token response: {response.text[:200]}") from exc

        self._access_token = access_token
        self._token_expires_at = now + expires_in
        return self._access_token

    async def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        access_token = await self._get_access_token()
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise CalendarError(str(exc) or type(exc).__name__) from exc

        _raise_for_status(response)
        try:
            return response.json()
        except ValueError as exc:
            raise CalendarError(f"unexpected response (HTTP {response.status_code}): not JSON") from exc

    def _events_url(self) -> str:
        return f"{CALENDAR_API}/calendars/{quote(self.calendar_id, safe='')}/events"

    async def create_event(self, booking: BookingRequest) -> CalendarEvent:
        """
        Insert a one-hour event for a validated booking.

        Not idempotent: every call creates a new event.
        """
        self._require_config()
        payload = build_event_payload(booking)

        with timing("calendar_insert") as t:
            try:
                data = await self._request("POST", self._events_url(), json=payload)
            except CalendarError as exc:
                logger.error(f"Google Calendar insert failed: {exc}")
                raise

        event_id = data.get("id") if isinstance(data, dict) else None
        if not event_id:
            raise CalendarError("response did not include an event id")

        log_event(
            "event_created",
            provider=CALENDAR_PROVIDER,
            duration_ms=t.get_duration_ms(),
            event_id=event_id,
            start=payload["start"]["dateTime"],
        )
        return CalendarEvent(
            id=event_id,
            html_link=data.get("htmlLink"),
            status=data.get("status"),
            created=data.get("created"),
        )

    async def list_events(self, start_date: str, end_date: str) -> List[Dict[str, Any]]:
        """
        Fetch raw events between two ISO dates (inclusive), in start-time order.

        Args:
            start_date: First day (YYYY-MM-DD)
            end_date: Last day (YYYY-MM-DD)

        Returns:
            The provider's event items
        """
        self._require_config()
        tz = ZoneInfo(EVENT_TIMEZONE)
        try:
            time_min = datetime.strptime(start_date, "%Y-%m-%d").replace(tzinfo=tz)
            time_max = datetime.strptime(end_date, "%Y-%m-%d").replace(hour=23, minute=59, second=59, tzinfo=tz)
        except ValueError as exc:
            raise CalendarError(f"invalid date range: {exc}") from exc

        params = {
            "timeMin": time_min.isoformat(),
            "timeMax": time_max.isoformat(),
            "timeZone": EVENT_TIMEZONE,
            "singleEvents": "true",
            "orderBy": "startTime",
        }
        data = await self._request("GET", self._events_url(), params=params)
        if not isinstance(data, dict):
            raise CalendarError("unexpected events listing response")
        return data.get("items", [])


def create_google_calendar_adapter(config: AppConfig) -> GoogleCalendarAdapter:
    """Factory function to create GoogleCalendarAdapter from the app config."""
    return GoogleCalendarAdapter(config)
