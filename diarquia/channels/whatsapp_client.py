"""
WhatsApp Business (Meta Cloud API) client for booking confirmations.

Confirmations go out as the pre-approved template
"confirmacion_reserva_barberia"; freeform text messages are available for
reminder or cancellation flows.
"""

import logging
import re
import uuid
from typing import Any, Dict

import httpx

from diarquia.channels.types import NotificationReceipt
from diarquia.core.catalog import friendly_service_name
from diarquia.core.config import AppConfig
from diarquia.core.errors import MESSAGING_PROVIDER, ConfigurationError, NotificationError
from diarquia.observability.logger import log_event, mask_phone, timing
from diarquia.schemas.booking import BookingRequest

logger = logging.getLogger(__name__)

GRAPH_API_VERSION = "v18.0"
CONFIRMATION_TEMPLATE = "confirmacion_reserva_barberia"
TEMPLATE_LANGUAGE = "es"

_PHONE_STRIP_RE = re.compile(r"[\s\-+]")


def normalize_phone(phone: str) -> str:
    """Strip spaces, hyphens and '+' so the number is in the API's wa_id form."""
    return _PHONE_STRIP_RE.sub("", phone)


def format_display_date(date: str) -> str:
    """Turn YYYY-MM-DD into DD/MM/YYYY; other shapes are returned unchanged."""
    parts = date.split("-")
    if len(parts) != 3:
        return date
    year, month, day = parts
    return f"{day}/{month}/{year}"


def _provider_message(response: httpx.Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"].get("message") or default
    return default


class WhatsAppClient:
    """Client for the WhatsApp Cloud API messages endpoint."""

    def __init__(self, config: AppConfig):
        """
        Initialize WhatsApp client.

        Args:
            config: Application config carrying the phone number id,
                access token and provider timeout
        """
        self.phone_number_id = config.whatsapp_phone_number_id
        self.access_token = config.whatsapp_access_token
        self.base_url = f"https://graph.facebook.com/{GRAPH_API_VERSION}"
        self.timeout = config.provider_timeout_seconds

    def _require_config(self) -> None:
        missing = []
        if not self.phone_number_id:
            missing.append("WHATSAPP_PHONE_NUMBER_ID")
        if not self.access_token:
            missing.append("WHATSAPP_ACCESS_TOKEN")
        if missing:
            raise ConfigurationError(
                f"missing environment variables: {', '.join(missing)}",
                provider=MESSAGING_PROVIDER,
                missing_keys=missing,
            )

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Post a message payload and map provider failures.

        Raises:
            NotificationError: If the request fails or the API rejects it
        """
        url = f"{self.base_url}/{self.phone_number_id}/messages"
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json"
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, headers=headers, json=payload)
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            raise NotificationError("could not reach provider") from exc
        except httpx.HTTPError as exc:
            raise NotificationError(str(exc) or type(exc).__name__) from exc

        status = response.status_code
        if status >= 400:
            logger.error(f"WhatsApp API error response ({status}): {response.text}")
            if status == 401:
                raise NotificationError("invalid or expired token", status_code=status)
            if status == 403:
                raise NotificationError("insufficient permissions", status_code=status)
            if status == 404:
                raise NotificationError("phone line not found", status_code=status)
            if status == 400:
                raise NotificationError(_provider_message(response, "invalid request"), status_code=status)
            raise NotificationError(
                f"error {status} - {_provider_message(response, 'unknown error')}",
                status_code=status,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise NotificationError(f"unexpected response (HTTP {status}): not JSON", status_code=status) from exc

    @staticmethod
    def _message_id(result: Dict[str, Any]) -> str:
        try:
            return result["messages"][0]["id"]
        except (KeyError, IndexError, TypeError) as exc:
            raise NotificationError("response did not include a message id") from exc

    async def send_confirmation(self, booking: BookingRequest) -> NotificationReceipt:
        """
        Send the booking confirmation template.

        Template body parameters, in order: customer name, service name,
        date (DD/MM/YYYY), time.
        """
        self._require_config()
        recipient = normalize_phone(booking.phone)

        payload = {
            "messaging_product": "whatsapp",
            "to": recipient,
            "type": "template",
            "template": {
                "name": CONFIRMATION_TEMPLATE,
                "language": {"code": TEMPLATE_LANGUAGE},
                "components": [
                    {
                        "type": "body",
                        "parameters": [
                            {"type": "text", "text": booking.name},
                            {"type": "text", "text": friendly_service_name(booking.service)},
                            {"type": "text", "text": format_display_date(booking.date)},
                            {"type": "text", "text": booking.time},
                        ],
                    }
                ],
            },
        }

        with timing("whatsapp_template") as t:
            result = await self._post(payload)

        message_id = self._message_id(result)
        log_event(
            "message_sent",
            provider=MESSAGING_PROVIDER,
            duration_ms=t.get_duration_ms(),
            template=CONFIRMATION_TEMPLATE,
            message_id=message_id,
            phone=recipient,
        )
        return NotificationReceipt(message_id=message_id, status="sent", recipient=recipient)

    async def send_message(self, phone: str, text: str) -> NotificationReceipt:
        """
        Send a freeform text message (reminders, cancellations).

        Args:
            phone: Recipient phone number in any of the accepted shapes
            text: Message body

        Returns:
            Receipt with the provider message id
        """
        self._require_config()
        recipient = normalize_phone(phone)

        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": recipient,
            "type": "text",
            "text": {"preview_url": False, "body": text},
        }

        result = await self._post(payload)
        message_id = self._message_id(result)
        logger.info(f"WhatsApp text message {message_id} sent to {mask_phone(recipient)}")
        return NotificationReceipt(message_id=message_id, status="sent", recipient=recipient)


class ConsoleMessagingClient:
    """Prints messages instead of sending them. For local runs."""

    driver = "console"

    async def send_confirmation(self, booking: BookingRequest) -> NotificationReceipt:
        recipient = normalize_phone(booking.phone)
        print(
            f"[console-whatsapp] template={CONFIRMATION_TEMPLATE} to={mask_phone(recipient)} "
            f"params={[booking.name, friendly_service_name(booking.service), format_display_date(booking.date), booking.time]}"
        )
        return NotificationReceipt(message_id=f"wamid.LOCAL-{uuid.uuid4().hex}", recipient=recipient)

    async def send_message(self, phone: str, text: str) -> NotificationReceipt:
        recipient = normalize_phone(phone)
        preview_len = min(len(text), 200)
        print(f"[console-whatsapp] to={mask_phone(recipient)} text={text[:preview_len]!r}")
        return NotificationReceipt(message_id=f"wamid.LOCAL-{uuid.uuid4().hex}", recipient=recipient)


def select_messaging_client(config: AppConfig):
    """Factory function to select the messaging client based on MESSAGING_PROVIDER."""
    provider = config.messaging_provider
    if provider == "whatsapp":
        return WhatsAppClient(config)
    if provider == "console":
        return ConsoleMessagingClient()
    raise ValueError(f"Unsupported MESSAGING_PROVIDER: {provider}")
