"""
Test WhatsApp messaging client.

Covers template confirmations, freeform messages, phone normalization and
the mapping of Meta Cloud API failures onto NotificationError reasons.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from diarquia.channels.whatsapp_client import (
    CONFIRMATION_TEMPLATE,
    ConsoleMessagingClient,
    WhatsAppClient,
    format_display_date,
    normalize_phone,
    select_messaging_client,
)
from diarquia.core.config import AppConfig
from diarquia.core.errors import ConfigurationError, NotificationError
from diarquia.schemas.booking import BookingRequest


@pytest.fixture
def whatsapp_config():
    return AppConfig(whatsapp_phone_number_id="1234567890", whatsapp_access_token="EAAG-test-token")


@pytest.fixture
def booking(valid_booking):
    return BookingRequest(**valid_booking)


def _mock_post(mock_client, status_code=200, body=None, side_effect=None):
    mock_instance = MagicMock()
    if side_effect is not None:
        mock_instance.post = AsyncMock(side_effect=side_effect)
    else:
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = body or {}
        response.text = str(body)
        mock_instance.post = AsyncMock(return_value=response)
    mock_client.return_value.__aenter__.return_value = mock_instance
    return mock_instance


class TestHelpers:
    def test_normalize_phone(self):
        assert normalize_phone("+56 9 1234-5678") == "56912345678"
        assert normalize_phone("56912345678") == "56912345678"

    def test_format_display_date(self):
        assert format_display_date("2025-03-15") == "15/03/2025"

    def test_format_display_date_leaves_other_shapes(self):
        assert format_display_date("15/03/2025") == "15/03/2025"

    def test_select_messaging_client(self, whatsapp_config):
        assert isinstance(select_messaging_client(whatsapp_config), WhatsAppClient)
        assert isinstance(select_messaging_client(AppConfig(messaging_provider="console")), ConsoleMessagingClient)
        with pytest.raises(ValueError):
            select_messaging_client(AppConfig(messaging_provider="telegram"))


class TestSendConfirmation:
    @pytest.mark.asyncio
    async def test_sends_template_with_positional_parameters(self, whatsapp_config, booking):
        client = WhatsAppClient(whatsapp_config)

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = _mock_post(mock_client, body={"messages": [{"id": "wamid.HBgL123"}]})

            receipt = await client.send_confirmation(booking)

        assert receipt.message_id == "wamid.HBgL123"
        assert receipt.status == "sent"
        assert receipt.recipient == "56912345678"

        mock_instance.post.assert_called_once()
        args, kwargs = mock_instance.post.call_args
        assert args[0] == "https://graph.facebook.com/v18.0/1234567890/messages"
        assert kwargs["headers"]["Authorization"] == "Bearer EAAG-test-token"

        payload = kwargs["json"]
        assert payload["messaging_product"] == "whatsapp"
        assert payload["to"] == "56912345678"
        assert payload["type"] == "template"
        assert payload["template"]["name"] == CONFIRMATION_TEMPLATE
        assert payload["template"]["language"] == {"code": "es"}
        params = payload["template"]["components"][0]["parameters"]
        assert [p["text"] for p in params] == [
            "Juan Pérez",
            'Corte y Barba "La Diarquía"',
            "15/03/2025",
            "10:30",
        ]
        assert all(p["type"] == "text" for p in params)

    @pytest.mark.asyncio
    async def test_unknown_service_is_sent_verbatim(self, whatsapp_config, valid_booking):
        valid_booking["service"] = "afeitado-navaja"
        client = WhatsAppClient(whatsapp_config)

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = _mock_post(mock_client, body={"messages": [{"id": "wamid.1"}]})
            await client.send_confirmation(BookingRequest(**valid_booking))

        params = mock_instance.post.call_args.kwargs["json"]["template"]["components"][0]["parameters"]
        assert params[1]["text"] == "afeitado-navaja"

    @pytest.mark.asyncio
    async def test_missing_credentials(self, booking):
        client = WhatsAppClient(AppConfig(whatsapp_phone_number_id="1234567890"))

        with patch("httpx.AsyncClient") as mock_client:
            with pytest.raises(ConfigurationError) as exc_info:
                await client.send_confirmation(booking)

        assert exc_info.value.missing_keys == ["WHATSAPP_ACCESS_TOKEN"]
        assert not exc_info.value.concerns_calendar
        mock_client.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code,body,reason", [
        (401, {"error": {"message": "Error validating access token"}}, "invalid or expired token"),
        (403, {"error": {"message": "forbidden"}}, "insufficient permissions"),
        (404, {"error": {"message": "Unsupported post request"}}, "phone line not found"),
        (400, {"error": {"message": "(#132001) Template name does not exist in the translation"}},
         "(#132001) Template name does not exist in the translation"),
        (400, {}, "invalid request"),
        (500, {"error": {"message": "Service temporarily unavailable"}}, "error 500 - Service temporarily unavailable"),
        (502, {}, "error 502 - unknown error"),
    ])
    async def test_status_mapping(self, whatsapp_config, booking, status_code, body, reason):
        client = WhatsAppClient(whatsapp_config)

        with patch("httpx.AsyncClient") as mock_client:
            _mock_post(mock_client, status_code=status_code, body=body)
            with pytest.raises(NotificationError) as exc_info:
                await client.send_confirmation(booking)

        assert exc_info.value.reason == reason
        assert exc_info.value.status_code == status_code
        assert str(exc_info.value).startswith("WhatsApp: ")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        httpx.ConnectError("Connection refused"),
        httpx.ReadTimeout("timed out"),
        httpx.ConnectTimeout("timed out"),
    ])
    async def test_unreachable_provider(self, whatsapp_config, booking, error):
        client = WhatsAppClient(whatsapp_config)

        with patch("httpx.AsyncClient") as mock_client:
            _mock_post(mock_client, side_effect=error)
            with pytest.raises(NotificationError) as exc_info:
                await client.send_confirmation(booking)

        assert exc_info.value.reason == "could not reach provider"

    @pytest.mark.asyncio
    async def test_response_without_message_id(self, whatsapp_config, booking):
        client = WhatsAppClient(whatsapp_config)

        with patch("httpx.AsyncClient") as mock_client:
            _mock_post(mock_client, body={"messages": []})
            with pytest.raises(NotificationError):
                await client.send_confirmation(booking)

    @pytest.mark.asyncio
    async def test_non_json_success_body(self, whatsapp_config, booking):
        client = WhatsAppClient(whatsapp_config)

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = _mock_post(mock_client, body={"messages": [{"id": "wamid.1"}]})
            mock_instance.post.return_value.json.side_effect = ValueError("not json")
            with pytest.raises(NotificationError) as exc_info:
                await client.send_confirmation(booking)

        assert "not JSON" in exc_info.value.reason
        assert exc_info.value.status_code == 200


class TestSendMessage:
    @pytest.mark.asyncio
    async def test_freeform_text(self, whatsapp_config):
        client = WhatsAppClient(whatsapp_config)

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = _mock_post(mock_client, body={"messages": [{"id": "wamid.TEXT1"}]})

            receipt = await client.send_message("+56 9 8765 4321", "Recordatorio: mañana 10:30")

        assert receipt.message_id == "wamid.TEXT1"
        assert receipt.recipient == "56987654321"
        payload = mock_instance.post.call_args.kwargs["json"]
        assert payload == {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": "56987654321",
            "type": "text",
            "text": {"preview_url": False, "body": "Recordatorio: mañana 10:30"},
        }

    @pytest.mark.asyncio
    async def test_freeform_errors_use_same_mapping(self, whatsapp_config):
        client = WhatsAppClient(whatsapp_config)

        with patch("httpx.AsyncClient") as mock_client:
            _mock_post(mock_client, status_code=401, body={"error": {"message": "expired"}})
            with pytest.raises(NotificationError) as exc_info:
                await client.send_message("+56912345678", "hola")

        assert exc_info.value.reason == "invalid or expired token"


class TestConsoleClient:
    @pytest.mark.asyncio
    async def test_prints_instead_of_sending(self, booking, capsys):
        client = ConsoleMessagingClient()

        receipt = await client.send_confirmation(booking)

        assert receipt.message_id.startswith("wamid.LOCAL-")
        assert receipt.recipient == "56912345678"
        out = capsys.readouterr().out
        assert CONFIRMATION_TEMPLATE in out
        assert "56912345678" not in out
