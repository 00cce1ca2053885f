"""
Tests for gads_caller/services/email.py - summary email delivery through
Resend (httpx) and SendGrid (SDK). Nothing leaves the process.
"""
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from gads_caller.errors import EmailConfigurationError, EmailDeliveryError
from gads_caller.services.email import RESEND_EMAIL_ENDPOINT, send_summary_email
from tests.conftest import make_settings


def _make_mock_response(status_code: int, text: str) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.is_success = 200 <= status_code < 300
    return response


def _build_mock_client(post_response=None, post_side_effect=None) -> AsyncMock:
    mock_client = AsyncMock()
    if post_side_effect:
        mock_client.post = AsyncMock(side_effect=post_side_effect)
    else:
        mock_client.post = AsyncMock(return_value=post_response)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


class TestEmailConfiguration:
    @pytest.mark.asyncio
    async def test_no_provider_key(self):
        settings = make_settings(resend_api_key="", sendgrid_api_key="")
        with pytest.raises(EmailConfigurationError):
            await send_summary_email(settings, "s", "t", "<p>h</p>")

    @pytest.mark.asyncio
    async def test_no_sender(self):
        settings = make_settings(email_from="")
        with pytest.raises(EmailConfigurationError):
            await send_summary_email(settings, "s", "t", "<p>h</p>")

    @pytest.mark.asyncio
    async def test_blank_recipient_list(self):
        settings = make_settings(email_to=" , ,")
        with pytest.raises(EmailConfigurationError, match="EMAIL_TO"):
            await send_summary_email(settings, "s", "t", "<p>h</p>")

    def test_recipients_are_trimmed(self):
        settings = make_settings(email_to=" a@example.com ,, b@example.com ")
        assert settings.email_recipients == ["a@example.com", "b@example.com"]


class TestResend:
    @pytest.mark.asyncio
    async def test_success(self):
        mock_client = _build_mock_client(
            post_response=_make_mock_response(200, '{"id": "email_123"}')
        )
        with patch("gads_caller.services.email.httpx.AsyncClient", return_value=mock_client):
            result = await send_summary_email(make_settings(), "Subject", "text", "<p>html</p>")

        assert result == {"provider": "resend", "message_id": "email_123"}
        args, kwargs = mock_client.post.call_args
        assert args[0] == RESEND_EMAIL_ENDPOINT
        assert kwargs["headers"]["Authorization"] == "Bearer re_test_key"
        assert kwargs["json"] == {
            "from": "calls@example.com",
            "to": ["sales@example.com", "owner@example.com"],
            "subject": "Subject",
            "text": "text",
            "html": "<p>html</p>",
        }

    @pytest.mark.asyncio
    async def test_provider_rejection(self):
        mock_client = _build_mock_client(
            post_response=_make_mock_response(403, '{"message": "domain not verified"}')
        )
        with patch("gads_caller.services.email.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(EmailDeliveryError, match="403"):
                await send_summary_email(make_settings(), "s", "t", "h")

    @pytest.mark.asyncio
    async def test_transport_error(self):
        mock_client = _build_mock_client(post_side_effect=httpx.ReadTimeout("slow"))
        with patch("gads_caller.services.email.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(EmailDeliveryError):
                await send_summary_email(make_settings(), "s", "t", "h")

    @pytest.mark.asyncio
    async def test_resend_preferred_over_sendgrid(self):
        settings = make_settings(sendgrid_api_key="SG.key")
        mock_client = _build_mock_client(post_response=_make_mock_response(200, "{}"))
        with (
            patch("gads_caller.services.email.httpx.AsyncClient", return_value=mock_client),
            patch("sendgrid.SendGridAPIClient") as mock_sg,
        ):
            result = await send_summary_email(settings, "s", "t", "h")

        assert result == {"provider": "resend", "message_id": None}
        mock_sg.assert_not_called()


class TestSendGrid:
    def _settings(self):
        return make_settings(resend_api_key="", sendgrid_api_key="SG.key")

    @pytest.mark.asyncio
    async def test_success(self):
        response = MagicMock(status_code=202, headers={"X-Message-Id": "sg_msg_1"})
        with patch("sendgrid.SendGridAPIClient") as mock_cls:
            mock_cls.return_value.send.return_value = response
            result = await send_summary_email(self._settings(), "Subject", "text", "<p>html</p>")

        assert result == {"provider": "sendgrid", "message_id": "sg_msg_1"}
        mock_cls.assert_called_once_with(api_key="SG.key")
        mock_cls.return_value.send.assert_called_once()

    @pytest.mark.asyncio
    async def test_error_status(self):
        response = MagicMock(status_code=400, headers={})
        with patch("sendgrid.SendGridAPIClient") as mock_cls:
            mock_cls.return_value.send.return_value = response
            with pytest.raises(EmailDeliveryError, match="400"):
                await send_summary_email(self._settings(), "s", "t", "h")

    @pytest.mark.asyncio
    async def test_sdk_exception(self):
        with patch("sendgrid.SendGridAPIClient") as mock_cls:
            mock_cls.return_value.send.side_effect = RuntimeError("unauthorized")
            with pytest.raises(EmailDeliveryError, match="unauthorized"):
                await send_summary_email(self._settings(), "s", "t", "h")
