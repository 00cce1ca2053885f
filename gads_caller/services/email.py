"""
Summary email service - delivers post-call summaries to the configured team inbox.

Providers, in order of preference:
1. Resend (REST API via httpx) when RESEND_API_KEY is set
2. SendGrid (official SDK) when SENDGRID_API_KEY is set

Raises EmailConfigurationError when nothing usable is configured and
EmailDeliveryError when the provider rejects the message.
"""
import asyncio
import json
import logging

import httpx

from gads_caller.config import Settings
from gads_caller.errors import EmailConfigurationError, EmailDeliveryError

logger = logging.getLogger(__name__)

RESEND_EMAIL_ENDPOINT = "https://api.resend.com/emails"
TIMEOUT = 10.0


async def send_summary_email(settings: Settings, subject: str, text: str, html: str) -> dict:
    """
    Send a summary email to every EMAIL_TO recipient.

    Returns: {"provider": str, "message_id": str|None}
    """
    if not (settings.resend_api_key or settings.sendgrid_api_key) or not settings.email_from:
        logger.warning(
            "Email configuration incomplete: resend=%s sendgrid=%s from=%s",
            bool(settings.resend_api_key), bool(settings.sendgrid_api_key), bool(settings.email_from),
        )
        raise EmailConfigurationError("Email configuration incomplete.")

    recipients = settings.email_recipients
    if not recipients:
        raise EmailConfigurationError("EMAIL_TO has no valid recipients.")

    if settings.resend_api_key:
        return await _send_via_resend(settings, recipients, subject, text, html)
    return await _send_via_sendgrid(settings, recipients, subject, text, html)


async def _send_via_resend(
    settings: Settings,
    recipients: list[str],
    subject: str,
    text: str,
    html: str,
) -> dict:
    payload = {
        "from": settings.email_from,
        "to": recipients,
        "subject": subject,
        "text": text,
        "html": html,
    }
    headers = {
        "Authorization": f"Bearer {settings.resend_api_key}",
        "Content-Type": "application/json",
    }

    try:
        async with httpx.AsyncClient(timeout=TIMEOUT) as client:
            response = await client.post(RESEND_EMAIL_ENDPOINT, headers=headers, json=payload)
    except httpx.HTTPError as e:
        raise EmailDeliveryError(f"Resend request failed: {e}") from e

    raw = response.text
    try:
        parsed = json.loads(raw)
    except ValueError:
        parsed = None

    logger.info("Resend response status: %s", response.status_code, extra={"status": response.status_code})

    if not response.is_success:
        raise EmailDeliveryError(f"Failed to send email via Resend: {response.status_code} {raw}")

    message_id = parsed.get("id") if isinstance(parsed, dict) else None
    return {"provider": "resend", "message_id": message_id}


async def _send_via_sendgrid(
    settings: Settings,
    recipients: list[str],
    subject: str,
    text: str,
    html: str,
) -> dict:
    from sendgrid import SendGridAPIClient
    from sendgrid.helpers.mail import Content, Mail, To

    message = Mail(
        from_email=settings.email_from,
        to_emails=[To(addr) for addr in recipients],
        subject=subject,
    )
    message.content = [
        Content("text/plain", text),
        Content("text/html", html),
    ]

    sg = SendGridAPIClient(api_key=settings.sendgrid_api_key)
    try:
        # Offload synchronous SendGrid SDK call to thread pool
        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(None, lambda: sg.send(message))
    except Exception as e:
        raise EmailDeliveryError(f"Failed to send email via SendGrid: {e}") from e

    status = getattr(response, "status_code", None)
    logger.info("SendGrid response status: %s", status, extra={"status": status})
    if status is not None and status >= 300:
        raise EmailDeliveryError(f"Failed to send email via SendGrid: {status}")

    return {"provider": "sendgrid", "message_id": response.headers.get("X-Message-Id")}
