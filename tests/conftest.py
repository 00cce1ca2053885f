"""
Test configuration and fixtures.
No test talks to ElevenLabs, Resend, SendGrid or Twilio: every outbound
client is mocked, and settings are built explicitly per test.
"""
import hashlib
import hmac
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from gads_caller.config import Settings, get_settings
from gads_caller.services.call_scheduler import CallScheduler
from gads_caller.services.elevenlabs import ElevenLabsClient

POSTCALL_SECRET = "wsec_test_secret"
SHARED_SECRET = "lead-shared-secret"


def make_settings(**overrides) -> Settings:
    """Settings with every relay feature configured; override per test."""
    values = {
        "xi_api_key": "xi_test_key",
        "elevenlabs_agent_id": "agent_123",
        "elevenlabs_agent_phone_number_id": "phnum_456",
        "elevenlabs_postcall_secret": "",
        "webhook_shared_secret": SHARED_SECRET,
        "twilio_auth_token": "",
        "resend_api_key": "re_test_key",
        "sendgrid_api_key": "",
        "email_from": "calls@example.com",
        "email_to": "sales@example.com, owner@example.com",
        "outbound_call_delay_seconds": 45.0,
        "sentry_dsn": "",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def sign_elevenlabs(secret: str, timestamp, body: bytes) -> str:
    """Build a timestamped ElevenLabs-Signature header value."""
    digest = hmac.new(
        secret.encode("utf-8"),
        f"{timestamp}.".encode("utf-8") + body,
        hashlib.sha256,
    ).hexdigest()
    return f"t={timestamp},v0={digest}"


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def mock_scheduler():
    """Scheduler double - nothing is actually delayed or dialled."""
    scheduler = MagicMock(spec=CallScheduler)
    scheduler.pending = 0
    scheduler.cancel_all = AsyncMock(return_value=0)
    return scheduler


@pytest.fixture
def mock_elevenlabs():
    """ElevenLabs client double with a successful outbound call by default."""
    client = MagicMock(spec=ElevenLabsClient)
    client.start_outbound_call = AsyncMock(return_value={
        "ok": True,
        "status": 200,
        "raw_text": '{"success": true, "callSid": "CA123"}',
        "parsed_json": {"success": True, "callSid": "CA123"},
    })
    client.fetch_conversation = AsyncMock(return_value={})
    return client


@pytest.fixture
def app(settings, mock_scheduler, mock_elevenlabs):
    from gads_caller.api.deps import get_call_scheduler, get_elevenlabs_client
    from gads_caller.main import create_app

    application = create_app()
    application.dependency_overrides[get_settings] = lambda: settings
    application.dependency_overrides[get_call_scheduler] = lambda: mock_scheduler
    application.dependency_overrides[get_elevenlabs_client] = lambda: mock_elevenlabs
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)
