"""
Tests for gads_caller/main.py - app factory, middleware, error envelope, and lifespan.
"""
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi import FastAPI
from fastapi.testclient import TestClient

from gads_caller.main import CorrelationIdMiddleware, create_app
from gads_caller.services.call_scheduler import CallScheduler
from tests.conftest import make_settings


class TestCreateApp:
    def test_returns_fastapi_instance(self):
        with patch("gads_caller.main.get_settings", return_value=make_settings()):
            app = create_app()
        assert isinstance(app, FastAPI)
        assert app.title == "gads-elevenlabs-caller"

    def test_scheduler_uses_configured_delay(self):
        with patch(
            "gads_caller.main.get_settings",
            return_value=make_settings(outbound_call_delay_seconds=5),
        ):
            app = create_app()
        assert isinstance(app.state.call_scheduler, CallScheduler)
        assert app.state.call_scheduler.delay_seconds == 5

    def test_routes_registered(self):
        app = create_app()
        paths = {route.path for route in app.routes}
        for path in ("/health", "/envcheck", "/echo", "/gads/lead", "/test-call",
                     "/elevenlabs/postcall", "/twilio/status"):
            assert path in paths

    def test_correlation_middleware_installed(self):
        app = create_app()
        assert any(m.cls is CorrelationIdMiddleware for m in app.user_middleware)


class TestCorrelationIdMiddleware:
    def test_generates_id(self, client):
        response = client.get("/health")
        cid = response.headers["X-Correlation-ID"]
        assert len(cid) == 32

    def test_echoes_incoming_id(self, client):
        response = client.get("/health", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"


class TestErrorEnvelope:
    def test_unknown_route(self, client):
        response = client.get("/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Not Found"}

    def test_wrong_method(self, client):
        response = client.get("/gads/lead")
        assert response.status_code == 405
        assert response.json()["success"] is False

    def test_unhandled_exception(self, app, mock_elevenlabs):
        mock_elevenlabs.start_outbound_call.side_effect = RuntimeError("kaboom")
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/test-call", params={"to": "5551234567"})
        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Internal server error."}


class TestLifespan:
    def test_shutdown_cancels_pending_calls(self, app):
        scheduler = MagicMock(spec=CallScheduler)
        scheduler.pending = 2
        scheduler.cancel_all = AsyncMock(return_value=2)
        app.state.call_scheduler = scheduler

        with patch("gads_caller.main.get_settings", return_value=make_settings()):
            with TestClient(app) as client:
                assert client.get("/health").status_code == 200

        scheduler.cancel_all.assert_awaited_once()

    def test_sentry_initialized_when_configured(self, app):
        settings = make_settings(sentry_dsn="https://public@sentry.example.com/1")
        with (
            patch("gads_caller.main.get_settings", return_value=settings),
            patch("sentry_sdk.init") as mock_init,
        ):
            with TestClient(app):
                pass
        mock_init.assert_called_once()
        assert mock_init.call_args.kwargs["dsn"] == settings.sentry_dsn

    def test_sentry_skipped_without_dsn(self, app):
        with (
            patch("gads_caller.main.get_settings", return_value=make_settings()),
            patch("sentry_sdk.init") as mock_init,
        ):
            with TestClient(app):
                pass
        mock_init.assert_not_called()
