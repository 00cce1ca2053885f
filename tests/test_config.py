"""
Tests for gads_caller/config.py - environment-driven settings.
"""
from gads_caller.config import Settings, get_settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for var in ("PORT", "OUTBOUND_CALL_DELAY_SECONDS", "DEFAULT_PHONE_REGION", "XI_API_KEY"):
            monkeypatch.delenv(var, raising=False)
        settings = Settings(_env_file=None)
        assert settings.port == 3000
        assert settings.outbound_call_delay_seconds == 45.0
        assert settings.default_phone_region == "US"
        assert settings.xi_api_key == ""

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("XI_API_KEY", "xi_env")
        monkeypatch.setenv("ELEVENLABS_AGENT_ID", "agent_env")
        monkeypatch.setenv("ELEVENLABS_AGENT_PHONE_NUMBER_ID", "phnum_env")
        monkeypatch.setenv("PORT", "8080")
        settings = Settings(_env_file=None)
        assert settings.xi_api_key == "xi_env"
        assert settings.port == 8080
        assert settings.elevenlabs_configured is True

    def test_elevenlabs_needs_all_three_values(self):
        settings = Settings(
            _env_file=None, xi_api_key="k", elevenlabs_agent_id="a", elevenlabs_agent_phone_number_id="",
        )
        assert settings.elevenlabs_configured is False

    def test_email_recipients_split(self):
        settings = Settings(_env_file=None, email_to="a@example.com,b@example.com")
        assert settings.email_recipients == ["a@example.com", "b@example.com"]

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
