"""
Application configuration using pydantic-settings.
Missing values never stop the process - each endpoint checks what it needs
and degrades to an error response instead.
"""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    # ElevenLabs Conversational AI
    xi_api_key: str = ""
    elevenlabs_agent_id: str = ""
    elevenlabs_agent_phone_number_id: str = ""
    elevenlabs_postcall_secret: str = ""  # Signs /elevenlabs/postcall webhooks

    # Lead intake
    webhook_shared_secret: str = ""  # Must match ?key= on /gads/lead
    default_phone_region: str = "US"
    outbound_call_delay_seconds: float = 45.0

    # Twilio status callbacks (signature checked only when set)
    twilio_auth_token: str = ""

    # Summary email - Resend first, SendGrid as fallback
    resend_api_key: str = ""
    sendgrid_api_key: str = ""
    email_from: str = ""
    email_to: str = ""  # Comma-separated recipients

    # Sentry
    sentry_dsn: str = ""

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        frozen = True

    @property
    def elevenlabs_configured(self) -> bool:
        return bool(
            self.xi_api_key
            and self.elevenlabs_agent_id
            and self.elevenlabs_agent_phone_number_id
        )

    @property
    def email_recipients(self) -> list[str]:
        return [addr.strip() for addr in self.email_to.split(",") if addr.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()
