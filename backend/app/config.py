"""Application configuration."""
from collections import Counter
from functools import lru_cache
import math

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Renewly"
    debug: bool = False
    log_level: str = "INFO"
    app_url: str = "https://renewly.app"

    # Database
    database_url: str = "sqlite:///./data/renewly.db"

    # Auth (tokens are issued by the identity provider, we only verify them)
    secret_key: str
    algorithm: str = "HS256"
    admin_api_key: str | None = None

    # WhatsApp Cloud API
    whatsapp_access_token: str | None = None
    whatsapp_phone_number_id: str | None = None
    whatsapp_api_version: str = "v19.0"

    # Twilio SMS
    twilio_account_sid: str | None = None
    twilio_auth_token: str | None = None
    twilio_phone_number: str | None = None

    # Resend email
    resend_api_key: str | None = None
    email_from: str = "Renewly Reminders <reminders@renewly.app>"

    # Delivery
    default_country_code: str = "91"
    delivery_timeout_seconds: float = 10.0

    # Scheduler
    scheduler_enabled: bool = False
    scheduler_timezone: str = "UTC"
    reminder_cron_hours: str = "8,20"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, value: str) -> str:
        """Fail closed if SECRET_KEY is weak or placeholder quality."""
        if not value:
            raise ValueError("SECRET_KEY must be set.")

        if len(value) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")

        weak_values = {"changeme", "changeme-in-production", "secret", "password", "test"}
        lowered = value.lower()
        if lowered in weak_values or "changeme" in lowered:
            raise ValueError("SECRET_KEY must not be a placeholder value.")

        counts = Counter(value)
        entropy_per_char = -sum((count / len(value)) * math.log2(count / len(value)) for count in counts.values())
        estimated_entropy_bits = entropy_per_char * len(value)
        if estimated_entropy_bits < 100:
            raise ValueError("SECRET_KEY entropy is too low; use a cryptographically random value.")

        return value

    @field_validator("default_country_code")
    @classmethod
    def validate_country_code(cls, value: str) -> str:
        if not value.isdigit() or not 1 <= len(value) <= 3:
            raise ValueError("DEFAULT_COUNTRY_CODE must be 1-3 digits.")
        return value

    @property
    def whatsapp_configured(self) -> bool:
        return bool(self.whatsapp_access_token and self.whatsapp_phone_number_id)

    @property
    def sms_configured(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token and self.twilio_phone_number)

    @property
    def email_configured(self) -> bool:
        return bool(self.resend_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
