"""Application settings loaded from the environment (and an optional ``.env``)."""

import base64
import binascii
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    APP_NAME: str = "Invoizo"
    API_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite:///./invoizo.db"

    # Tokens are issued by the external identity provider; only decoding happens here.
    SECRET_KEY: str = "CHANGE_ME"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Base64 of 32 random bytes (AES-256). Generate with invoizo.app.core.encryption.generate_key().
    ENCRYPTION_KEY: str

    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_TLS: bool = True
    MAIL_FROM: str = "invoices@invoizo.local"

    SCHEDULER_ENABLED: bool = True
    SCHEDULER_TIMEZONE: str = "Asia/Kolkata"
    OVERDUE_SWEEP_HOUR: int = 1
    OVERDUE_SWEEP_MINUTE: int = 0
    REMINDER_HOUR: int = 9
    REMINDER_MINUTE: int = 0

    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_INITIAL_DELAY_SECONDS: float = 0.5

    @field_validator("ENCRYPTION_KEY")
    @classmethod
    def check_encryption_key(cls, value: str) -> str:
        try:
            raw = base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("ENCRYPTION_KEY must be base64 encoded") from exc
        if len(raw) != 32:
            raise ValueError("ENCRYPTION_KEY must decode to exactly 32 bytes")
        return value

    @field_validator("RETRY_MAX_ATTEMPTS")
    @classmethod
    def check_retry_attempts(cls, value: int) -> int:
        if value < 1:
            raise ValueError("RETRY_MAX_ATTEMPTS must be at least 1")
        return value


_settings_instance = None


def get_settings() -> Settings:
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
