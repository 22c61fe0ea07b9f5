# python
# app/core/config.py
"""Configuration settings for the Referee Chat service.

Uses Pydantic BaseSettings for environment variable management.
"""
import secrets
from enum import Enum

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_KDF_ITERATIONS = 100_000


class EnvironmentEnum(str, Enum):
    development = "development"
    testing = "testing"
    staging = "staging"
    production = "production"


class LogLevelEnum(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormatEnum(str, Enum):
    simple = "simple"
    json = "json"


class NotificationBackendEnum(str, Enum):
    inline = "inline"
    celery = "celery"


class Settings(BaseSettings):
    # Pydantic v2 settings configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===== Application Settings =====
    app_name: str = Field(default="Referee Chat API", description="Application name")
    environment: EnvironmentEnum = Field(
        default=EnvironmentEnum.development, description="Environment type"
    )
    debug: bool = Field(default=False, description="Debug mode")
    version: str = Field(default="1.0.0", description="Application version")
    app_base_url: str = Field(
        default="http://localhost:3000",
        description="Public base URL used to build chat links in notifications",
    )

    # ===== Session Token Settings =====
    secret_key: str = Field(
        default_factory=lambda: secrets.token_urlsafe(32),
        description="Secret key for JWT encoding",
    )
    algorithm: str = Field(default="HS256", description="JWT algorithm")
    access_token_expire_minutes: int = Field(default=60 * 24 * 7, description="JWT token expiration time")

    # ===== Chat Encryption Settings =====
    encryption_key: str | None = Field(
        default=None, description="Master secret used to derive message encryption keys"
    )
    encryption_kdf_iterations: int = Field(
        default=MIN_KDF_ITERATIONS, description="PBKDF2 iterations per derived message key"
    )
    allow_legacy_token_lookup: bool = Field(
        default=True,
        description="Deprecated: also match referee tokens stored unhashed by older chats",
    )
    isolate_decryption_failures: bool = Field(
        default=False,
        description="Replace undecryptable messages with a placeholder instead of failing the listing",
    )

    # ===== Chat Limits =====
    max_message_length: int = Field(default=5000, description="Maximum characters per chat message")

    # ===== Database Settings =====
    database_url: str | None = Field(default=None, description="Database connection URL")
    db_pool_size: int = Field(default=20, description="Database connection pool size")
    db_max_overflow: int = Field(default=0, description="Database max overflow connections")

    # Test database URL
    test_database_url: str | None = Field(default=None, description="Test database URL")

    # ===== Background Tasks (Celery) =====
    notification_backend: NotificationBackendEnum = Field(
        default=NotificationBackendEnum.inline,
        description="Deliver notifications inline or through Celery workers",
    )
    celery_broker_url: str = Field(
        default="redis://localhost:6379/1", description="Celery broker URL"
    )
    celery_result_backend: str = Field(
        default="redis://localhost:6379/2", description="Celery result backend"
    )

    # ===== Email Configuration =====
    smtp_host: str | None = Field(default=None, description="SMTP host")
    smtp_port: int = Field(default=587, description="SMTP port")
    smtp_user: str | None = Field(default=None, description="SMTP username")
    smtp_password: str | None = Field(default=None, description="SMTP password")
    email_from: str | None = Field(default=None, description="Email from address")

    # ===== WhatsApp (Twilio) Configuration =====
    twilio_account_sid: str | None = Field(default=None, description="Twilio account SID")
    twilio_auth_token: str | None = Field(default=None, description="Twilio auth token")
    twilio_whatsapp_number: str | None = Field(
        default=None, description="Sender number, e.g. whatsapp:+14155238886"
    )
    twilio_api_url: str = Field(default="https://api.twilio.com", description="Twilio API base URL")
    notification_timeout: int = Field(default=10, description="Outbound notification timeout in seconds")

    # ===== Monitoring & Logging =====
    log_level: LogLevelEnum = Field(default=LogLevelEnum.INFO, description="Logging level")
    log_format: LogFormatEnum = Field(default=LogFormatEnum.simple, description="Log format")

    # ===== CORS Settings =====
    allowed_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        description="Allowed CORS origins (comma-separated)",
    )

    @property
    def allowed_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        if isinstance(self.allowed_origins, str):
            return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]
        return self.allowed_origins if isinstance(self.allowed_origins, list) else []

    # ===== Server Settings =====
    host: str = Field(default="127.0.0.1", description="Host to bind the server")
    port: int = Field(default=8000, description="Port to bind the server")

    # ===== Computed Properties =====
    @property
    def is_development(self) -> bool:
        return self.environment == EnvironmentEnum.development

    @property
    def is_production(self) -> bool:
        return self.environment == EnvironmentEnum.production

    @property
    def is_testing(self) -> bool:
        return self.environment == EnvironmentEnum.testing

    @property
    def has_email(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password)

    @property
    def has_whatsapp(self) -> bool:
        return bool(
            self.twilio_account_sid and self.twilio_auth_token and self.twilio_whatsapp_number
        )

    @property
    def has_encryption_key(self) -> bool:
        return bool(self.encryption_key and self.encryption_key.strip())

    # ===== Validation Methods =====
    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        if v and isinstance(v, str):
            lv = v.lower()
            if lv in ["dev", "develop"]:
                return "development"
            if lv in ["prod"]:
                return "production"
            return lv
        return v

    @field_validator("encryption_kdf_iterations")
    @classmethod
    def validate_kdf_iterations(cls, v):
        if v < MIN_KDF_ITERATIONS:
            raise ValueError(f"Key derivation needs at least {MIN_KDF_ITERATIONS} iterations")
        return v

    @field_validator("max_message_length")
    @classmethod
    def validate_max_message_length(cls, v):
        if v < 1:
            raise ValueError("Maximum message length must be positive")
        return v

    @model_validator(mode="after")
    def strip_base_url(self):
        self.app_base_url = self.app_base_url.rstrip("/")
        return self


settings = Settings()


class ConfigValidator:
    @staticmethod
    def validate_required_settings():
        errors = []
        if not settings.database_url:
            errors.append("DATABASE_URL is required")
        if not settings.has_encryption_key:
            errors.append("ENCRYPTION_KEY is required")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")

    @staticmethod
    def get_feature_status() -> dict:
        return {
            "email_enabled": settings.has_email,
            "whatsapp_enabled": settings.has_whatsapp,
            "notification_backend": settings.notification_backend.value,
            "legacy_token_lookup": settings.allow_legacy_token_lookup,
            "environment": settings.environment.value,
        }


def get_config_summary() -> dict:
    return {
        "app_name": settings.app_name,
        "version": settings.version,
        "environment": settings.environment.value,
        "debug": settings.debug,
        "features": ConfigValidator.get_feature_status(),
        "database_configured": bool(settings.database_url),
        "encryption_configured": settings.has_encryption_key,
    }


__all__ = [
    "settings",
    "Settings",
    "ConfigValidator",
    "get_config_summary",
    "EnvironmentEnum",
    "LogLevelEnum",
    "LogFormatEnum",
    "NotificationBackendEnum",
    "MIN_KDF_ITERATIONS",
]
