from typing import List, Union
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application
    ENVIRONMENT: str = "development"
    NAME: str = "CertTracker"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api/v1"
    """Pydantic v2 doesn't support parsing List[str] from a plain comma-separated string by default anymore."""
    ALLOWED_HOSTS: Union[str, List[str]] = "http://localhost:5173"
    LOG_LEVEL: str = "info"
    LOG_CONFIG_PATH: str = "logging_config.json"

    # Database
    DATABASE_URL: str = "sqlite:///./certtracker.db"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_CONNECT_TIMEOUT: int = 30

    # Microsoft Graph (outbound email)
    GRAPH_TENANT_ID: str = "<your-graph-tenant-id>"
    GRAPH_CLIENT_ID: str = "<your-graph-client-id>"
    GRAPH_CLIENT_SECRET: str = "<your-graph-client-secret>"
    GRAPH_SENDER_EMAIL: str = "<your-sender-mailbox>"
    GRAPH_TIMEOUT_SECONDS: float = 30.0
    EMAILS_DISABLED: bool = False
    EMAIL_DEFAULT_DOMAIN: str = "example.com"

    # Notifications
    PUBLIC_BASE_URL: str = ""
    NOTIFICATION_TIMEZONE: str = "Asia/Kolkata"
    NOTIFICATION_TRIGGER_HOUR: int = 9
    NOTIFICATION_POLL_MINUTES: int = 15
    AUDIT_ERROR_MAX_LENGTH: int = 4000
    MAX_ATTACHMENT_BYTES: int = 10 * 1024 * 1024

    # Redis & Celery
    REDIS_PASSWORD: str = ""
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    @field_validator("ALLOWED_HOSTS", mode="before")
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if not v:
            return []
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        return v

    @field_validator("NOTIFICATION_TRIGGER_HOUR")
    def validate_trigger_hour(cls, v: int) -> int:
        if not 0 <= v <= 23:
            raise ValueError("NOTIFICATION_TRIGGER_HOUR must be between 0 and 23")
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


settings = Settings()
