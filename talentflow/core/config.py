"""Application configuration management."""

from pydantic import AnyUrl, ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: AnyUrl
    database_echo: bool = False

    # Notifications
    redis_url: str | None = Field(
        default=None,
        description="Redis URL for the notification queue; notifications are only logged when unset",
    )
    notification_queue: str = "talentflow:notifications"

    # Applications
    default_application_source: str = "talentflow_portal"
    document_reference_schemes: list[str] = ["s3", "gs", "https"]
    bulk_transition_max_items: int = Field(default=100, ge=1, le=500)

    # Interviews
    interview_min_duration_minutes: int = Field(default=15, ge=1)
    interview_max_duration_minutes: int = Field(default=480, ge=1, le=1440)

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
