"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or .env file."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = "Native Calendar"
    debug: bool = False
    log_dir: str = "~/.logs/native_calendar"

    # Database (local backend)
    database_url: str = "sqlite:///./native_calendar.db"

    # CORS: comma-separated origins, or "*"
    allowed_origins: str = "*"

    # Backend selection
    platform_family: str = "provider"  # "provider" or "eventstore"
    backend: str = "local"  # "local" or "google"

    # Calendar targets used when no explicit calendar is requested
    # and the primary-calendar lookup yields nothing
    default_calendar_id: str = "1"
    default_calendar_identifier: str = "default"

    # Event defaults
    default_reminder_minutes: int = 15
    compose_alarm_limit: int = 2
    default_timezone: str = ""  # Empty means the system timezone

    # Marker search window, in days either side of now
    marker_window_days: int = 30

    # Dispatch
    fallback_to_compose: bool = False

    # Local backend: grants handed out when permissions are requested
    auto_grant: str = "read,write"  # Comma-separated subset of "read,write"

    # Google Calendar API
    google_client_id: str = ""
    google_client_secret: str = ""
    google_refresh_token: str = ""  # Obtained via scripts/get_token.py
    google_calendar_id: str = "primary"  # Calendar searched for marked events


settings = Settings()
