import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel


DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:8080",
    "http://localhost:3000",
    "https://clone-barber.vercel.app",
]


class AppConfig(BaseModel):
    port: int = 3000
    environment: str = "development"
    allowed_origins: list[str] = DEFAULT_ALLOWED_ORIGINS
    provider_timeout_seconds: float = 15.0
    calendar_provider: str = "google"
    messaging_provider: str = "whatsapp"
    # Google service account
    google_project_id: Optional[str] = None
    google_private_key_id: Optional[str] = None
    google_private_key: Optional[str] = None
    google_client_email: Optional[str] = None
    google_client_id: Optional[str] = None
    google_client_cert_url: Optional[str] = None
    google_calendar_id: Optional[str] = None
    # WhatsApp Business Cloud API
    whatsapp_phone_number_id: Optional[str] = None
    whatsapp_access_token: Optional[str] = None
    obs_enabled: bool = False
    sentry_dsn: Optional[str] = None

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


def _env(key: str) -> Optional[str]:
    """Read an env var, treating blank values as unset."""
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return None
    return raw


def load_config() -> AppConfig:
    load_dotenv()
    origins_raw = os.getenv("ALLOWED_ORIGINS", "")
    origins = [o.strip() for o in origins_raw.split(",") if o.strip()]
    port_str = os.getenv("PORT", "3000")
    port = int(port_str) if port_str.isdigit() else 3000
    timeout_str = os.getenv("PROVIDER_TIMEOUT_SECONDS", "15")
    try:
        timeout = float(timeout_str)
    except ValueError:
        timeout = 15.0
    return AppConfig(
        port=port,
        environment=(os.getenv("NODE_ENV") or os.getenv("ENVIRONMENT") or "development").lower(),
        allowed_origins=origins or list(DEFAULT_ALLOWED_ORIGINS),
        provider_timeout_seconds=timeout,
        calendar_provider=os.getenv("CALENDAR_PROVIDER", "google").lower(),
        messaging_provider=os.getenv("MESSAGING_PROVIDER", "whatsapp").lower(),
        google_project_id=_env("GOOGLE_PROJECT_ID"),
        google_private_key_id=_env("GOOGLE_PRIVATE_KEY_ID"),
        google_private_key=_env("GOOGLE_PRIVATE_KEY"),
        google_client_email=_env("GOOGLE_CLIENT_EMAIL"),
        google_client_id=_env("GOOGLE_CLIENT_ID"),
        google_client_cert_url=_env("GOOGLE_CLIENT_CERT_URL"),
        google_calendar_id=_env("GOOGLE_CALENDAR_ID"),
        whatsapp_phone_number_id=_env("WHATSAPP_PHONE_NUMBER_ID"),
        whatsapp_access_token=_env("WHATSAPP_ACCESS_TOKEN"),
        obs_enabled=os.getenv("OBS_ENABLED", "false").lower() == "true",
        sentry_dsn=_env("SENTRY_DSN"),
    )
