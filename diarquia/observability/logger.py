import json
import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from diarquia.core.config import AppConfig

logger = logging.getLogger(__name__)


class TimingContext:
    """Context manager for timing operations."""

    def __init__(self, operation_name: str):
        self.operation_name = operation_name
        self.start_time: Optional[float] = None
        self.duration_ms: Optional[float] = None

    def __enter__(self):
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is not None:
            self.duration_ms = (time.time() - self.start_time) * 1000

    def get_duration_ms(self) -> Optional[float]:
        """Get duration in milliseconds."""
        return self.duration_ms


@contextmanager
def timing(operation_name: str):
    """Context manager for timing operations."""
    context = TimingContext(operation_name)
    with context:
        yield context


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def mask_phone(phone: Optional[str]) -> Optional[str]:
    """Keep only the last four digits of a phone number."""
    if not phone:
        return phone
    digits = "".join(ch for ch in phone if ch.isdigit())
    if len(digits) <= 4:
        return "*" * len(digits)
    return "*" * (len(digits) - 4) + digits[-4:]


def mask_email(email: Optional[str]) -> Optional[str]:
    """Keep the first character of the local part and the domain."""
    if not email or "@" not in email:
        return email
    local, domain = email.split("@", 1)
    return f"{local[:1]}***@{domain}"


def log_event(
    action: str,
    provider: str,
    duration_ms: Optional[float] = None,
    **kwargs
) -> None:
    """
    Log a structured event for a provider interaction.

    Args:
        action: The action performed (e.g., 'event_created', 'message_sent')
        provider: The external provider involved
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields; 'phone' and 'email' are masked
    """
    log_entry: Dict[str, Any] = {
        "timestamp": _timestamp(),
        "action": action,
        "provider": provider,
    }

    if duration_ms is not None:
        log_entry["duration_ms"] = round(duration_ms, 2)

    if "phone" in kwargs:
        kwargs["phone"] = mask_phone(kwargs["phone"])
    if "email" in kwargs:
        kwargs["email"] = mask_email(kwargs["email"])

    log_entry.update(kwargs)

    logger.info(json.dumps(log_entry, separators=(',', ':'), ensure_ascii=False))


def log_error(error: Exception, context: Dict[str, Any] = None) -> None:
    """
    Log an error with optional context.

    Args:
        error: The exception to log
        context: Optional context dictionary
    """
    log_entry = {
        "timestamp": _timestamp(),
        "level": "ERROR",
        "error": str(error),
        "error_type": type(error).__name__,
    }

    if context:
        log_entry.update(context)

    logger.error(json.dumps(log_entry, separators=(',', ':'), ensure_ascii=False, default=str))


def init_sentry(config: AppConfig) -> bool:
    """
    Initialize Sentry if enabled and DSN is provided.

    Returns:
        True if Sentry was initialized, False otherwise
    """
    if not config.obs_enabled:
        return False

    if not config.sentry_dsn:
        logger.info("Sentry DSN not provided, skipping Sentry initialization")
        return False

    try:
        sentry_sdk.init(
            dsn=config.sentry_dsn,
            integrations=[
                FastApiIntegration(),
                LoggingIntegration(
                    level=logging.INFO,
                    event_level=logging.ERROR
                ),
            ],
            traces_sample_rate=0.1,
            environment=config.environment,
            send_default_pii=False,
        )
    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}")
        return False

    logger.info("Sentry initialized successfully")
    return True
