"""Runtime settings for the lifecycle pipeline."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

DEFAULT_STUDENT_EMAIL_DOMAIN = "student.school.com"
DEFAULT_BLOB_BASE_URL = "https://storage.ronin.co"


@dataclass(frozen=True)
class Settings:
    """Constants the normalizer and notifier hooks depend on.

    Attributes:
        student_email_domain: Domain used to synthesize student login emails
        session_ttl_hours: Default session lifetime when none is supplied
        blob_base_url: Canonical prefix for stored blob addresses
        placeholder_name: Account name used when neither name nor email exist
        sort_sentinel: Sort order for grade levels without a numeric code
        log_level: Level passed to logging.basicConfig by the CLI
    """

    student_email_domain: str = DEFAULT_STUDENT_EMAIL_DOMAIN
    session_ttl_hours: int = 24
    blob_base_url: str = DEFAULT_BLOB_BASE_URL
    placeholder_name: str = "User"
    sort_sentinel: int = 1000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        """Create settings from EDUHOOKS_* environment variables."""
        env = os.environ
        return cls(
            student_email_domain=env.get(
                "EDUHOOKS_STUDENT_EMAIL_DOMAIN", DEFAULT_STUDENT_EMAIL_DOMAIN
            ),
            session_ttl_hours=int(env.get("EDUHOOKS_SESSION_TTL_HOURS", "24")),
            blob_base_url=env.get(
                "EDUHOOKS_BLOB_BASE_URL", DEFAULT_BLOB_BASE_URL
            ).rstrip("/"),
            placeholder_name=env.get("EDUHOOKS_PLACEHOLDER_NAME", "User"),
            sort_sentinel=int(env.get("EDUHOOKS_SORT_SENTINEL", "1000")),
            log_level=env.get("EDUHOOKS_LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(settings: Settings) -> None:
    """Configure root logging for command-line use."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
