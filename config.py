import logging
import os

try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass  # dotenv is optional for production, but useful locally

_AU_TIMEZONES = (
    # Eastern
    "Australia/Sydney",
    "Australia/Melbourne",
    "Australia/Brisbane",
    "Australia/Canberra",
    "Australia/Hobart",
    # Central
    "Australia/Adelaide",
    "Australia/Darwin",
    # Western
    "Australia/Perth",
)


def _csv(name: str, default: tuple[str, ...]) -> frozenset[str]:
    raw = os.environ.get(name)
    if not raw:
        return frozenset(default)
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


class Settings:
    # --- Database ---
    DATABASE_URL = os.environ.get("DATABASE_URL")
    DATABASE_PUBLIC_URL = os.environ.get("DATABASE_PUBLIC_URL")

    # --- Redis ---
    REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")

    # --- Telnyx (SMS) ---
    TELNYX_API_KEY = os.environ.get("TELNYX_API_KEY")
    TELNYX_FROM_NUMBER = os.environ.get("TELNYX_FROM_NUMBER")

    # --- Check-in policy ---
    SUPPORTED_TIMEZONES = _csv("SUPPORTED_TIMEZONES", _AU_TIMEZONES)
    AFFIRMATIVE_TOKEN = os.environ.get("AFFIRMATIVE_TOKEN", "Y").strip().upper()
    REMINDER_DELAY_MINUTES = int(os.environ.get("REMINDER_DELAY_MINUTES", "15"))
    ESCALATION_DELAY_MINUTES = int(os.environ.get("ESCALATION_DELAY_MINUTES", "45"))
    RECOVERY_LOOKBACK_HOURS = int(os.environ.get("RECOVERY_LOOKBACK_HOURS", "24"))

    # --- Logging ---
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    def __init__(self):
        if self.ESCALATION_DELAY_MINUTES <= self.REMINDER_DELAY_MINUTES:
            raise RuntimeError(
                "ESCALATION_DELAY_MINUTES must be greater than REMINDER_DELAY_MINUTES"
            )


settings = Settings()


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
