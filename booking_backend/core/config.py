import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./booking.db")

ALLOWED_ORIGINS = _get_list(os.getenv("ALLOWED_ORIGINS"), ["http://localhost:4200"])

# Wall-clock timezone used for every stored datetime and for "now".
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "America/Sao_Paulo")

# Booking policy defaults; a business's booking_settings override them.
DEFAULT_BUFFER_MINUTES = int(os.getenv("DEFAULT_BUFFER_MINUTES", "15"))
DEFAULT_MIN_ADVANCE_HOURS = int(os.getenv("DEFAULT_MIN_ADVANCE_HOURS", "0"))
DEFAULT_MAX_ADVANCE_DAYS = int(os.getenv("DEFAULT_MAX_ADVANCE_DAYS", "60"))
DEFAULT_ALLOW_SAME_DAY = _get_bool(os.getenv("DEFAULT_ALLOW_SAME_DAY"), default=True)
DEFAULT_REQUIRE_PAYMENT = _get_bool(os.getenv("DEFAULT_REQUIRE_PAYMENT"), default=False)

# Shortest free stretch the live view reports when no service is chosen.
LIVE_MIN_FREE_MINUTES = int(os.getenv("LIVE_MIN_FREE_MINUTES", "15"))


def validate_runtime_config() -> None:
    if DEFAULT_BUFFER_MINUTES <= 0:
        raise RuntimeError("DEFAULT_BUFFER_MINUTES must be a positive number of minutes.")
    if APP_ENV.lower() == "production" and DATABASE_URL.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must point at PostgreSQL in production.")
