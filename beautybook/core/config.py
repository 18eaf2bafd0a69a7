import os
from decimal import Decimal

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
DEBUG = _get_bool(os.getenv("DEBUG"), default=False)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./beautybook.db")

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:3000"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

SERVICE_FEE = Decimal(os.getenv("SERVICE_FEE", "150"))
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "AED").upper()
SUPPORTED_CURRENCIES = ("AED", "USD", "EUR", "INR", "PKR")

# strict: availability check + one active booking per artist-day.
# legacy: no check before insert, concurrent bookings may both succeed.
BOOKING_CONFLICT_POLICY = os.getenv("BOOKING_CONFLICT_POLICY", "strict").strip().lower()

PENDING_EXPIRY_HOURS = int(os.getenv("PENDING_EXPIRY_HOURS", "0"))

STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")

RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "BeautyBook <no-reply@beautybook.app>")


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if BOOKING_CONFLICT_POLICY not in {"strict", "legacy"}:
        raise RuntimeError("BOOKING_CONFLICT_POLICY must be 'strict' or 'legacy'.")
    if DEFAULT_CURRENCY not in SUPPORTED_CURRENCIES:
        raise RuntimeError(f"DEFAULT_CURRENCY must be one of {', '.join(SUPPORTED_CURRENCIES)}.")
