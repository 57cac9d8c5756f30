# barber_booking/config.py

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# SQLite database (file-based) unless overridden
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./barber.db")
DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"

# Hosted identity provider: access tokens are JWTs signed with a shared secret
AUTH_JWT_SECRET = os.getenv("AUTH_JWT_SECRET")
if not AUTH_JWT_SECRET:
    import warnings

    warnings.warn(
        "AUTH_JWT_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION",
        RuntimeWarning,
        stacklevel=2,
    )
    AUTH_JWT_SECRET = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only
AUTH_JWT_ALGORITHM = os.getenv("AUTH_JWT_ALGORITHM", "HS256")
# Supabase-style providers put "authenticated" here; empty disables the check
AUTH_JWT_AUDIENCE = os.getenv("AUTH_JWT_AUDIENCE") or None

# Slot grid fallback when a shop has no working-hours configuration.
# 09:30 + 16 x 45 minutes = 21:30, so the last slot starts at 20:45.
DEFAULT_OPENING_TIME = os.getenv("DEFAULT_OPENING_TIME", "09:30")
DEFAULT_CLOSING_TIME = os.getenv("DEFAULT_CLOSING_TIME", "21:30")
DEFAULT_SLOT_MINUTES = int(os.getenv("DEFAULT_SLOT_MINUTES", "45"))

# 0=Mon ... 6=Sun
DEFAULT_CLOSED_WEEKDAYS = [
    int(day) for day in os.getenv("DEFAULT_CLOSED_WEEKDAYS", "6").split(",") if day.strip()
]

# Bookings per day used for the calendar availability badge
DEFAULT_DAILY_CAPACITY = int(os.getenv("DEFAULT_DAILY_CAPACITY", "32"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [
    origin.strip() for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if origin.strip()
]
