import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./hometrace.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "720"))

# Frontend base URL used in email links (accept/decline buttons)
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Resend Email Configuration (fallback when no SMTP server is configured)
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "HomeTrace <noreply@hometrace.com>")

# SMTP Configuration
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USERNAME = os.getenv("SMTP_USERNAME")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

# Calendar Configuration
# Wall-clock zone of the agent calendar grid and of customer candidate times.
# Agent scheduled times are stored in UTC and converted at the calendar boundary.
CALENDAR_TIMEZONE = os.getenv("CALENDAR_TIMEZONE", "UTC")
# 0=Monday ... 6=Sunday
WEEK_STARTS_ON = int(os.getenv("WEEK_STARTS_ON", "6"))
# Seconds a drag must hover the first/last day column before the week flips
DRAG_EDGE_NAVIGATION_DELAY = float(os.getenv("DRAG_EDGE_NAVIGATION_DELAY", "1.0"))
# Upper bound on records pulled for one calendar window
CALENDAR_FETCH_LIMIT = int(os.getenv("CALENDAR_FETCH_LIMIT", "1000"))

# CORS origins allowed to call the API (comma separated)
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173"
).split(",")
