import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./wallawalla.db")

# "development" relaxes cron authentication when CRON_SECRET is unset
ENVIRONMENT = os.getenv("ENVIRONMENT", "production")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Session cookie issued on staff/driver login
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "ww_session")
SESSION_TTL_HOURS = int(os.getenv("SESSION_TTL_HOURS", "12"))

# Shared secret presented by the scheduler as "Authorization: Bearer <secret>"
CRON_SECRET = os.getenv("CRON_SECRET")

# Frontend base URL for links in emails
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
# Public API origin advertised in the GPT actions OpenAPI document
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "https://wallawalla.travel")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Walla Walla Travel <noreply@wallawalla.travel>")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "info@wallawalla.travel")
STAFF_NOTIFICATION_EMAIL = os.getenv("STAFF_NOTIFICATION_EMAIL", ADMIN_EMAIL)

# Buffer (social publishing)
BUFFER_ACCESS_TOKEN = os.getenv("BUFFER_ACCESS_TOKEN")
BUFFER_API_URL = os.getenv("BUFFER_API_URL", "https://api.bufferapp.com/1")
SOCIAL_POST_MAX_RETRIES = int(os.getenv("SOCIAL_POST_MAX_RETRIES", "3"))

# Anthropic (weekly report summary)
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-5-20250929")
