import os
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigurationError

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinicsync.db")

# Clinic scheduling API (OAuth2 client credentials)
CLINIC_API_URL = os.getenv("CLINIC_API_URL")
CLINIC_CLIENT_ID = os.getenv("CLINIC_CLIENT_ID")
CLINIC_CLIENT_SECRET = os.getenv("CLINIC_CLIENT_SECRET")
CLINIC_FACILITY_ID = os.getenv("CLINIC_FACILITY_ID")
CLINIC_DOCTOR_ID = os.getenv("CLINIC_DOCTOR_ID")
CLINIC_ADDRESS_ID = os.getenv("CLINIC_ADDRESS_ID", "1")
# Used when the token endpoint omits expires_in
CLINIC_TOKEN_DEFAULT_TTL = int(os.getenv("CLINIC_TOKEN_DEFAULT_TTL", "3600"))
CLINIC_TOKEN_SAFETY_MARGIN = 60
CLINIC_HTTP_TIMEOUT = float(os.getenv("CLINIC_HTTP_TIMEOUT", "30"))

# n8n orchestrator: outbound dispatch URL and the shared secret used both ways
N8N_WEBHOOK_URL = os.getenv("N8N_WEBHOOK_URL")
N8N_WEBHOOK_SECRET = os.getenv("N8N_WEBHOOK_SECRET")

# Upper bound of concurrent per-booking upserts during a sync
RECONCILE_CONCURRENCY = int(os.getenv("RECONCILE_CONCURRENCY", "8"))

# Overrides the built-in fallback message when no template is active
MESSAGE_TEMPLATE_FALLBACK = os.getenv("MESSAGE_TEMPLATE_FALLBACK")

# Optional: shares webhook rate-limit counters between workers; memory-only when unset
REDIS_URL = os.getenv("REDIS_URL")
WEBHOOK_RATE_LIMIT = int(os.getenv("WEBHOOK_RATE_LIMIT", "120"))
WEBHOOK_RATE_WINDOW = int(os.getenv("WEBHOOK_RATE_WINDOW", "60"))

ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")


def require_settings(**settings) -> dict:
    """
    Fail fast when any required setting is empty.

    Usage: require_settings(CLINIC_API_URL=CLINIC_API_URL, ...)
    Returns the same mapping so callers can unpack it.
    """
    missing = [name for name, value in settings.items() if not value]
    if missing:
        raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")
    return settings
