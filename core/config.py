"""
Runtime configuration.

Values are read once from the environment (and an optional .env file)
when the module is imported.
"""
import os
import logging
from pathlib import Path
from typing import List, Optional
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# ================================
# REPLICATE
# ================================

REPLICATE_API_TOKEN = os.getenv("REPLICATE_API_TOKEN", "")
REPLICATE_API_BASE = os.getenv("REPLICATE_API_BASE", "https://api.replicate.com/v1")

CHOREOGRAPHER_MODEL = os.getenv("CHOREOGRAPHER_MODEL", "openai/gpt-5-nano")

SYNTHESIS_MODELS = {
    "bytedance/seedream-4": "Seedream 4 (Faster, lower cost)",
    "bytedance/seedream-4.5": "Seedream 4.5 (Higher quality, 2K-4K)",
}
DEFAULT_SYNTHESIS_MODEL = "bytedance/seedream-4"

SYNTHESIS_MODEL = os.getenv("SYNTHESIS_MODEL", DEFAULT_SYNTHESIS_MODEL)
if SYNTHESIS_MODEL not in SYNTHESIS_MODELS:
    logger.warning(f"Unknown synthesis model '{SYNTHESIS_MODEL}', defaulting to {DEFAULT_SYNTHESIS_MODEL}")
    SYNTHESIS_MODEL = DEFAULT_SYNTHESIS_MODEL

# Seconds
SYNC_TIMEOUT = float(os.getenv("SYNC_TIMEOUT", 120))
CHOREOGRAPHER_TIMEOUT = float(os.getenv("CHOREOGRAPHER_TIMEOUT", 30))
ASYNC_TIMEOUT = float(os.getenv("ASYNC_TIMEOUT", 30))

# ================================
# WEBHOOK / POLLING
# ================================

PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "")
WEBHOOK_PATH = "/webhooks/replicate"

ASYNC_MODE = _get_bool("ASYNC_MODE", True)
POLL_INTERVAL_MS = int(os.getenv("POLL_INTERVAL_MS", 3000))
MAX_POLL_ATTEMPTS = int(os.getenv("MAX_POLL_ATTEMPTS", 120))

PREDICTION_RETENTION_DAYS = int(os.getenv("PREDICTION_RETENTION_DAYS", 7))

# ================================
# MEDIA
# ================================

STATIC_DIR = Path(__file__).parent.parent / "static"
MEDIA_DIR = Path(os.getenv("MEDIA_DIR", str(STATIC_DIR / "media")))
MEDIA_URL_PATH = "/static/media"

# ================================
# STORAGE / AUTH / HTTP
# ================================

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./studio.db")

JWT_SECRET = os.getenv("JWT_SECRET", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))
CSRF_TOKEN_EXPIRE_MINUTES = int(os.getenv("CSRF_TOKEN_EXPIRE_MINUTES", 60 * 12))

CORS_ORIGINS: List[str] = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]


def webhook_url() -> Optional[str]:
    """
    Public URL the provider should push completion notifications to.

    Returns None when PUBLIC_BASE_URL is not configured; jobs are then
    resolved by polling alone.
    """
    if not PUBLIC_BASE_URL:
        return None
    return PUBLIC_BASE_URL.rstrip("/") + WEBHOOK_PATH


def media_url_prefix() -> str:
    """Absolute when PUBLIC_BASE_URL is set, otherwise relative to the app root."""
    return PUBLIC_BASE_URL.rstrip("/") + MEDIA_URL_PATH
