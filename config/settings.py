import os
from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_list(name: str, default: list) -> list:
    value = os.getenv(name)
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


# --- Backend ---
API_BASE = os.getenv("API_BASE", "https://amazon-deals-backend.onrender.com").rstrip("/")
REQUEST_TIMEOUT_SECONDS = _env_float("REQUEST_TIMEOUT_SECONDS", 30.0)

# --- Pagination ---
PAGE_SIZE = _env_int("PAGE_SIZE", 30)
DEBUG_PROMOTIONS = os.getenv("DEBUG_PROMOTIONS", "false").lower() in ("1", "true", "yes")

# --- "NEW" badge ---
HIGHLIGHT_DWELL_SECONDS = _env_float("HIGHLIGHT_DWELL_SECONDS", 10.0)

# --- Auto-load on startup ---
BOOTSTRAP_KEYWORDS = _env_list("BOOTSTRAP_KEYWORDS", ["electronics", "home kitchen", "wireless"])
BOOTSTRAP_DELAY_SECONDS = _env_float("BOOTSTRAP_DELAY_SECONDS", 1.0)

# --- Filters ---
DEFAULT_MIN_DISCOUNT = _env_int("DEFAULT_MIN_DISCOUNT", 20)
DEFAULT_MAX_RESULTS = max(1, _env_int("DEFAULT_MAX_RESULTS", 1000))
DEFAULT_DEDUPE_KEY = os.getenv("DEFAULT_DEDUPE_KEY", "asin")

# --- AI Rewrite ---
AI_MODEL = os.getenv("AI_MODEL", "tuner007//pegasus_paraphrase")
