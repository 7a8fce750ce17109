import logging
import math
import os

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def _percent_env(name: str, default: str) -> float:
    """Markup percent from the environment; a malformed value disables the markup."""
    raw = os.getenv(name, default)
    try:
        value = float(raw)
    except ValueError:
        value = math.nan
    if not math.isfinite(value):
        logger.error("Invalid %s=%r, markup disabled", name, raw)
        return 0.0
    return value


# ── ENV / CONFIG ──────────────────────────────────────────────────────────────
load_dotenv()

ATLANTIC_BASE = os.getenv("ATLANTIC_BASE", "https://atlantich2h.com").rstrip("/")
ATLANTIC_KEY = os.getenv("ATLANTIC_KEY", "")
ATLANTIC_PROFIT = _percent_env("ATLANTIC_PROFIT", "10")  # markup, percent
PORT = int(os.getenv("PORT", "3000"))
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "15"))  # seconds
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
TMP_DIR = os.getenv("TMP_DIR", os.path.join(BASE_DIR, "tmp"))
ORDERS_FILE = os.path.join(TMP_DIR, "orders.json")


def setup_logging(level=LOG_LEVEL):
    """Console logging for the whole app."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )
    return logging.getLogger("storefront")
