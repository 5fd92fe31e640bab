# config.py
"""
Runtime settings for the calendar engine.

Everything is read once from the environment at import time. Values that
describe the day grid (slot height, slot length) are the defaults the
layout helpers fall back to when a caller does not pass its own.
"""

from __future__ import annotations

import os
from typing import Dict, Optional


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str) -> Optional[float]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


# ---------- appointment store ----------
CALENDAR_STORE_URL = os.getenv("CALENDAR_STORE_URL", "http://localhost:5000").rstrip("/")
# None means "let the transport decide"; no explicit timeout is applied.
CALENDAR_STORE_TIMEOUT = _env_float("CALENDAR_STORE_TIMEOUT")

# ---------- day grid ----------
SLOT_HEIGHT_PX = int(os.getenv("SLOT_HEIGHT_PX", "80"))
SLOT_MINUTES = int(os.getenv("SLOT_MINUTES", "30"))
MIN_BLOCK_HEIGHT_PX = int(os.getenv("MIN_BLOCK_HEIGHT_PX", "24"))
SLOTS_PER_DAY = 48
MONTH_CELL_LIMIT = int(os.getenv("MONTH_CELL_LIMIT", "2"))

# ---------- timers ----------
REFETCH_DELAY_SECONDS = float(os.getenv("REFETCH_DELAY_SECONDS", "1.0"))
CLOCK_TICK_SECONDS = float(os.getenv("CLOCK_TICK_SECONDS", "1"))
NOW_LINE_TICK_SECONDS = float(os.getenv("NOW_LINE_TICK_SECONDS", "60"))

# Keep the optimistic move on screen even when the drop happens without a token.
OPTIMISTIC_WITHOUT_TOKEN = _env_bool("OPTIMISTIC_WITHOUT_TOKEN", True)

# ---------- appointment colors ----------
DEFAULT_COLOR = "#1976d2"
DEFAULT_TYPE = "Meeting"
TYPE_COLORS: Dict[str, str] = {
    "Meeting": "#1976d2",
    "Personal": "#0a560eff",
    "Deadline": "#a80e0eff",
    "Follow-up": "#858e08ff",
}

# ---------- mock store (local development) ----------
MOCK_STORE_TOKEN = os.getenv("MOCK_STORE_TOKEN", "dev-token")
MOCK_STORE_HOST = os.getenv("MOCK_STORE_HOST", "127.0.0.1")
MOCK_STORE_PORT = int(os.getenv("MOCK_STORE_PORT", "5000"))
