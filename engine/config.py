"""Configuration for the expense tracker.

Central place for paths, locale and alert thresholds. Every value can be
overridden through an environment variable so tests and deployments can pin
them without touching code.
"""

from __future__ import annotations

import os
from datetime import tzinfo
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data
DATA_DIR = Path(os.getenv("FINTRACK_DATA_DIR", _PROJECT_ROOT / "data"))
SEED_PATH = Path(os.getenv("FINTRACK_SEED_PATH", DATA_DIR / "seed.json")).resolve()

# Locale
TIMEZONE = os.getenv("FINTRACK_TZ", "")
CURRENCY = os.getenv("FINTRACK_CURRENCY", "৳")

LOG_LEVEL = os.getenv("FINTRACK_LOG_LEVEL", "INFO").upper()

# Budget alert tiers, in percent of the limit
WARNING_THRESHOLD = float(os.getenv("FINTRACK_WARNING_THRESHOLD", "80"))
EXCEEDED_THRESHOLD = float(os.getenv("FINTRACK_EXCEEDED_THRESHOLD", "100"))

# Calendar heat map: expense strictly above each value moves one tier up
INTENSITY_THRESHOLDS = (0.0, 2000.0, 5000.0)

DAILY_BUCKETS = 7
WEEKLY_BUCKETS = 4
MONTHLY_BUCKETS = 6

RECENT_LIMIT = 6


def local_zone() -> Optional[tzinfo]:
    """Zone used for local-day keys when the caller does not pass one.

    ``None`` means the host's zone.
    """
    if not TIMEZONE:
        return None
    return ZoneInfo(TIMEZONE)


def get_seed_path() -> str:
    return str(SEED_PATH)
