"""Configuration management for the budget tracker.

This module centralizes all configuration values including paths,
backend selection, display defaults, and environment variable overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

# Base project root - assumes this file is in budget_tracker/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("BUDGET_TRACKER_DATA_DIR", _PROJECT_ROOT / "data"))
EXPORTS_DIR = DATA_DIR / "exports"

# Local database (used when no hosted backend is configured)
DB_PATH = Path(
    os.getenv("BUDGET_TRACKER_DB_PATH", DATA_DIR / "budget_tracker.db")
).resolve()

# Hosted backend
API_URL: Optional[str] = os.getenv("BUDGET_TRACKER_API_URL") or None
API_KEY: Optional[str] = os.getenv("BUDGET_TRACKER_API_KEY") or None
API_TIMEOUT = float(os.getenv("BUDGET_TRACKER_API_TIMEOUT", "10"))

# Display
CURRENCY_SYMBOL = os.getenv("BUDGET_TRACKER_CURRENCY", "₹")
TREND_MONTHS = int(os.getenv("BUDGET_TRACKER_TREND_MONTHS", "6"))

LOG_LEVEL = os.getenv("BUDGET_TRACKER_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, EXPORTS_DIR]:
        directory.mkdir(parents=True, exist_ok=True)


def get_db_path() -> str:
    """Get the database path as a string."""
    return str(DB_PATH)


def use_rest_backend() -> bool:
    """True when a hosted backend URL has been configured."""
    return API_URL is not None


def configure_logging(level: Optional[str] = None) -> None:
    """Install the root logging handler once per process."""
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)
