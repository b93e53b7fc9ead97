"""Configuration management for FinancePal.

This module centralizes all configuration values including paths,
defaults, and environment variable overrides.
"""

from __future__ import annotations

import os
from pathlib import Path

# Base project root - assumes this file is in financepal/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("FINANCEPAL_DATA_DIR", _PROJECT_ROOT / "data"))

# Database
DB_PATH = Path(
    os.getenv("FINANCEPAL_DB_PATH", DATA_DIR / "financepal.db")
).resolve()

# Logging
LOG_LEVEL = os.getenv("FINANCEPAL_LOG_LEVEL", "INFO")

# Session
DEFAULT_USER_ID = os.getenv("FINANCEPAL_USER_ID", "")

# Display
CURRENCY_SYMBOL = os.getenv("FINANCEPAL_CURRENCY", "₹")


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
