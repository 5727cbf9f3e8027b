"""Configuration management for the payoff dashboard.

This module centralizes paths and the handful of goal constants that anchor
the debt calculations, with environment variable overrides.
"""

from __future__ import annotations

import os
from datetime import date
from pathlib import Path

# Base project root - assumes this file is in payoff_dashboard/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directory for the JSON key/value store
DATA_DIR = Path(os.getenv("PAYOFF_DATA_DIR", _PROJECT_ROOT / "data"))

# User rule overrides merged over the bundled category rules
USER_RULES_PATH = DATA_DIR / "category_rules.json"

# Historical maximum of the target (credit card) debt. The payoff percentage
# is measured against this figure, not against the debt history.
PEAK_BASELINE = float(os.getenv("PAYOFF_PEAK_BASELINE", "40077"))

# Month the peak was recorded; the average monthly payment is measured from here
PEAK_DATE = date.fromisoformat(os.getenv("PAYOFF_PEAK_DATE", "2025-09-01"))

# Payoff-by date for the target debts
TARGET_PAYOFF_DATE = date.fromisoformat(os.getenv("PAYOFF_TARGET_DATE", "2026-05-31"))


def ensure_data_directories() -> None:
    """Create the data directory if it doesn't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)


def get_data_dir() -> str:
    """Get the data directory as a string."""
    return str(DATA_DIR)
