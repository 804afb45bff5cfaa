"""Configuration management for the BolsoZen dashboard.

This module centralizes all configuration values including paths,
defaults, and environment variable overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

# Base project root - assumes this file is in bolsozen/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("BOLSOZEN_DATA_DIR", _PROJECT_ROOT / "data"))

# Database
DB_PATH = Path(
    os.getenv("BOLSOZEN_DB_PATH", DATA_DIR / "bolsozen.db")
).resolve()

# User shown by the local dashboard when no login is wired in
DEMO_USER_ID = os.getenv("BOLSOZEN_DEMO_USER", "demo-user")

LOG_LEVEL = os.getenv("BOLSOZEN_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger once for the dashboard process."""
    resolved = (level or LOG_LEVEL).upper()
    logging.basicConfig(level=getattr(logging, resolved, logging.INFO), format=LOG_FORMAT)
