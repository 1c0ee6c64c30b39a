"""
Runtime configuration, read from environment variables.
"""

import os
from pathlib import Path

# Database path configuration
DB_PATH = os.getenv("DB_PATH", "./data/provenance.db")
DB_TIMEOUT_SEC = float(os.getenv("DB_TIMEOUT_SEC", "5"))

# Record store backend
STORE_PROVIDER = os.getenv("STORE_PROVIDER", "sqlite")  # sqlite|memory

# Debug flag is read on demand as well, see debug_enabled()
DEBUG = os.getenv("DEBUG", "true").lower() == "true"

# Seed the demo entity and agent when the API starts
SEED_ON_STARTUP = os.getenv("SEED_ON_STARTUP", "false").lower() == "true"

# Version string
VERSION = "1.0.0"


def get_record_store(db_path: str = None):
    """Get the configured record store implementation."""
    provider = os.getenv("STORE_PROVIDER", STORE_PROVIDER)

    if provider == "memory":
        from .store import SimpleInMemoryRecordStore
        return SimpleInMemoryRecordStore()

    # Default to the durable SQLite store for unknown providers
    from .store import SQLiteRecordStore
    return SQLiteRecordStore(db_path or os.getenv("DB_PATH", DB_PATH))


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "true").lower() == "true"


def ensure_db_directory(db_path: str = None):
    """Ensure the database directory exists."""
    Path(db_path or DB_PATH).parent.mkdir(parents=True, exist_ok=True)


def validate_store_config():
    """Validate store configuration and return any issues."""
    issues = []

    provider = os.getenv("STORE_PROVIDER", STORE_PROVIDER)
    if provider not in ["sqlite", "memory"]:
        issues.append(f"Invalid STORE_PROVIDER: {provider}")

    if DB_TIMEOUT_SEC <= 0:
        issues.append("DB_TIMEOUT_SEC must be > 0")

    return issues
