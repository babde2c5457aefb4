"""
Settings and configuration for yomitori.

Paths and defaults are read from the environment once at import time.
Per-lookup options live in yomitori.models.
"""

import os
from pathlib import Path

# Data directory paths
PACKAGE_DIR = Path(__file__).parent
DATA_DIR = PACKAGE_DIR / "data"

# Database path - defaults to data/yomitori.db
DEFAULT_DB_PATH = DATA_DIR / "yomitori.db"

# Environment variable for custom database path
DB_PATH = Path(os.environ.get("YOMITORI_DB_PATH", DEFAULT_DB_PATH))

# Deinflection reason table (bundled with package)
DEFAULT_DEINFLECT_PATH = DATA_DIR / "deinflect.json"
DEINFLECT_PATH = Path(os.environ.get("YOMITORI_DEINFLECT_PATH", DEFAULT_DEINFLECT_PATH))

# Debug mode
DEBUG = os.environ.get("YOMITORI_DEBUG", "").lower() in ("1", "true", "yes")

# Number of characters scanned per lookup
DEFAULT_SCAN_LENGTH = 10

# Maximum number of definitions returned to callers
DEFAULT_MAX_RESULTS = 32

# Order assigned to the synthetic dictionary tag
DICTIONARY_TAG_ORDER = 100


def ensure_data_dirs(db_path=None):
    """Create the data directory and the directory holding db_path (default DB_PATH)."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    Path(db_path or DB_PATH).parent.mkdir(parents=True, exist_ok=True)
