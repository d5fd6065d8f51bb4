"""
Configuration constants for the Wikipedia Bingo engine.

All paths, endpoints, and tunable parameters are defined here.
Values that differ between deployments are read from environment variables.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# Path Configuration
# =============================================================================

# Project root is parent of wikibingo/
PROJECT_ROOT = Path(__file__).parent.parent

# Data directory (contains the curated article catalog)
DATA_DIR = PROJECT_ROOT / "data"

# Curated catalog of categories and articles
CATALOG_PATH = Path(os.environ.get("WIKIBINGO_CATALOG", DATA_DIR / "curatedArticles.json"))

# =============================================================================
# Game Configuration
# =============================================================================

GRID_SIZE = 5
GRID_CELL_COUNT = GRID_SIZE * GRID_SIZE

# 25 grid articles + 1 starting article
STARTING_POOL_SIZE = GRID_CELL_COUNT + 1

# Shuffled passes over the catalog before group caps are relaxed
BINGO_MAX_ATTEMPTS = 10

# Random draws when looking for an unused replacement article
REPLACEMENT_MAX_ATTEMPTS = 50

# Wall-clock ceiling for redirect resolution during a navigation (seconds)
REDIRECT_TIMEOUT = float(os.environ.get("WIKIBINGO_REDIRECT_TIMEOUT", "5.0"))

# =============================================================================
# Cache Configuration
# =============================================================================

MAX_ARTICLE_CACHE_SIZE = 100
MAX_REDIRECT_CACHE_SIZE = 200

# =============================================================================
# Retry Configuration
# =============================================================================

RETRY_MAX_ATTEMPTS = 3
RETRY_INITIAL_DELAY = 1.0   # seconds
RETRY_MAX_DELAY = 4.0       # seconds
RETRY_BACKOFF_MULTIPLIER = 2
RETRYABLE_STATUSES = (500, 502, 503, 504)

# =============================================================================
# Wikipedia Configuration
# =============================================================================

# Base URL for article pages
WIKIPEDIA_BASE_URL = "https://en.wikipedia.org/wiki/"

# Action API (used for redirect lookups)
WIKIPEDIA_API_URL = "https://en.wikipedia.org/w/api.php"

# REST endpoints, formatted with the URL-encoded title
WIKIPEDIA_DESKTOP_HTML_URL = "https://en.wikipedia.org/api/rest_v1/page/html/{title}"
WIKIPEDIA_MOBILE_HTML_URL = "https://en.m.wikipedia.org/api/rest_v1/page/mobile-html/{title}"
WIKIPEDIA_SUMMARY_URL = "https://en.wikipedia.org/api/rest_v1/page/summary/{title}"

# Per-request timeout in seconds
WIKIPEDIA_TIMEOUT = float(os.environ.get("WIKIPEDIA_TIMEOUT", "10"))

# User agent for requests (be a good citizen)
USER_AGENT = "WikiBingo/0.1 (https://github.com/wikibingo/wikibingo)"

# =============================================================================
# Logging Configuration
# =============================================================================

# Log level (DEBUG, INFO, WARNING, ERROR)
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# =============================================================================
# Validation Helpers
# =============================================================================

def validate_catalog_file(path: Path = CATALOG_PATH) -> dict[str, bool]:
    """Check that the catalog file exists and is non-empty."""
    exists = path.exists()
    return {
        "exists": exists,
        "non_empty": exists and path.stat().st_size > 0,
    }
