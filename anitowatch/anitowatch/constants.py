"""
Constants used throughout the AniToWatch application.
"""

# List Storage
DEFAULT_DATA_DIR = "data"
JSON_INDENT = 2
LIST_FILENAMES = {
    "watchlist": "watchlist.json",
    "readinglist": "readinglist.json",
    "favorites": "favorites.json",
}
LOCAL_STORAGE_KEY_PREFIX = "anitowatch-"
DEFAULT_LOCAL_STORAGE_FILENAME = "local_storage.json"

# Entry Defaults
DEFAULT_LIST_STATUS = "planning"
UNKNOWN_WORK_TITLE = "Unknown"
WATCH_STATUSES = ("planning", "watching", "completed", "dropped")
READ_STATUSES = ("planning", "reading", "completed", "dropped")
MIN_PERSONAL_RATING = 0
MAX_PERSONAL_RATING = 10

STATUS_LABELS = {
    "planning": "Planning",
    "watching": "Watching",
    "reading": "Reading",
    "completed": "Completed",
    "dropped": "Dropped",
}

# Jikan API Configuration
JIKAN_BASE_URL = "https://api.jikan.moe/v4"
JIKAN_RATE_LIMIT_DELAY = 0.5
JIKAN_TIMEOUT_SECONDS = 10
JIKAN_SEARCH_PAGE_LIMIT = 12
JIKAN_BROWSE_PAGE_LIMIT = 24
JIKAN_TOP_LIMIT = 8
JIKAN_SEASON_LIMIT = 12
CATALOG_KINDS = ("anime", "manga", "characters")

# Bridge Configuration
BRIDGE_MODES = ("store", "remote", "browser")
DEFAULT_BRIDGE_MODE = "store"
DEFAULT_BRIDGE_HOST = "127.0.0.1"
DEFAULT_BRIDGE_PORT = 8765

# Display Configuration
SORT_KEYS = {
    "watchlist": ("added", "title", "score", "episodes"),
    "readinglist": ("added", "title", "score", "chapters"),
    "favorites": ("added", "name", "favorites"),
}
DEFAULT_SORT_KEY = "added"
SYNOPSIS_PREVIEW_CHARS = 280
