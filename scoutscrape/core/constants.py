"""
Fixed values shared across the pipeline.
"""

from datetime import timedelta

APP_NAME = "scoutscrape"

FEED_URL = "https://ssd-api.jpl.nasa.gov/scout.api"
EXPECTED_VERSION = "1.2"
USER_AGENT = f"{APP_NAME}/0.1 (+https://ssd-api.jpl.nasa.gov/doc/scout.html)"

# A live fetch is skipped when the cache already holds a file newer than this
MIN_TIME_BETWEEN_FETCHES = timedelta(minutes=15)

CACHE_SUFFIX = ".json"
CACHE_DIR_MODE = 0o700
CACHE_FILE_MODE = 0o600

# Minute-precision timestamps used by the feed (UTC)
FEED_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"

TABLE_NAME = "scout"

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
