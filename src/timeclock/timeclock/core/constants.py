"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEBOUNCE_MINUTES = 5
DEFAULT_REPORT_DAYS = 7
MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0
