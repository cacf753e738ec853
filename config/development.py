import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timeclock_db"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Taps within this many minutes after a clock-in are rejected as double taps
DEBOUNCE_MINUTES = int(os.getenv("DEBOUNCE_MINUTES", "5"))
# processing_day: timesheet keyed on the day the clock-out is processed; clock_in_day: on the shift's start day
TIMESHEET_DAY_BUCKET = os.getenv("TIMESHEET_DAY_BUCKET", "processing_day")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed a demo company, employee EMP-007 and one NFC card
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
