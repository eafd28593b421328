import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timekeeping_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

TIMEZONE = "Asia/Tokyo"
CLOCK_OUT_MAX_ATTEMPTS = 3
CLOCK_OUT_BACKOFF_MS = 0
HISTORY_DEFAULT_DAYS = 30

AUTO_INIT_DB = False
