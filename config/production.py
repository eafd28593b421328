import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timekeeping_db"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

TIMEZONE = os.getenv("TIMEZONE", "Asia/Tokyo")
CLOCK_OUT_MAX_ATTEMPTS = int(os.getenv("CLOCK_OUT_MAX_ATTEMPTS", "3"))
CLOCK_OUT_BACKOFF_MS = int(os.getenv("CLOCK_OUT_BACKOFF_MS", "100"))
HISTORY_DEFAULT_DAYS = int(os.getenv("HISTORY_DEFAULT_DAYS", "30"))

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
