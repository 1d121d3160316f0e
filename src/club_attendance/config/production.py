import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "club_attendance"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

PAYMENT_MIN_YEAR = int(os.getenv("PAYMENT_MIN_YEAR", "2020"))
PAYMENT_MAX_YEAR = int(os.getenv("PAYMENT_MAX_YEAR", "2030"))

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
