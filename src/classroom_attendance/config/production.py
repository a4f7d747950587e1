import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "classroom_attendance"),
}

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "mysql")
APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:5000")

DEFAULT_TOKEN_MINUTES = int(os.getenv("DEFAULT_TOKEN_MINUTES", "60"))
DEFAULT_LATE_AFTER_MINUTES = int(os.getenv("DEFAULT_LATE_AFTER_MINUTES", "15"))

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
