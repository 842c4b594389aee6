import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "qr_attendance"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "qr_attendance_db"),
    "pool_size": int(os.getenv("DB_POOL_SIZE", "10")),
}

CODE_TTL_MINUTES = int(os.getenv("CODE_TTL_MINUTES", "10"))
UPLOAD_PREFIX = os.getenv("UPLOAD_PREFIX", "/uploads/justifications")

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
