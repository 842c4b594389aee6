import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "qr_attendance_db"),
    "pool_size": int(os.getenv("DB_POOL_SIZE", "5")),
}

# Lifetime of a freshly issued QR attendance code
CODE_TTL_MINUTES = int(os.getenv("CODE_TTL_MINUTES", "10"))

# Path prefix recorded for justification evidence uploads
UPLOAD_PREFIX = os.getenv("UPLOAD_PREFIX", "/uploads/justifications")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
