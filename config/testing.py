import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "workforce_hub_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

PUBLIC_BASE_URL = "http://localhost"

RESEND_API_KEY = ""
MAIL_FROM = "Workforce Hub <test@workforce.local>"
TWILIO_ACCOUNT_SID = ""
TWILIO_AUTH_TOKEN = ""
TWILIO_PHONE_NUMBER = ""

ROLE_APPROVAL_TTL_HOURS = 24
OUTBOX_MAX_ATTEMPTS = 3
OUTBOX_BATCH_SIZE = 10

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
