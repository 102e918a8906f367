import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///loan_portal.db")

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
    ACCESS_EXPIRES = int(os.getenv("ACCESS_EXPIRES", 86400))
    REFRESH_EXPIRES = int(os.getenv("REFRESH_EXPIRES", 86400))

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000")

    RATELIMIT_ENABLED = True
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    AUTH_RATE_LIMIT = os.getenv("AUTH_RATE_LIMIT", "20 per minute")
    ADMIN_RATE_LIMIT = os.getenv("ADMIN_RATE_LIMIT", "120 per minute")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # login second factor
    OTP_EXPIRY_MINUTES = int(os.getenv("OTP_EXPIRY_MINUTES", 10))
    OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", 5))
    TOTP_ISSUER = os.getenv("TOTP_ISSUER", "Loan Portal")
    TOTP_VALID_WINDOW = int(os.getenv("TOTP_VALID_WINDOW", 1))
    TOTP_BACKUP_CODE_COUNT = 10
    TWO_FACTOR_RATE_LIMIT = os.getenv("TWO_FACTOR_RATE_LIMIT", "5 per 15 minutes")

    SMTP_HOST = os.getenv("SMTP_HOST", "localhost")
    SMTP_PORT = int(os.getenv("SMTP_PORT", 465))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "no-reply@localhost")
    EMAIL_FROM_NAME = os.getenv("EMAIL_FROM_NAME", "Loan Portal")

    # video meeting provider; placeholder links are issued when no URL is set
    MEETING_API_URL = os.getenv("MEETING_API_URL")
    MEETING_API_TOKEN = os.getenv("MEETING_API_TOKEN")
    MEETING_API_TIMEOUT = float(os.getenv("MEETING_API_TIMEOUT", 10))
    MEETING_DEFAULT_DURATION = 60
    MEETING_DEFAULT_TOPIC = "Financial Consultation"
    MEETING_PLACEHOLDER_URL = os.getenv("MEETING_PLACEHOLDER_URL", "https://meet.google.com/new")

class DevelopmentConfig(Config):
    DEBUG = True
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-only-secret-key-change-me-0123456789")

class ProductionConfig(Config):
    DEBUG = False

class TestingConfig(Config):
    TESTING = True
    BCRYPT_LOG_ROUNDS = 4
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = "testing-secret-key-with-enough-length-0123456789"
    RATELIMIT_ENABLED = False
    MEETING_API_URL = None
    LOG_LEVEL = "DEBUG"


CONFIGS = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
