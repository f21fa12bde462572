import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()


def env_flag(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "supersecretkey123")
    MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017/quiz_app")
    MONGO_ENSURE_INDEXES = True

    # Session cookie issued on login
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY") or SECRET_KEY
    JWT_TOKEN_LOCATION = ["cookies"]
    JWT_ACCESS_COOKIE_NAME = "token"
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
    JWT_COOKIE_SECURE = env_flag("COOKIE_SECURE")
    JWT_COOKIE_SAMESITE = "Strict"
    JWT_COOKIE_CSRF_PROTECT = False
    JWT_SESSION_COOKIE = False

    BCRYPT_LOG_ROUNDS = 12

    OTP_TTL_SECONDS = int(os.getenv("OTP_TTL_SECONDS", 600))
    OTP_MAX_PENDING = int(os.getenv("OTP_MAX_PENDING", 10000))

    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", 587))
    MAIL_USE_TLS = env_flag("MAIL_USE_TLS", True)
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_SENDER = os.getenv("MAIL_SENDER") or MAIL_USERNAME
    MAIL_SUPPRESS_SEND = env_flag("MAIL_SUPPRESS_SEND")

    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class TestingConfig(Config):
    TESTING = True
    MONGO_URI = "mongodb://localhost:27017/quiz_app_test"
    MONGO_ENSURE_INDEXES = False
    BCRYPT_LOG_ROUNDS = 4
    MAIL_SUPPRESS_SEND = True
    JWT_COOKIE_SECURE = False
