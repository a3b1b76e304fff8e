from datetime import timedelta
import os
from dotenv import load_dotenv

load_dotenv()

def _as_bool(value, default=False):
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///storefront.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "change-me-in-production")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=24)

    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", 587))
    MAIL_USE_TLS = _as_bool(os.getenv("MAIL_USE_TLS"), True)
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "orders@storefront.local")

    # Send order confirmations on a background thread so checkout never waits on SMTP
    ORDER_EMAIL_ASYNC = _as_bool(os.getenv("ORDER_EMAIL_ASYNC"), True)
    STORE_NAME = os.getenv("STORE_NAME", "Cinch E-Commerce")

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    SWAGGER = {"title": "Storefront API", "uiversion": 3}


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
    MAIL_SUPPRESS_SEND = True
    ORDER_EMAIL_ASYNC = False
    LOG_LEVEL = "DEBUG"
