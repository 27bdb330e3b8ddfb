# backend/gymdesk/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///gymdesk.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Bearer session lifetime (7 days by default)
    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "168"))

    # Comma separated list of allowed browser origins
    FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:3000")

    # Payment gateway (Razorpay). Online payments are disabled without keys.
    RAZORPAY_KEY_ID = os.environ.get("RAZORPAY_KEY_ID")
    RAZORPAY_KEY_SECRET = os.environ.get("RAZORPAY_KEY_SECRET")
    RAZORPAY_API_URL = os.environ.get("RAZORPAY_API_URL", "https://api.razorpay.com/v1")

    # GST is off unless explicitly enabled; plans then carry DEFAULT_GST_PERCENT
    GST_ENABLED = _env_bool("GST_ENABLED", False)
    DEFAULT_GST_PERCENT = float(os.environ.get("DEFAULT_GST_PERCENT", "18"))

    # SMS gateway (Twilio)
    TWILIO_ACCOUNT_SID = os.environ.get("TWILIO_ACCOUNT_SID")
    TWILIO_AUTH_TOKEN = os.environ.get("TWILIO_AUTH_TOKEN")
    TWILIO_PHONE_NUMBER = os.environ.get("TWILIO_PHONE_NUMBER")
    TWILIO_API_URL = os.environ.get("TWILIO_API_URL", "https://api.twilio.com/2010-04-01")

    # SMTP relay (Flask-Mail)
    MAIL_SERVER = os.environ.get("MAIL_SERVER")
    MAIL_PORT = int(os.environ.get("MAIL_PORT", "587"))
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", True)
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.environ.get("MAIL_DEFAULT_SENDER", "noreply@ulifts.gym")

    # Uploaded gallery images
    UPLOAD_DIR = os.environ.get("UPLOAD_DIR", "./uploads")
    MAX_CONTENT_LENGTH = int(os.environ.get("MAX_FILE_SIZE", str(5 * 1024 * 1024)))

    # Gym identity used when GymSettings has no value
    GYM_NAME = os.environ.get("GYM_NAME", "ULIFTS – Powered by Being Strong")
    GYM_ADDRESS = os.environ.get(
        "GYM_ADDRESS",
        "97XQ+CW3, Drugmulla, Kupwara, Jammu and Kashmir – 193221, India",
    )
    GYM_PHONE = os.environ.get("GYM_PHONE", "+91 1234567890")
    GYM_GSTIN = os.environ.get("GYM_GSTIN", "")

    MEMBER_ID_PREFIX = os.environ.get("MEMBER_ID_PREFIX", "NAZ")

    # Daily expiry reminder job
    SCHEDULER_ENABLED = _env_bool("SCHEDULER_ENABLED", True)
    EXPIRY_REMINDER_HOUR = int(os.environ.get("EXPIRY_REMINDER_HOUR", "10"))
    EXPIRY_REMINDER_MINUTE = int(os.environ.get("EXPIRY_REMINDER_MINUTE", "0"))
    EXPIRY_REMINDER_DAYS = int(os.environ.get("EXPIRY_REMINDER_DAYS", "3"))


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SCHEDULER_ENABLED = False
    MAIL_SERVER = "localhost"
    MAIL_SUPPRESS_SEND = True
    RAZORPAY_KEY_ID = "rzp_test_key"
    RAZORPAY_KEY_SECRET = "rzp_test_secret"
    GST_ENABLED = False
