import os
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent  # -> project root

# Load .env explicitly from project root
load_dotenv(BASE_DIR / ".env")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    PROJECT_NAME = "UniVerse"

    DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'universe.db'}")

    SESSION_SECRET = os.getenv("SESSION_SECRET", "change-me")
    SESSION_COOKIE = os.getenv("SESSION_COOKIE", "universe_session")
    SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", 24 * 60 * 60))
    SESSION_HTTPS_ONLY = _env_bool("SESSION_HTTPS_ONLY", "false")

    OTP_TTL_MINUTES = int(os.getenv("OTP_TTL_MINUTES", 10))
    # 0 disables the limit
    OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", 5))
    OTP_RESEND_COOLDOWN_SECONDS = int(os.getenv("OTP_RESEND_COOLDOWN_SECONDS", 30))

    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
    SMTP_USER = os.getenv("SMTP_USER")
    SMTP_PASS = os.getenv("SMTP_PASS")
    FROM_EMAIL = os.getenv("FROM_EMAIL")
    EMAIL_SENDER_NAME = os.getenv("EMAIL_SENDER_NAME", "UniVerse Team")

    UPLOAD_ROOT = Path(os.getenv("UPLOAD_ROOT", str(BASE_DIR / "uploads")))
    MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", 5 * 1024 * 1024))
    PROFILE_PICTURE_SIZE = int(os.getenv("PROFILE_PICTURE_SIZE", 400))
    PROFILE_PICTURE_QUALITY = int(os.getenv("PROFILE_PICTURE_QUALITY", 85))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
