import os
from dotenv import load_dotenv
load_dotenv()


def _bool(name, default=False):
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


def _list(name, default=""):
    return [x.strip() for x in (os.getenv(name, default) or "").split(",") if x.strip()]


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///interviews.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    REDIS_URL = os.getenv("REDIS_URL") or None
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Gemini
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    GEMINI_EMBED_MODEL = os.getenv("GEMINI_EMBED_MODEL", "text-embedding-004")
    GEMINI_TRANSCRIBE_MODEL = os.getenv("GEMINI_TRANSCRIBE_MODEL", "gemini-2.0-flash")
    GEMINI_MAX_ATTEMPTS = int(os.getenv("GEMINI_MAX_ATTEMPTS", "5"))
    EMBEDDING_DIM = 768

    # Google OAuth / Drive
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
    GOOGLE_REDIRECT_URI = os.getenv("GOOGLE_REDIRECT_URI")
    POST_LOGIN_REDIRECT = os.getenv("POST_LOGIN_REDIRECT", "/")
    GOOGLE_SCOPES = os.getenv(
        "GOOGLE_SCOPES",
        "openid email profile https://www.googleapis.com/auth/drive",
    )

    # Lever
    LEVER_API_KEY = os.getenv("LEVER_API_KEY")
    LEVER_USER_ID = os.getenv("LEVER_USER_ID")
    LEVER_API_BASE = os.getenv("LEVER_API_BASE", "https://api.lever.co/v1")

    # access control
    ADMIN_EMAILS = _list("ADMIN_EMAILS")
    ALLOWED_MEETING_TYPES = _list("ALLOWED_MEETING_TYPES", "Status Update,Client Call,Interview")
    FACILITATOR_NAMES = _list("FACILITATOR_NAMES", "adam perlis,perlis")
    CRON_SECRET = os.getenv("CRON_SECRET")

    RATELIMIT_ENABLED = _bool("RATELIMIT_ENABLED", True)

    # Drive polling
    POLL_FAST_MAX_FILES = int(os.getenv("POLL_FAST_MAX_FILES", "30"))
    POLL_BATCH_SIZE = int(os.getenv("POLL_BATCH_SIZE", "5"))
    POLL_EARLY_STOP = int(os.getenv("POLL_EARLY_STOP", "10"))
    POLL_LOOKBACK_MINUTES = int(os.getenv("POLL_LOOKBACK_MINUTES", "5"))
    MIN_TRANSCRIPT_CHARS = int(os.getenv("MIN_TRANSCRIPT_CHARS", "50"))

    MAX_CONTENT_LENGTH = 26 * 1024 * 1024
