# app/core/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./housiee.db")

# Session tokens
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

ALGORITHM = os.getenv("ALGORITHM", "HS256")
# 7 days, same lifetime as the session cookie
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "housiee_session")
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"

# Frontend base URL for CORS
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Local image storage, served at /uploads
UPLOAD_DIR = os.getenv("UPLOAD_DIR", str(Path.cwd() / "uploads"))
MAX_UPLOAD_FILES = int(os.getenv("MAX_UPLOAD_FILES", "5"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Bootstrap admin account (python -m app.seed)
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@housiee.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
