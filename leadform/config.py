"""Application configuration."""
import os
from pathlib import Path

from dotenv import load_dotenv

# Base directory (project root)
BASE_DIR = Path(__file__).resolve().parent.parent
_env_file = BASE_DIR / ".env"

# Load .env before the Config class reads os.environ; real env vars win
if _env_file.exists():
    load_dotenv(_env_file)


def _get_database_uri() -> str | None:
    """Connection string: MONGO_URI for the document store, else DATABASE_URL."""
    uri = (os.environ.get("MONGO_URI") or "").strip()
    if uri:
        return uri
    uri = (os.environ.get("DATABASE_URL") or "").strip()
    if uri:
        return uri.replace("postgres://", "postgresql://", 1)
    return None


class Config:
    """Default configuration."""

    DEBUG = os.environ.get("FLASK_DEBUG", "0") == "1"
    TESTING = False
    PORT = int(os.environ.get("PORT", 3000))
    # mongodb:// or mongodb+srv:// selects the document store, anything else is a SQLAlchemy URL
    DATABASE_URI = _get_database_uri()
    MONGO_DB_NAME = os.environ.get("MONGO_DB_NAME", "leadform").strip() or "leadform"
    # Two form variants disagree on whether a phone number is mandatory
    REQUIRE_TEL = os.environ.get("LEADFORM_REQUIRE_TEL", "0") == "1"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True


class TestingConfig(Config):
    """In-memory SQLite, used by the test suite."""

    TESTING = True
    DATABASE_URI = "sqlite:///:memory:"
    REQUIRE_TEL = False
    SQLALCHEMY_ENGINE_OPTIONS = {}
