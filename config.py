import logging
import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


# Fail fast when there is nowhere to store bookings
DATABASE_URL = os.environ.get("DATABASE_URL")

if not DATABASE_URL:
    raise ValueError("DATABASE_URL is not set. Please check your .env file.")

SQL_ECHO = _flag("SQL_ECHO", "false")
SEED_SAMPLE_ROOMS = _flag("SEED_SAMPLE_ROOMS", "true")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]


def configure_logging() -> None:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
