"""
Runtime configuration for the records core.

Values come from the environment (optionally a ``.env`` file at the project
root) and fall back to a ``data/`` directory next to the code.
"""

import os
import logging.config
from dataclasses import dataclass

from dotenv import load_dotenv

# Load .env so RECORDS_* settings are available when launched via Streamlit
load_dotenv()

# Path: project_root/data
BASE_DIR = os.path.dirname(os.path.dirname(__file__))

DEFAULT_DATA_DIR = os.path.join(BASE_DIR, "data")
DATABASE_FILENAME = "records.db"
IMAGES_DIRNAME = "patient_images"

DEFAULT_SYNC_INTERVAL = 5 * 60  # seconds
DEFAULT_CONNECTIVITY_URL = "https://www.google.com/favicon.ico"
CONNECTIVITY_TIMEOUT = 5  # seconds


LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "INFO",
    },
}


@dataclass(frozen=True)
class Settings:
    data_dir: str
    database_url: str
    images_dir: str
    sync_interval: float
    connectivity_url: str
    log_level: str


def sqlite_url(path: str) -> str:
    return f"sqlite:///{path}"


def load_settings() -> Settings:
    """Read settings from the environment."""
    data_dir = os.getenv("RECORDS_DATA_DIR", DEFAULT_DATA_DIR)
    database_url = os.getenv("RECORDS_DATABASE_URL") or sqlite_url(
        os.path.join(data_dir, DATABASE_FILENAME)
    )
    images_dir = os.getenv("RECORDS_IMAGES_DIR") or os.path.join(data_dir, IMAGES_DIRNAME)

    try:
        sync_interval = float(os.getenv("RECORDS_SYNC_INTERVAL", DEFAULT_SYNC_INTERVAL))
    except ValueError:
        sync_interval = DEFAULT_SYNC_INTERVAL

    return Settings(
        data_dir=data_dir,
        database_url=database_url,
        images_dir=images_dir,
        sync_interval=sync_interval,
        connectivity_url=os.getenv("RECORDS_CONNECTIVITY_URL", DEFAULT_CONNECTIVITY_URL),
        log_level=os.getenv("RECORDS_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str | None = None):
    """Apply LOGGING_CONFIG, optionally overriding the root level."""
    config = dict(LOGGING_CONFIG)
    config["root"] = dict(LOGGING_CONFIG["root"], level=level or load_settings().log_level)
    logging.config.dictConfig(config)
