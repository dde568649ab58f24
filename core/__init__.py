from .database import Database, Base, ensure_schema
from .config import Settings, load_settings, configure_logging
from .errors import (
    RecordsError,
    ValidationError,
    InvalidImageData,
    ImageWriteFailed,
    RecordNotFound,
    UnknownChannel,
)

__all__ = [
    "Database",
    "Base",
    "ensure_schema",
    "Settings",
    "load_settings",
    "configure_logging",
    "RecordsError",
    "ValidationError",
    "InvalidImageData",
    "ImageWriteFailed",
    "RecordNotFound",
    "UnknownChannel",
]
