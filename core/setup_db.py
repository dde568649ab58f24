# core/setup_db.py

import logging

from core.config import configure_logging, load_settings
from core.database import Database, ensure_schema

logger = logging.getLogger(__name__)


def main():
    configure_logging()
    settings = load_settings()

    logger.info("Creating database tables...")
    db = Database(settings.database_url)
    # The engine runs ensure_schema when it is built; the explicit call is a no-op
    ensure_schema(db.engine)
    db.dispose()

    logger.info("Database initialized successfully at %s", settings.database_url)


if __name__ == "__main__":
    main()
