# scripts/process_outbox.py

import os
import sys
import time
import argparse
import logging

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import configure_logging, load_settings
from core.database import Database
from services.sync_service import OutboxProcessor

logger = logging.getLogger("process_outbox")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Drain the local sync queue.")
    parser.add_argument("--loop", action="store_true", help="keep running on the sync interval")
    args = parser.parse_args(argv)

    configure_logging()
    settings = load_settings()
    db = Database(settings.database_url)
    processor = OutboxProcessor(
        db,
        connectivity_url=settings.connectivity_url,
        interval=settings.sync_interval,
    )

    if not args.loop:
        count = processor.process_once()
        logger.info("Processed %d entr%s", count, "y" if count == 1 else "ies")
        return

    processor.start()
    try:
        while True:
            time.sleep(60)
    except KeyboardInterrupt:
        logger.info("Stopping outbox processor")
    finally:
        processor.stop()
        db.dispose()


if __name__ == "__main__":
    main()
