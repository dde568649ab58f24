# scripts/inspect_db.py

import os
import sys

# Allow running as `python scripts/inspect_db.py` from the project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import load_settings
from core.database import Database
from models import Patient, Doctor, SyncQueueEntry
from services import sync_queue_service


def main():
    settings = load_settings()
    print("DB:", settings.database_url)
    print("Images:", settings.images_dir, "exists:", os.path.isdir(settings.images_dir))

    db = Database(settings.database_url)
    with db.session_scope() as session:
        for model in (Patient, Doctor, SyncQueueEntry):
            print(f"{model.__tablename__}: {session.query(model).count()} row(s)")

        unsynced = session.query(Patient).filter(Patient.is_synced.is_(False)).count()
        print("unsynced patients:", unsynced)

        pending = sync_queue_service.pull_unprocessed(session, limit=10)
        print("oldest pending sync_queue entries:")
        for entry in pending:
            print(" ", entry.id, entry.created_at, entry.action, entry.table_name, entry.record_id)
    db.dispose()


if __name__ == "__main__":
    main()
