import json
import logging

from sqlalchemy.orm import Session

from core.database import Database
from core.time_utils import now_utc
from models.sync_queue import SyncQueueEntry, ACTIONS

logger = logging.getLogger(__name__)


def _serialize(data) -> str:
    return json.dumps(data, default=str, sort_keys=True)


# ------------------------------------------
# Append an entry inside the caller's transaction
# ------------------------------------------
def append(db: Session, table_name: str, record_id: int | None, action: str, data) -> SyncQueueEntry:
    """
    Add one outbox entry to the session.

    Must run inside the transaction of the mutation it describes; any error
    here propagates and rolls that transaction back.
    """
    action = (action or "").upper()
    if action not in ACTIONS:
        raise ValueError(f"Invalid sync action: {action!r}")
    if not table_name:
        raise ValueError("table_name cannot be empty.")

    entry = SyncQueueEntry(
        table_name=table_name,
        record_id=record_id,
        action=action,
        data=_serialize(data),
        created_at=now_utc(),
        is_processed=False,
    )
    db.add(entry)
    db.flush()

    logger.debug("Queued %s %s:%s", action, table_name, record_id)
    return entry


# ------------------------------------------
# Unprocessed entries, oldest first
# ------------------------------------------
def pull_unprocessed(db: Session, limit: int | None = None) -> list[SyncQueueEntry]:
    query = (
        db.query(SyncQueueEntry)
        .filter(SyncQueueEntry.is_processed.is_(False))
        .order_by(SyncQueueEntry.created_at.asc(), SyncQueueEntry.id.asc())
    )
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def mark_processed(db: Session, entry_id: int) -> bool:
    entry = db.get(SyncQueueEntry, entry_id)
    if entry is None:
        return False
    entry.is_processed = True
    db.flush()
    return True


def entries_for(db: Session, table_name: str, record_id: int) -> list[SyncQueueEntry]:
    return (
        db.query(SyncQueueEntry)
        .filter(SyncQueueEntry.table_name == table_name, SyncQueueEntry.record_id == record_id)
        .order_by(SyncQueueEntry.id.asc())
        .all()
    )


class SyncQueue:
    """The outbox operations bound to a storage handle, one transaction each."""

    def __init__(self, database: Database):
        self.database = database

    def append(self, table_name: str, record_id: int | None, action: str, data) -> dict:
        with self.database.transaction() as db:
            return append(db, table_name, record_id, action, data).to_dict()

    def pull_unprocessed(self, limit: int | None = None) -> list[SyncQueueEntry]:
        with self.database.session_scope() as db:
            return pull_unprocessed(db, limit)

    def mark_processed(self, entry_id: int) -> bool:
        with self.database.transaction() as db:
            return mark_processed(db, entry_id)

    def pending_count(self) -> int:
        with self.database.session_scope() as db:
            return db.query(SyncQueueEntry).filter(SyncQueueEntry.is_processed.is_(False)).count()
