# models/sync_queue.py

import json

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime

from core.database import Base
from core.time_utils import now_utc, isoformat

ACTION_INSERT = "INSERT"
ACTION_UPDATE = "UPDATE"
ACTION_DELETE = "DELETE"

ACTIONS = (ACTION_INSERT, ACTION_UPDATE, ACTION_DELETE)


class SyncQueueEntry(Base):
    """One local mutation waiting to be sent to the remote backend."""

    __tablename__ = "sync_queue"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Which record changed
    table_name = Column(String, nullable=False)
    record_id = Column(Integer, nullable=True, index=True)

    action = Column(String, nullable=False)

    # JSON snapshot of the record at mutation time
    data = Column(Text, nullable=False)

    created_at = Column(DateTime, default=now_utc, nullable=False, index=True)
    is_processed = Column(Boolean, default=False, nullable=False)

    def payload(self) -> dict:
        """Decode the stored snapshot. Raises ValueError on corrupt JSON."""
        return json.loads(self.data)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "table_name": self.table_name,
            "record_id": self.record_id,
            "action": self.action,
            "data": self.data,
            "created_at": isoformat(self.created_at),
            "is_processed": bool(self.is_processed),
        }

    def __repr__(self):
        return f"<SyncQueueEntry {self.id} {self.action} {self.table_name}:{self.record_id}>"
