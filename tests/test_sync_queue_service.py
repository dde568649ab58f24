import json
from datetime import timedelta

import pytest

from core.time_utils import now_utc
from models.sync_queue import SyncQueueEntry
from services import sync_queue_service
from services.sync_queue_service import SyncQueue


def test_append_serializes_snapshot(database):
    with database.transaction() as db:
        entry = sync_queue_service.append(db, "patients", 1, "insert", {"id": 1, "name": "Jane"})

    assert entry.action == "INSERT"
    assert json.loads(entry.data) == {"id": 1, "name": "Jane"}
    assert entry.is_processed is False


@pytest.mark.parametrize("action", ["UPSERT", "", None])
def test_append_rejects_unknown_actions(database, action):
    with pytest.raises(ValueError):
        with database.transaction() as db:
            sync_queue_service.append(db, "patients", 1, action, {})

    assert SyncQueue(database).pull_unprocessed() == []


def test_append_failure_rolls_back_the_enclosing_transaction(database):
    with pytest.raises(ValueError):
        with database.transaction() as db:
            sync_queue_service.append(db, "patients", 1, "INSERT", {"id": 1})
            sync_queue_service.append(db, "patients", 1, "BOGUS", {"id": 1})

    assert SyncQueue(database).pull_unprocessed() == []


def test_pull_unprocessed_is_oldest_first(database):
    base = now_utc()
    with database.transaction() as db:
        # Inserted out of order on purpose
        for offset, record_id in ((2, 3), (0, 1), (1, 2)):
            db.add(SyncQueueEntry(
                table_name="patients",
                record_id=record_id,
                action="INSERT",
                data="{}",
                created_at=base + timedelta(seconds=offset),
            ))

    pulled = SyncQueue(database).pull_unprocessed()
    assert [e.record_id for e in pulled] == [1, 2, 3]

    assert [e.record_id for e in SyncQueue(database).pull_unprocessed(limit=2)] == [1, 2]


def test_mark_processed_is_idempotent_and_drain_is_restartable(database):
    queue = SyncQueue(database)
    first = queue.append("patients", 1, "INSERT", {"id": 1})
    queue.append("patients", 2, "INSERT", {"id": 2})

    assert queue.mark_processed(first["id"]) is True
    assert queue.mark_processed(first["id"]) is True
    assert queue.pending_count() == 1
    assert [e.record_id for e in queue.pull_unprocessed()] == [2]


def test_mark_processed_missing_entry(database):
    assert SyncQueue(database).mark_processed(404) is False


def test_snapshot_with_datetimes_is_serialized(database):
    stamp = now_utc()
    entry = SyncQueue(database).append("patients", 1, "UPDATE", {"seen": stamp})
    assert json.loads(entry["data"]) == {"seen": str(stamp)}
