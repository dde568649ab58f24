"""
Transactional write path shared by the patient and doctor repositories.

Every write runs as one transaction:

    Begin -> mutate row -> mutate image (optional) -> append outbox entry -> Commit

Any failure rolls the transaction back. A file written during the failed
transaction is removed again (best effort) and the original error is
re-raised. Image files replaced or orphaned by an update or delete are
only removed after the commit. Reads return plain dicts with an
``image_url`` locator resolved from ``image_path``.
"""

import os
import logging
from contextlib import contextmanager

from sqlalchemy.orm import Session

from core.database import Database
from core.errors import RecordsError, RecordNotFound, ValidationError, ImageWriteFailed
from core.time_utils import now_utc
from models.sync_queue import ACTION_INSERT, ACTION_UPDATE, ACTION_DELETE
from services import sync_queue_service
from services.image_service import ImageStore, parse_data_uri

logger = logging.getLogger(__name__)


class RecordRepository:
    """Base repository; subclasses set `model` and `image_prefix`."""

    model = None
    image_prefix = "record"

    def __init__(self, database: Database, image_store: ImageStore):
        self.database = database
        self.image_store = image_store

    @property
    def table_name(self) -> str:
        return self.model.__tablename__

    # ------------------------------------------
    # Validation
    # ------------------------------------------
    def validate_fields(self, fields: dict, creating: bool) -> dict:
        """Return a cleaned copy of `fields` or raise ValidationError."""
        if fields is None:
            fields = {}
        if not isinstance(fields, dict):
            raise ValidationError("Fields must be a mapping.")

        unknown = sorted(set(fields) - set(self.model.EDITABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Unknown or read-only fields: {', '.join(unknown)}")

        cleaned = dict(fields)

        if creating or "name" in cleaned:
            name = cleaned.get("name")
            if not isinstance(name, str) or not name.strip():
                raise ValidationError("Name cannot be empty.")

        return cleaned

    @staticmethod
    def validate_image(image: str | None) -> None:
        """Reject a malformed payload before anything is written."""
        if image:
            parse_data_uri(image)

    # ------------------------------------------
    # Hydration
    # ------------------------------------------
    def hydrate(self, row) -> dict:
        record = row.to_dict()
        record["image_url"] = self.image_store.resolve_locator(row.image_path)
        return record

    # ------------------------------------------
    # Transaction with image compensation
    # ------------------------------------------
    @contextmanager
    def _write(self):
        """
        Open a transaction and track the image files it touches.

        Yields (session, written, discarded). On failure the files in
        `written` are deleted after the rollback. Files in `discarded` are
        only deleted once the transaction has committed.
        """
        written = []
        discarded = []
        try:
            with self.database.transaction() as db:
                yield db, written, discarded
        except Exception:
            for path in written:
                if not self.image_store.delete_image(path):
                    logger.warning("Could not clean up image %s after rollback", path)
            raise

        for path in discarded:
            if not self._delete_stored_image(path):
                logger.warning("Replaced image %s was not removed", path)

    def _save_image(self, db: Session, row, payload: str, written: list) -> str:
        path = self.image_store.save_image(payload, row.id, prefix=self.image_prefix)
        written.append(path)
        row.image_path = path
        db.flush()
        return path

    def _delete_stored_image(self, path: str) -> bool:
        # The file may have moved since the path was stored
        return self.image_store.delete_image(self.image_store.resolve_path(path) or path)

    def _load(self, db: Session, record_id: int):
        row = db.get(self.model, record_id)
        if row is None:
            raise RecordNotFound(self.table_name, record_id)
        return row

    def _check_image_committable(self, path: str) -> None:
        if path and not os.path.isfile(path):
            raise ImageWriteFailed(f"Image {path} disappeared before commit")

    # ------------------------------------------
    # Create
    # ------------------------------------------
    def create(self, fields: dict, image: str | None = None) -> dict:
        cleaned = self.validate_fields(fields, creating=True)
        self.validate_image(image)

        with self._write() as (db, written, _discarded):
            values = {name: cleaned.get(name) for name in self.model.EDITABLE_FIELDS}
            row = self.model(**values, created_at=now_utc(), is_synced=False)
            db.add(row)
            db.flush()

            if image:
                path = self._save_image(db, row, image, written)
                self._check_image_committable(path)

            sync_queue_service.append(db, self.table_name, row.id, ACTION_INSERT, row.to_dict())

        logger.info("Created %s %s", self.table_name, row.id)
        return self.hydrate(row)

    # ------------------------------------------
    # Update (partial)
    # ------------------------------------------
    def update(self, record_id: int, fields: dict, image: str | None = None) -> dict:
        cleaned = self.validate_fields(fields, creating=False)
        self.validate_image(image)

        with self._write() as (db, written, discarded):
            row = self._load(db, record_id)

            for name, value in cleaned.items():
                setattr(row, name, value)

            if image:
                if row.image_path:
                    discarded.append(row.image_path)
                path = self._save_image(db, row, image, written)
                self._check_image_committable(path)

            row.is_synced = False
            db.flush()

            sync_queue_service.append(db, self.table_name, row.id, ACTION_UPDATE, row.to_dict())

        logger.info("Updated %s %s", self.table_name, record_id)
        return self.hydrate(row)

    # ------------------------------------------
    # Delete
    # ------------------------------------------
    def delete(self, record_id: int) -> bool:
        with self._write() as (db, _written, discarded):
            row = self._load(db, record_id)
            if row.image_path:
                discarded.append(row.image_path)

            deleted = db.query(self.model).filter(self.model.id == record_id).delete(synchronize_session=False)
            if deleted == 0:
                raise RecordsError(f"Failed to delete {self.table_name} record with id {record_id}")

            sync_queue_service.append(db, self.table_name, record_id, ACTION_DELETE, {"id": record_id})

        logger.info("Deleted %s %s", self.table_name, record_id)
        return True

    # ------------------------------------------
    # Reads
    # ------------------------------------------
    def get(self, record_id: int) -> dict:
        with self.database.session_scope() as db:
            row = self._load(db, record_id)
        return self.hydrate(row)

    def list_all(self) -> list[dict]:
        with self.database.session_scope() as db:
            rows = (
                db.query(self.model)
                .order_by(self.model.created_at.desc(), self.model.id.desc())
                .all()
            )
        return [self.hydrate(row) for row in rows]

    def list_unsynced(self) -> list[dict]:
        with self.database.session_scope() as db:
            rows = (
                db.query(self.model)
                .filter(self.model.is_synced.is_(False))
                .order_by(self.model.created_at.asc(), self.model.id.asc())
                .all()
            )
        return [self.hydrate(row) for row in rows]

    def mark_synced(self, record_id: int) -> bool:
        with self.database.transaction() as db:
            changed = (
                db.query(self.model)
                .filter(self.model.id == record_id)
                .update({self.model.is_synced: True}, synchronize_session=False)
            )
        return changed > 0
