"""
Outbox processor.

Drains unprocessed ``sync_queue`` entries whenever the machine is online.
There is no defined remote backend yet, so delivery goes through the
``RemoteSync`` interface; the shipped ``SimulatedRemote`` accepts every entry.
"""

import logging
import threading
from abc import ABC, abstractmethod

import requests

from core.config import DEFAULT_CONNECTIVITY_URL, DEFAULT_SYNC_INTERVAL, CONNECTIVITY_TIMEOUT
from core.database import Database
from models.doctor import Doctor
from models.patient import Patient
from models.sync_queue import ACTION_DELETE
from services import sync_queue_service

logger = logging.getLogger(__name__)

# Tables whose rows carry an is_synced flag
SYNCED_MODELS = {
    Patient.__tablename__: Patient,
    Doctor.__tablename__: Doctor,
}


def check_connectivity(url: str = DEFAULT_CONNECTIVITY_URL, timeout: float = CONNECTIVITY_TIMEOUT) -> bool:
    """Return True if a HEAD request to `url` gets any response."""
    try:
        requests.head(url, timeout=timeout, allow_redirects=True)
    except requests.RequestException as exc:
        logger.info("Offline (%s); changes will be synced when back online.", exc.__class__.__name__)
        return False
    return True


class RemoteSync(ABC):
    """Delivers one outbox entry to the remote backend."""

    @abstractmethod
    def push(self, entry, payload: dict) -> bool:
        ...


class SimulatedRemote(RemoteSync):
    """Stand-in backend that acknowledges every entry."""

    def push(self, entry, payload: dict) -> bool:
        logger.info("Simulated push of %s %s:%s", entry.action, entry.table_name, entry.record_id)
        return True


class OutboxProcessor:
    """
    Replays the outbox against a RemoteSync, oldest entry first.

    Each entry is marked processed in its own transaction, so a drain that
    stops part way resumes with the next unprocessed entry.
    """

    def __init__(
        self,
        database: Database,
        remote: RemoteSync | None = None,
        connectivity_url: str = DEFAULT_CONNECTIVITY_URL,
        interval: float = DEFAULT_SYNC_INTERVAL,
        connectivity_check=check_connectivity,
    ):
        self.database = database
        self.remote = remote or SimulatedRemote()
        self.connectivity_url = connectivity_url
        self.interval = interval
        self.connectivity_check = connectivity_check
        self._stop = threading.Event()
        self._thread = None

    def is_online(self) -> bool:
        return self.connectivity_check(self.connectivity_url)

    def _process_entry(self, entry) -> bool:
        try:
            payload = entry.payload()
            delivered = self.remote.push(entry, payload)
        except Exception:
            logger.exception("Error processing sync queue item %s", entry.id)
            return False

        if not delivered:
            logger.warning("Remote rejected sync queue item %s", entry.id)
            return False

        with self.database.transaction() as db:
            sync_queue_service.mark_processed(db, entry.id)

            model = SYNCED_MODELS.get(entry.table_name)
            if model is None or entry.action == ACTION_DELETE or entry.record_id is None:
                return True

            # A later change to the same record is still waiting
            pending = [
                e for e in sync_queue_service.entries_for(db, entry.table_name, entry.record_id)
                if not e.is_processed
            ]
            if not pending:
                db.query(model).filter(model.id == entry.record_id).update(
                    {model.is_synced: True}, synchronize_session=False
                )
        return True

    def process_once(self) -> int:
        """Drain the outbox once. Returns how many entries were processed."""
        if not self.is_online():
            return 0

        with self.database.session_scope() as db:
            entries = sync_queue_service.pull_unprocessed(db)

        processed = 0
        for entry in entries:
            if self._stop.is_set():
                break
            if self._process_entry(entry):
                processed += 1

        if entries:
            logger.info("Processed %d of %d sync queue item(s)", processed, len(entries))
        return processed

    # ------------------------------------------
    # Background timer
    # ------------------------------------------
    def _run(self):
        while not self._stop.is_set():
            try:
                self.process_once()
            except Exception:
                logger.exception("Error processing sync queue")
            self._stop.wait(self.interval)

    def start(self):
        """Run one pass now, then every `interval` seconds on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="outbox-processor", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
