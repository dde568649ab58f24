"""
Pytest configuration for the records core.

Every test gets its own in-memory SQLite database and an images directory
under tmp_path.
"""
import base64

import pytest

from core.database import Database
from models.sync_queue import SyncQueueEntry
from services.api import RecordsAPI
from services.doctor_service import DoctorRepository
from services.image_service import ImageStore
from services.patient_service import PatientRepository

PNG_BYTES = b"\x89PNG\r\n\x1a\n-test-image-"
PNG_PAYLOAD = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")
JPEG_PAYLOAD = "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8\xff-jpeg").decode("ascii")


@pytest.fixture
def database():
    db = Database("sqlite://")
    yield db
    db.dispose()


@pytest.fixture
def images_dir(tmp_path):
    return tmp_path / "patient_images"


@pytest.fixture
def image_store(images_dir):
    return ImageStore(str(images_dir))


@pytest.fixture
def patients(database, image_store):
    return PatientRepository(database, image_store)


@pytest.fixture
def doctors(database, image_store):
    return DoctorRepository(database, image_store)


@pytest.fixture
def api(database, image_store):
    return RecordsAPI(database, image_store)


@pytest.fixture
def outbox(database):
    """Return a callable listing every sync_queue entry in id order."""
    def _entries(table_name=None, record_id=None):
        with database.session_scope() as db:
            query = db.query(SyncQueueEntry)
            if table_name is not None:
                query = query.filter(SyncQueueEntry.table_name == table_name)
            if record_id is not None:
                query = query.filter(SyncQueueEntry.record_id == record_id)
            return query.order_by(SyncQueueEntry.id).all()
    return _entries
