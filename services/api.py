"""
Boundary between the UI and the records core.

Every method is a synchronous call that returns plain data (dicts, lists,
bools, strings). ``dispatch`` maps the channel names used by the desktop
client (``db:getPatients``, ``db:addPatient``, ...) onto these methods.
"""

import logging

from core.database import Database
from core.errors import UnknownChannel
from services.doctor_service import DoctorRepository
from services.image_service import ImageStore
from services.patient_service import PatientRepository
from services.sync_queue_service import SyncQueue

logger = logging.getLogger(__name__)

IMAGE_FIELD = "image_data"


def split_image(fields: dict | None) -> tuple[dict, str | None]:
    """Separate the encoded image payload from the record fields."""
    fields = dict(fields or {})
    return fields, fields.pop(IMAGE_FIELD, None)


class RecordsAPI:
    def __init__(self, database: Database | None = None, image_store: ImageStore | None = None):
        self.database = database or Database()
        self.image_store = image_store or ImageStore()
        self.patients = PatientRepository(self.database, self.image_store)
        self.doctors = DoctorRepository(self.database, self.image_store)
        self.sync_queue = SyncQueue(self.database)

        self._channels = {
            "db:getPatients": self.list_patients,
            "db:getPatient": self.get_patient,
            "db:addPatient": self.create_patient,
            "db:updatePatient": self.update_patient,
            "db:deletePatient": self.delete_patient,
            "db:getUnsyncedPatients": self.list_unsynced_patients,
            "db:markPatientAsSynced": self.mark_patient_synced,
            "db:getDoctors": self.list_doctors,
            "db:getDoctor": self.get_doctor,
            "db:addDoctor": self.create_doctor,
            "db:updateDoctor": self.update_doctor,
            "db:deleteDoctor": self.delete_doctor,
            "db:saveImage": self.save_image,
            "db:deleteImage": self.delete_image,
            "db:addToSyncQueue": self.append_to_outbox,
        }

    @property
    def channels(self) -> list[str]:
        return sorted(self._channels)

    def dispatch(self, channel: str, *args):
        handler = self._channels.get(channel)
        if handler is None:
            raise UnknownChannel(f"No handler registered for {channel!r}")
        logger.debug("Dispatching %s", channel)
        return handler(*args)

    # -----------------------------
    # Patients
    # -----------------------------
    def list_patients(self) -> list[dict]:
        return self.patients.list_all()

    def get_patient(self, patient_id: int) -> dict:
        return self.patients.get(patient_id)

    def create_patient(self, fields: dict) -> dict:
        fields, image = split_image(fields)
        return self.patients.create(fields, image)

    def update_patient(self, patient_id: int, fields: dict) -> dict:
        fields, image = split_image(fields)
        return self.patients.update(patient_id, fields, image)

    def delete_patient(self, patient_id: int) -> bool:
        return self.patients.delete(patient_id)

    def list_unsynced_patients(self) -> list[dict]:
        return self.patients.list_unsynced()

    def mark_patient_synced(self, patient_id: int) -> bool:
        return self.patients.mark_synced(patient_id)

    # -----------------------------
    # Doctors
    # -----------------------------
    def list_doctors(self) -> list[dict]:
        return self.doctors.list_all()

    def get_doctor(self, doctor_id: int) -> dict:
        return self.doctors.get(doctor_id)

    def create_doctor(self, fields: dict) -> dict:
        fields, image = split_image(fields)
        return self.doctors.create(fields, image)

    def update_doctor(self, doctor_id: int, fields: dict) -> dict:
        fields, image = split_image(fields)
        return self.doctors.update(doctor_id, fields, image)

    def delete_doctor(self, doctor_id: int) -> bool:
        return self.doctors.delete(doctor_id)

    # -----------------------------
    # Images and outbox
    # -----------------------------
    def save_image(self, payload: str, owner_id: int) -> str:
        return self.image_store.save_image(payload, owner_id)

    def delete_image(self, path: str) -> bool:
        return self.image_store.delete_image(path)

    def append_to_outbox(self, table_name: str, record_id: int, action: str, data) -> None:
        self.sync_queue.append(table_name, record_id, action, data)
