from models.doctor import Doctor
from services.record_service import RecordRepository


class DoctorRepository(RecordRepository):
    """Doctor records; same image lifecycle and outbox participation as patients."""

    model = Doctor
    image_prefix = "doctor"

