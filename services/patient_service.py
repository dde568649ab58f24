from core.errors import ValidationError
from models.patient import Patient
from services.record_service import RecordRepository


class PatientRepository(RecordRepository):
    """
    Patient records with their photograph and outbox entries.

    create/update/delete each run as a single transaction covering the row,
    the image file and the sync_queue entry. Reads return dicts carrying an
    ``image_url`` locator next to the stored ``image_path``.
    """

    model = Patient
    image_prefix = "patient"

    def validate_fields(self, fields: dict, creating: bool) -> dict:
        cleaned = super().validate_fields(fields, creating)

        if "age" in cleaned and cleaned["age"] is not None:
            age = cleaned["age"]
            if isinstance(age, bool) or not isinstance(age, int) or age < 0:
                raise ValidationError("Age must be a non-negative integer.")

        return cleaned

