from .api import RecordsAPI
from .patient_service import PatientRepository
from .doctor_service import DoctorRepository
from .image_service import ImageStore

__all__ = ["RecordsAPI", "PatientRepository", "DoctorRepository", "ImageStore"]
