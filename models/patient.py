# models/patient.py

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime

from core.database import Base
from core.time_utils import now_utc, isoformat


class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Demographics
    name = Column(String, nullable=False)
    age = Column(Integer, nullable=True)
    gender = Column(String, nullable=True)

    # Contact
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    address = Column(String, nullable=True)

    medical_history = Column(Text, nullable=True)

    # Absolute path of the stored photograph, if any
    image_path = Column(String, nullable=True)

    created_at = Column(DateTime, default=now_utc, nullable=False)
    is_synced = Column(Boolean, default=False, nullable=False)

    # Fields a caller may set through create/update
    EDITABLE_FIELDS = (
        "name",
        "age",
        "gender",
        "phone",
        "email",
        "address",
        "medical_history",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "age": self.age,
            "gender": self.gender,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "medical_history": self.medical_history,
            "image_path": self.image_path,
            "created_at": isoformat(self.created_at),
            "is_synced": bool(self.is_synced),
        }

    def __repr__(self):
        return f"<Patient {self.id} - {self.name}>"
