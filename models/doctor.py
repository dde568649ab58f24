# models/doctor.py

from sqlalchemy import Column, Integer, String, Boolean, DateTime

from core.database import Base
from core.time_utils import now_utc, isoformat


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String, nullable=False)
    specialization = Column(String, nullable=True)

    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    address = Column(String, nullable=True)

    image_path = Column(String, nullable=True)

    created_at = Column(DateTime, default=now_utc, nullable=False)
    is_synced = Column(Boolean, default=False, nullable=False)

    EDITABLE_FIELDS = (
        "name",
        "specialization",
        "phone",
        "email",
        "address",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "specialization": self.specialization,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "image_path": self.image_path,
            "created_at": isoformat(self.created_at),
            "is_synced": bool(self.is_synced),
        }

    def __repr__(self):
        return f"<Doctor {self.id} - {self.name}>"
