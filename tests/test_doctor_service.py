import json
import os
import re

import pytest

from core.errors import RecordNotFound, ValidationError
from tests.conftest import PNG_PAYLOAD


def test_create_with_image_uses_doctor_prefix(doctors, outbox):
    created = doctors.create({"name": "Dr. Grey", "specialization": "Surgery"}, PNG_PAYLOAD)

    assert re.fullmatch(r"doctor_\d+_\d+\.png", os.path.basename(created["image_path"]))
    assert created["specialization"] == "Surgery"
    assert [e.table_name for e in outbox()] == ["doctors"]


def test_patient_only_fields_are_rejected(doctors):
    with pytest.raises(ValidationError):
        doctors.create({"name": "Dr. Grey", "age": 40})


def test_doctors_and_patients_have_separate_tables(doctors, patients):
    doctor = doctors.create({"name": "Dr. Grey"})
    patient = patients.create({"name": "Jane"})

    assert doctor["id"] == patient["id"] == 1
    assert [d["name"] for d in doctors.list_all()] == ["Dr. Grey"]
    assert [p["name"] for p in patients.list_all()] == ["Jane"]


def test_update_and_delete(doctors, outbox):
    created = doctors.create({"name": "Dr. Grey", "phone": "555-0100"}, PNG_PAYLOAD)
    doctors.mark_synced(created["id"])

    updated = doctors.update(created["id"], {"specialization": "Cardiology"})
    assert updated["phone"] == "555-0100"
    assert updated["is_synced"] is False

    assert doctors.delete(created["id"]) is True
    assert not os.path.exists(created["image_path"])
    with pytest.raises(RecordNotFound):
        doctors.get(created["id"])

    entries = outbox("doctors", created["id"])
    assert [e.action for e in entries] == ["INSERT", "UPDATE", "DELETE"]
    assert json.loads(entries[-1].data) == {"id": created["id"]}
