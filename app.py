import streamlit as st

from core.errors import RecordsError
from core.helpers import image_data_uri, locator_to_path, clean_form_values, render_sidebar
from core.session_manager import (
    get_api,
    start_outbox_processor,
    init_session_state,
    start_editing,
    stop_editing,
)

EDIT_KEY = "editing_patient"
GENDERS = ["", "Male", "Female", "Other"]


def patient_form(api, patient=None):
    """Create form when `patient` is None, edit form otherwise."""
    patient = patient or {}
    form_key = f"patient_form_{patient.get('id', 'new')}"

    with st.form(form_key, clear_on_submit=not patient):
        name = st.text_input("Full Name", value=patient.get("name") or "", placeholder="Jane Doe")
        age = st.number_input("Age", min_value=0, max_value=150, step=1, value=patient.get("age") or 0)
        gender = st.selectbox(
            "Gender",
            GENDERS,
            index=GENDERS.index(patient.get("gender")) if patient.get("gender") in GENDERS else 0,
        )
        phone = st.text_input("Phone", value=patient.get("phone") or "")
        email = st.text_input("Email", value=patient.get("email") or "")
        address = st.text_input("Address", value=patient.get("address") or "")
        medical_history = st.text_area("Medical History", value=patient.get("medical_history") or "")
        photo = st.file_uploader("Photo", type=["png", "jpg", "jpeg", "gif", "webp"])

        submitted = st.form_submit_button("Save" if patient else "Add Patient")

    if not submitted:
        return

    fields = clean_form_values({
        "name": name,
        "age": int(age) if age else None,
        "gender": gender,
        "phone": phone,
        "email": email,
        "address": address,
        "medical_history": medical_history,
    })
    image = image_data_uri(photo)
    if image:
        fields["image_data"] = image

    try:
        if patient:
            api.update_patient(patient["id"], fields)
            stop_editing(EDIT_KEY)
            st.success("Patient updated.")
        else:
            created = api.create_patient(fields)
            st.success(f"Patient created! ID: {created['id']}")
    except RecordsError as exc:
        st.error(str(exc))
        return
    st.rerun()


def render_patient(api, patient):
    cols = st.columns([1, 4, 1, 1])
    with cols[0]:
        image_path = locator_to_path(patient.get("image_url"))
        if image_path:
            st.image(image_path, width=80)
    with cols[1]:
        st.markdown(f"**{patient['name']}** (ID {patient['id']})")
        details = [str(v) for v in (patient.get("age"), patient.get("gender"), patient.get("phone")) if v]
        if details:
            st.caption(" · ".join(details))
        if not patient.get("is_synced"):
            st.caption("Not synced yet")
    with cols[2]:
        if st.button("Edit", key=f"edit_{patient['id']}"):
            start_editing(patient["id"], EDIT_KEY)
            st.rerun()
    with cols[3]:
        if st.button("Delete", key=f"delete_{patient['id']}"):
            try:
                api.delete_patient(patient["id"])
            except RecordsError as exc:
                st.error(str(exc))
            else:
                st.rerun()


def main():
    st.set_page_config(
        page_title="Patient Records",
        layout="wide",
        initial_sidebar_state="expanded",
    )

    init_session_state(EDIT_KEY)
    api = get_api()
    start_outbox_processor()
    render_sidebar(api.sync_queue.pending_count())

    st.title("Patients")

    editing_id = st.session_state.get(EDIT_KEY)
    if editing_id is not None:
        try:
            patient = api.get_patient(editing_id)
        except RecordsError:
            stop_editing(EDIT_KEY)
        else:
            st.subheader(f"Edit {patient['name']}")
            patient_form(api, patient)
            if st.button("Cancel"):
                stop_editing(EDIT_KEY)
                st.rerun()
            st.write("---")

    with st.expander("Add New Patient", expanded=False):
        patient_form(api)

    search = st.text_input("Search patient name:", placeholder="Type to search...")
    patients = api.list_patients()
    if search.strip():
        q = search.strip().lower()
        patients = [p for p in patients if q in (p["name"] or "").lower()]

    if not patients:
        st.info("No patients found.")
    for patient in patients:
        render_patient(api, patient)


main()
