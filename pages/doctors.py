import streamlit as st

from core.errors import RecordsError
from core.helpers import image_data_uri, locator_to_path, clean_form_values, render_sidebar
from core.session_manager import get_api, init_session_state, start_editing, stop_editing

# Page config is set globally in app.py

EDIT_KEY = "editing_doctor"

init_session_state(EDIT_KEY)
api = get_api()
render_sidebar(api.sync_queue.pending_count())

st.title("Doctors")


def doctor_form(doctor=None):
    doctor = doctor or {}
    with st.form(f"doctor_form_{doctor.get('id', 'new')}", clear_on_submit=not doctor):
        name = st.text_input("Full Name", value=doctor.get("name") or "", placeholder="Dr. Jane Doe")
        specialization = st.text_input("Specialization", value=doctor.get("specialization") or "")
        phone = st.text_input("Phone", value=doctor.get("phone") or "")
        email = st.text_input("Email", value=doctor.get("email") or "")
        address = st.text_input("Address", value=doctor.get("address") or "")
        photo = st.file_uploader("Photo", type=["png", "jpg", "jpeg", "gif", "webp"])
        submitted = st.form_submit_button("Save" if doctor else "Add Doctor")

    if not submitted:
        return

    fields = clean_form_values({
        "name": name,
        "specialization": specialization,
        "phone": phone,
        "email": email,
        "address": address,
    })
    image = image_data_uri(photo)
    if image:
        fields["image_data"] = image

    try:
        if doctor:
            api.update_doctor(doctor["id"], fields)
            stop_editing(EDIT_KEY)
        else:
            api.create_doctor(fields)
    except RecordsError as exc:
        st.error(str(exc))
        return
    st.rerun()


editing_id = st.session_state.get(EDIT_KEY)
if editing_id is not None:
    try:
        current = api.get_doctor(editing_id)
    except RecordsError:
        stop_editing(EDIT_KEY)
    else:
        st.subheader(f"Edit {current['name']}")
        doctor_form(current)
        if st.button("Cancel"):
            stop_editing(EDIT_KEY)
            st.rerun()
        st.write("---")

with st.expander("Add New Doctor", expanded=False):
    doctor_form()

doctors = api.list_doctors()
if not doctors:
    st.info("No doctors registered yet.")

for doctor in doctors:
    cols = st.columns([1, 4, 1, 1])
    with cols[0]:
        image_path = locator_to_path(doctor.get("image_url"))
        if image_path:
            st.image(image_path, width=80)
    with cols[1]:
        st.markdown(f"**{doctor['name']}**")
        if doctor.get("specialization"):
            st.caption(doctor["specialization"])
    with cols[2]:
        if st.button("Edit", key=f"edit_doctor_{doctor['id']}"):
            start_editing(doctor["id"], EDIT_KEY)
            st.rerun()
    with cols[3]:
        if st.button("Delete", key=f"delete_doctor_{doctor['id']}"):
            try:
                api.delete_doctor(doctor["id"])
            except RecordsError as exc:
                st.error(str(exc))
            else:
                st.rerun()
