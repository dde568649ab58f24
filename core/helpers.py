import base64
from urllib.parse import urlparse
from urllib.request import url2pathname

import streamlit as st


def image_data_uri(uploaded_file) -> str | None:
    """Encode a Streamlit upload as ``data:<type>;base64,<data>``."""
    if uploaded_file is None:
        return None
    mime = uploaded_file.type or "image/png"
    encoded = base64.b64encode(uploaded_file.getvalue()).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def locator_to_path(image_url: str | None) -> str | None:
    """Turn a ``file://`` locator back into a path st.image can open."""
    if not image_url:
        return None
    return url2pathname(urlparse(image_url).path)


def clean_form_values(values: dict) -> dict:
    """Blank text inputs become None so optional columns stay NULL."""
    cleaned = {}
    for key, value in values.items():
        if isinstance(value, str):
            value = value.strip() or None
        cleaned[key] = value
    return cleaned


# -----------------------------
# Sidebar helpers
# -----------------------------
def hide_default_sidebar_nav():
    """Hide Streamlit's default multi-page navigation for a cleaner custom menu."""
    st.markdown(
        """
        <style>
        /* Hide the auto-generated Pages section */
        [data-testid="stSidebarNav"] { display: none; }
        </style>
        """,
        unsafe_allow_html=True,
    )


def render_sidebar(pending_count: int):
    """Render the navigation menu and the sync status."""
    hide_default_sidebar_nav()
    with st.sidebar:
        st.markdown("### Menu")
        if st.button("Patients", use_container_width=True):
            st.switch_page("app.py")
        if st.button("Doctors", use_container_width=True):
            st.switch_page("pages/doctors.py")
        st.divider()
        if pending_count:
            st.caption(f"{pending_count} change(s) waiting to sync")
        else:
            st.caption("All changes synced")
