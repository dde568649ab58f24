import streamlit as st

from core.config import configure_logging, load_settings
from core.database import Database
from services.api import RecordsAPI
from services.image_service import ImageStore
from services.sync_service import OutboxProcessor


@st.cache_resource
def get_api() -> RecordsAPI:
    """One storage handle and image store per Streamlit server process."""
    configure_logging()
    settings = load_settings()
    return RecordsAPI(Database(settings.database_url), ImageStore(settings.images_dir))


@st.cache_resource
def start_outbox_processor() -> OutboxProcessor:
    settings = load_settings()
    processor = OutboxProcessor(
        get_api().database,
        connectivity_url=settings.connectivity_url,
        interval=settings.sync_interval,
    )
    processor.start()
    return processor


def init_session_state(key: str = "editing_id"):
    """Ensure required session keys exist."""
    if key not in st.session_state:
        st.session_state[key] = None


def start_editing(record_id: int, key: str = "editing_id"):
    st.session_state[key] = record_id


def stop_editing(key: str = "editing_id"):
    st.session_state[key] = None
