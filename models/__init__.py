from .patient import Patient
from .doctor import Doctor
from .sync_queue import SyncQueueEntry, ACTIONS, ACTION_INSERT, ACTION_UPDATE, ACTION_DELETE

__all__ = [
    "Patient",
    "Doctor",
    "SyncQueueEntry",
    "ACTIONS",
    "ACTION_INSERT",
    "ACTION_UPDATE",
    "ACTION_DELETE",
]
