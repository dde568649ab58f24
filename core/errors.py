class RecordsError(Exception):
    """Base class for errors raised by the records core."""


class ValidationError(RecordsError, ValueError):
    """Input rejected before any mutation took place."""


class InvalidImageData(ValidationError):
    """The encoded image payload does not have the ``type;encoding,data`` shape."""


class ImageWriteFailed(RecordsError, OSError):
    """An image could not be written to disk."""


class RecordNotFound(RecordsError, LookupError):
    def __init__(self, table_name: str, record_id):
        super().__init__(f"{table_name} record with id {record_id} not found")
        self.table_name = table_name
        self.record_id = record_id


class UnknownChannel(RecordsError):
    """No boundary operation is registered under the requested channel name."""
