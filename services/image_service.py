"""
Image storage for patient and doctor photographs.

Payloads arrive as inline data URIs (``data:image/png;base64,....``) and are
written under a single images directory. Rows keep the absolute path; readers
turn that path into a ``file://`` locator through ``resolve_locator``, which
tolerates files that were moved to the canonical directory, hidden with a
leading dot, or renamed with a different case.
"""

import os
import re
import base64
import binascii
import logging
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

from core.config import load_settings
from core.errors import InvalidImageData, ImageWriteFailed
from core.time_utils import epoch_millis

logger = logging.getLogger(__name__)

DATA_URI_RE = re.compile(
    r"^data:(?P<mime>[A-Za-z0-9.+/-]*);(?P<encoding>[A-Za-z0-9-]+),(?P<data>.+)$",
    re.DOTALL,
)
UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]")

DEFAULT_EXTENSION = "png"


# ------------------------------------------
# File matching strategies
# Each one is a pure lookup of `name` inside `directory`.
# ------------------------------------------
def exact_match(directory: str, name: str) -> str | None:
    path = os.path.join(directory, name)
    return path if os.path.isfile(path) else None


def _hidden_name(name: str) -> str:
    return name if name.startswith(".") else f".{name}"


def hidden_match(directory: str, name: str) -> str | None:
    """Match a file the OS renamed with a leading dot."""
    path = os.path.join(directory, _hidden_name(name))
    return path if os.path.isfile(path) else None


def case_insensitive_match(directory: str, name: str) -> str | None:
    wanted = {name.lower(), _hidden_name(name).lower()}
    try:
        entries = sorted(os.listdir(directory))
    except OSError:
        return None
    for entry in entries:
        path = os.path.join(directory, entry)
        if entry.lower() in wanted and os.path.isfile(path):
            return path
    return None


FILE_MATCHERS = (exact_match, hidden_match, case_insensitive_match)


def find_file_in_directory(directory: str, name: str) -> str | None:
    """Try each matcher in order and return the first hit."""
    if not directory or not name:
        return None
    for matcher in FILE_MATCHERS:
        found = matcher(directory, name)
        if found:
            return found
    return None


def to_file_url(path: str) -> str:
    return Path(os.path.abspath(path)).as_uri()


def _strip_file_url(path: str) -> str:
    if path.startswith("file://"):
        return url2pathname(urlparse(path).path)
    return path


def sanitize_filename(filename: str) -> str:
    return UNSAFE_CHARS_RE.sub("_", filename)


def parse_data_uri(payload: str) -> tuple[str, bytes]:
    """
    Split an inline image payload into (extension, raw bytes).

    Raises
    ------
    InvalidImageData
        If the payload is not ``<type>;<encoding>,<data>``, the encoding is not
        base64, or the data does not decode.
    """
    if not isinstance(payload, str):
        raise InvalidImageData("Image payload must be a string")

    match = DATA_URI_RE.match(payload.strip())
    if not match:
        raise InvalidImageData("Invalid base64 image data")

    if match.group("encoding").lower() != "base64":
        raise InvalidImageData(f"Unsupported image encoding: {match.group('encoding')}")

    try:
        raw = base64.b64decode("".join(match.group("data").split()), validate=True)
    except binascii.Error as exc:
        raise InvalidImageData("Image data is not valid base64") from exc

    mime = match.group("mime")
    subtype = mime.split("/", 1)[1] if "/" in mime else ""
    return subtype or DEFAULT_EXTENSION, raw


class ImageStore:
    """Owns file placement under one images directory."""

    def __init__(self, images_dir: str | None = None):
        self.images_dir = os.path.abspath(images_dir or load_settings().images_dir)

    def _ensure_images_dir(self) -> None:
        os.makedirs(self.images_dir, exist_ok=True)

    def _target_path(self, prefix: str, owner_id, ext: str) -> str:
        stem = sanitize_filename(f"{prefix}_{owner_id}_{epoch_millis()}")
        ext = sanitize_filename(ext)
        path = os.path.join(self.images_dir, f"{stem}.{ext}")
        counter = 1
        while os.path.exists(path):
            path = os.path.join(self.images_dir, f"{stem}_{counter}.{ext}")
            counter += 1
        return path

    def save_image(self, payload: str, owner_id, prefix: str = "patient") -> str:
        """
        Decode `payload` and write it to the images directory.

        Returns the absolute path of the new file.
        """
        ext, raw = parse_data_uri(payload)

        try:
            self._ensure_images_dir()
            path = self._target_path(prefix, owner_id, ext)
            with open(path, "wb") as f:
                f.write(raw)
        except OSError as exc:
            raise ImageWriteFailed(f"Failed to save image for {prefix} {owner_id}: {exc}") from exc

        if not os.path.isfile(path):
            raise ImageWriteFailed(f"Failed to save image: {path}")

        logger.info("Saved image %s", path)
        return path

    def delete_image(self, path: str | None) -> bool:
        """
        Remove an image file.

        Returns False when there is nothing to delete or the removal fails;
        never raises.
        """
        if not path:
            return False

        path = _strip_file_url(path)
        if not os.path.isfile(path):
            return False

        try:
            os.remove(path)
        except OSError as exc:
            logger.warning("Could not delete image %s: %s", path, exc)
            return False

        logger.info("Deleted image %s", path)
        return True

    def resolve_path(self, path: str | None) -> str | None:
        """Locate the file a stored path refers to, or None."""
        if not path:
            return None

        candidate = _strip_file_url(path.strip())
        if os.path.isfile(candidate):
            return os.path.abspath(candidate)

        name = os.path.basename(candidate)
        if not name:
            return None

        directories = []
        own_dir = os.path.dirname(candidate)
        if own_dir:
            directories.append(own_dir)
        if self.images_dir not in directories:
            directories.append(self.images_dir)

        for directory in directories:
            found = find_file_in_directory(directory, name)
            if found:
                return os.path.abspath(found)

        logger.debug("Image not found for %s (searched %s)", path, directories)
        return None

    def resolve_locator(self, path: str | None) -> str | None:
        """Return a ``file://`` locator for `path`, or None if it cannot be found."""
        found = self.resolve_path(path)
        return to_file_url(found) if found else None
