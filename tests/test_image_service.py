import os
import re

import pytest

from core.errors import InvalidImageData, ImageWriteFailed
from services import image_service
from services.image_service import (
    ImageStore,
    case_insensitive_match,
    exact_match,
    find_file_in_directory,
    hidden_match,
    parse_data_uri,
    to_file_url,
)
from tests.conftest import PNG_BYTES, PNG_PAYLOAD, JPEG_PAYLOAD


class TestSaveImage:
    def test_writes_decoded_bytes_under_images_dir(self, image_store, images_dir):
        path = image_store.save_image(PNG_PAYLOAD, 7)

        assert os.path.isabs(path)
        assert os.path.dirname(path) == str(images_dir)
        assert re.fullmatch(r"patient_7_\d+\.png", os.path.basename(path))
        with open(path, "rb") as f:
            assert f.read() == PNG_BYTES

    def test_extension_comes_from_declared_type(self, image_store):
        assert image_store.save_image(JPEG_PAYLOAD, 1).endswith(".jpeg")

    def test_missing_type_defaults_to_png(self, image_store):
        assert image_store.save_image("data:;base64,AAAA", 1).endswith(".png")

    def test_prefix_and_owner_are_sanitized(self, image_store):
        path = image_store.save_image(PNG_PAYLOAD, "a/b c", prefix="doctor")
        assert re.fullmatch(r"doctor_a_b_c_\d+\.png", os.path.basename(path))

    def test_same_millisecond_does_not_overwrite(self, image_store, monkeypatch):
        monkeypatch.setattr(image_service, "epoch_millis", lambda: 1700000000000)

        first = image_store.save_image(PNG_PAYLOAD, 3)
        second = image_store.save_image(PNG_PAYLOAD, 3)

        assert first != second
        assert os.path.isfile(first) and os.path.isfile(second)

    @pytest.mark.parametrize(
        "payload",
        [
            "data:image/png;base64AAAA",  # missing comma
            "image/png;base64,AAAA",  # missing data: scheme
            "data:image/png;hex,0000",  # unsupported encoding
            "data:image/png;base64,!!not-base64!!",
            "",
        ],
    )
    def test_malformed_payload_writes_nothing(self, image_store, images_dir, payload):
        with pytest.raises(InvalidImageData):
            image_store.save_image(payload, 7)
        assert not images_dir.exists() or not any(images_dir.iterdir())

    def test_non_string_payload_is_rejected(self):
        with pytest.raises(InvalidImageData):
            parse_data_uri(b"data:image/png;base64,AAAA")

    def test_os_error_while_writing_is_reported(self, image_store, monkeypatch):
        def broken_open(*args, **kwargs):
            raise PermissionError("read-only")

        monkeypatch.setattr(image_service, "open", broken_open, raising=False)

        with pytest.raises(ImageWriteFailed):
            image_store.save_image(PNG_PAYLOAD, 1)

    def test_file_missing_after_write_is_reported(self, image_store, monkeypatch):
        monkeypatch.setattr(image_service.os.path, "isfile", lambda path: False)

        with pytest.raises(ImageWriteFailed):
            image_store.save_image(PNG_PAYLOAD, 1)


class TestDeleteImage:
    def test_removes_existing_file(self, image_store):
        path = image_store.save_image(PNG_PAYLOAD, 1)
        assert image_store.delete_image(path) is True
        assert not os.path.exists(path)

    def test_missing_or_empty_path_returns_false(self, image_store, tmp_path):
        assert image_store.delete_image(str(tmp_path / "nope.png")) is False
        assert image_store.delete_image(None) is False
        assert image_store.delete_image("") is False

    def test_accepts_file_url(self, image_store):
        path = image_store.save_image(PNG_PAYLOAD, 1)
        assert image_store.delete_image(to_file_url(path)) is True

    def test_os_error_is_swallowed(self, image_store, monkeypatch):
        path = image_store.save_image(PNG_PAYLOAD, 1)

        def broken_remove(_path):
            raise OSError("busy")

        monkeypatch.setattr(image_service.os, "remove", broken_remove)

        assert image_store.delete_image(path) is False


class TestResolveLocator:
    def test_round_trip(self, image_store):
        path = image_store.save_image(PNG_PAYLOAD, 1)

        locator = image_store.resolve_locator(path)
        assert locator == to_file_url(path)
        assert locator.startswith("file://")

        image_store.delete_image(path)
        assert image_store.resolve_locator(path) is None

    def test_accepts_existing_file_url(self, image_store):
        path = image_store.save_image(PNG_PAYLOAD, 1)
        assert image_store.resolve_locator(to_file_url(path)) == to_file_url(path)

    def test_finds_hidden_rename(self, image_store):
        path = image_store.save_image(PNG_PAYLOAD, 1)
        hidden = os.path.join(os.path.dirname(path), "." + os.path.basename(path))
        os.rename(path, hidden)

        assert image_store.resolve_locator(path) == to_file_url(hidden)

    def test_finds_case_changed_name(self, image_store):
        path = image_store.save_image(PNG_PAYLOAD, 1)
        upper = os.path.join(os.path.dirname(path), os.path.basename(path).upper())
        os.rename(path, upper)

        assert image_store.resolve_path(path) == upper

    def test_re_roots_under_images_dir(self, image_store, tmp_path):
        path = image_store.save_image(PNG_PAYLOAD, 1)
        stale = str(tmp_path / "old-location" / os.path.basename(path))

        assert image_store.resolve_locator(stale) == to_file_url(path)

    def test_absent_inputs(self, image_store, tmp_path):
        assert image_store.resolve_locator(None) is None
        assert image_store.resolve_locator("") is None
        assert image_store.resolve_locator(str(tmp_path / "missing.png")) is None


class TestFileMatchers:
    def test_each_matcher_in_isolation(self, tmp_path):
        (tmp_path / "a.png").write_bytes(b"x")
        (tmp_path / ".b.png").write_bytes(b"x")
        (tmp_path / "C.PNG").write_bytes(b"x")

        assert exact_match(str(tmp_path), "a.png") == str(tmp_path / "a.png")
        assert exact_match(str(tmp_path), "b.png") is None
        assert hidden_match(str(tmp_path), "b.png") == str(tmp_path / ".b.png")
        assert hidden_match(str(tmp_path), "a.png") is None
        assert case_insensitive_match(str(tmp_path), "c.png") == str(tmp_path / "C.PNG")

    def test_missing_directory_is_not_an_error(self, tmp_path):
        missing = str(tmp_path / "missing")
        assert case_insensitive_match(missing, "a.png") is None
        assert find_file_in_directory(missing, "a.png") is None

    def test_first_hit_wins(self, tmp_path):
        (tmp_path / "a.png").write_bytes(b"x")
        (tmp_path / ".a.png").write_bytes(b"x")

        assert find_file_in_directory(str(tmp_path), "a.png") == str(tmp_path / "a.png")
