"""Unit tests for reference image intake."""

import base64
import io

import pytest
from PIL import Image

from styleprompt.core.config import Config
from styleprompt.core.image_input import (
    DEFAULT_MIME_TYPE,
    ImagePayload,
    accept_dropped_file,
    create_preview,
    infer_mime_type_from_magic,
    is_image_mime_type,
    load_picked_file,
    payload_from_bytes,
    try_create_preview,
)
from styleprompt.utils.exceptions import ImageProcessingError, ValidationError


def _png_bytes(size=(4, 4), mode="RGB"):
    buf = io.BytesIO()
    Image.new(mode, size, color=(10, 20, 30, 128) if mode == "RGBA" else (10, 20, 30)).save(
        buf, format="PNG"
    )
    return buf.getvalue()


PNG = _png_bytes()


@pytest.fixture
def config():
    return Config()


@pytest.mark.unit
class TestMimeTypes:
    @pytest.mark.parametrize(
        "value,expected",
        [("image/png", True), ("IMAGE/JPEG", True), ("text/plain", False), ("", False), (None, False)],
    )
    def test_is_image_mime_type(self, value, expected):
        assert is_image_mime_type(value) is expected

    def test_magic_png(self):
        assert infer_mime_type_from_magic(PNG) == "image/png"

    def test_magic_jpeg(self):
        assert infer_mime_type_from_magic(b"\xff\xd8\xff\xe0" + b"\x00" * 12) == "image/jpeg"

    def test_magic_webp(self):
        assert infer_mime_type_from_magic(b"RIFF\x00\x00\x00\x00WEBPVP8 ") == "image/webp"

    def test_magic_unknown_or_short(self):
        assert infer_mime_type_from_magic(b"hello world, plain text") is None
        assert infer_mime_type_from_magic(b"\x89PNG") is None


@pytest.mark.unit
class TestPayloadFromBytes:
    def test_explicit_mime_type_wins(self, config):
        p = payload_from_bytes(PNG, "image/gif", filename="x.png", config=config)
        assert p.mime_type == "image/gif"

    def test_mime_from_filename(self, config):
        p = payload_from_bytes(b"x" * 20, filename="photo.jpg", config=config)
        assert p.mime_type == "image/jpeg"

    def test_mime_from_magic(self, config):
        p = payload_from_bytes(PNG, config=config)
        assert p.mime_type == "image/png"

    def test_unknown_falls_back_to_octet_stream(self, config):
        p = payload_from_bytes(b"0123456789abcdef", config=config)
        assert p.mime_type == DEFAULT_MIME_TYPE
        assert p.is_image_type() is False

    def test_empty_raises(self, config):
        with pytest.raises(ValidationError) as exc_info:
            payload_from_bytes(b"", config=config)
        assert exc_info.value.field == "image"

    def test_too_large_raises(self):
        with pytest.raises(ValidationError, match="too large"):
            payload_from_bytes(PNG, config=Config(max_image_bytes=10))


@pytest.mark.unit
class TestImagePayload:
    def test_size_and_hash(self):
        p = ImagePayload(data=b"abc", mime_type="image/png")
        assert p.size_bytes == 3
        assert len(p.sha256) == 64

    def test_data_url(self):
        p = ImagePayload(data=b"abc", mime_type="image/png")
        assert p.to_data_url() == "data:image/png;base64," + base64.b64encode(b"abc").decode()


@pytest.mark.unit
class TestLoadPickedFile:
    def test_loads_png(self, tmp_path, config):
        path = tmp_path / "ref.png"
        path.write_bytes(PNG)
        p = load_picked_file(path, config=config)
        assert p.data == PNG
        assert p.mime_type == "image/png"
        assert p.filename == "ref.png"

    def test_picker_accepts_non_image_type(self, tmp_path, config):
        path = tmp_path / "notes.txt"
        path.write_text("not an image at all")
        p = load_picked_file(str(path), config=config)
        assert p.mime_type == "text/plain"

    def test_data_url(self, config):
        url = "data:image/png;base64," + base64.b64encode(PNG).decode()
        p = load_picked_file(url, config=config)
        assert p.data == PNG
        assert p.mime_type == "image/png"

    def test_bad_data_url(self, config):
        with pytest.raises(ValidationError):
            load_picked_file("data:image/png,raw", config=config)

    def test_missing_file(self, tmp_path, config):
        with pytest.raises(FileNotFoundError):
            load_picked_file(tmp_path / "nope.png", config=config)


@pytest.mark.unit
class TestAcceptDroppedFile:
    def test_non_image_is_ignored(self, tmp_path, config):
        path = tmp_path / "notes.txt"
        path.write_text("text")
        assert accept_dropped_file(path, config=config) is None

    def test_declared_type_overrides_extension(self, tmp_path, config):
        path = tmp_path / "ref.png"
        path.write_bytes(PNG)
        assert accept_dropped_file(path, mime_type="application/pdf", config=config) is None

    def test_image_is_accepted(self, tmp_path, config):
        path = tmp_path / "ref.png"
        path.write_bytes(PNG)
        p = accept_dropped_file(path, config=config)
        assert p is not None
        assert p.mime_type == "image/png"


@pytest.mark.unit
class TestPreview:
    def test_rgba_preview_is_rgb_and_bounded(self):
        p = ImagePayload(data=_png_bytes((1000, 500), mode="RGBA"), mime_type="image/png")
        preview = create_preview(p, max_size=(100, 100))
        assert preview.mode == "RGB"
        assert preview.size == (100, 50)

    def test_undecodable_raises(self):
        with pytest.raises(ImageProcessingError):
            create_preview(ImagePayload(data=b"not an image", filename="x.png"))

    def test_try_create_preview_returns_none(self):
        assert try_create_preview(ImagePayload(data=b"not an image")) is None
