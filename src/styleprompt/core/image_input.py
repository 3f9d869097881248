"""
Reference image intake for styleprompt.

This module accepts the single image a user picks or drops, works out its media
type, and produces both the raw payload sent to Gemini and a preview image for
display. Files chosen with the picker are accepted as-is; dropped files whose
declared type is not an image are ignored.
"""

import base64
import hashlib
import io
import mimetypes
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

from styleprompt.core.config import Config, get_config
from styleprompt.logging_config import get_logger
from styleprompt.utils.exceptions import ImageProcessingError, ValidationError

logger = get_logger(__name__)

# Formats Gemini accepts as inline image data, shown as a hint next to the picker
ACCEPTED_FORMATS_HINT = "PNG, JPG, GIF, or WEBP"

DEFAULT_MIME_TYPE = "application/octet-stream"
PREVIEW_MAX_SIZE = (768, 768)

_MAGIC_MIME_TYPES = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
)


@dataclass(frozen=True)
class ImagePayload:
    """An accepted reference image: raw bytes plus the media type sent with them."""

    data: bytes = b""
    mime_type: str = DEFAULT_MIME_TYPE
    filename: str = ""

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def sha256(self) -> str:
        """Content hash, used to identify the image in logs."""
        return hashlib.sha256(self.data).hexdigest()

    def is_image_type(self) -> bool:
        """True if the media type declares an image."""
        return is_image_mime_type(self.mime_type)

    def to_base64(self) -> str:
        """Return the payload as a base64 string for inline transfer."""
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        """Return a data URL for embedding the image in HTML."""
        return f"data:{self.mime_type};base64,{self.to_base64()}"


def is_image_mime_type(mime_type: str | None) -> bool:
    """True if the media type starts with image/."""
    return bool(mime_type) and mime_type.strip().lower().startswith("image/")


def infer_mime_type_from_magic(data: bytes) -> str | None:
    """Infer an image media type from magic bytes. Returns None if unknown."""
    if len(data) < 12:
        return None
    for signature, mime in _MAGIC_MIME_TYPES:
        if data.startswith(signature):
            return mime
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data[4:12] in (b"ftypheic", b"ftypheix", b"ftypmif1"):
        return "image/heic"
    return None


def declared_mime_type(filename: str) -> str | None:
    """Media type declared by a file name's extension, or None if unknown."""
    mime, _ = mimetypes.guess_type(filename)
    return mime


def _parse_data_url(data_url: str) -> tuple[bytes, str | None]:
    """
    Parse a data URL (data:image/xxx;base64,yyy) into raw bytes and its media type.

    Raises:
        ValidationError: If the string is not a base64 data URL
    """
    data_url = data_url.strip()
    if not data_url.startswith("data:"):
        raise ValidationError("Not a data URL", field="image")
    idx = data_url.find(";base64,")
    if idx == -1:
        raise ValidationError("Data URL missing ;base64, part", field="image")
    try:
        payload = base64.b64decode(data_url[idx + 8 :], validate=True)
    except ValueError as e:
        raise ValidationError(f"Invalid base64 in data URL: {e}", field="image") from e
    mime = data_url[5:idx].strip().lower() or None
    return payload, mime


def _check_size(data: bytes, limit: int, filename: str = "") -> None:
    if not data:
        raise ValidationError("Image data is empty", field="image")
    if len(data) > limit:
        raise ValidationError(
            f"Image is too large: {len(data)} bytes exceeds the {limit} byte limit"
            + (f" ({filename})" if filename else ""),
            field="image",
        )


def payload_from_bytes(
    data: bytes,
    mime_type: str | None = None,
    filename: str = "",
    config: Config | None = None,
) -> ImagePayload:
    """
    Build a payload from in-memory bytes.

    The media type is taken from ``mime_type`` when given, else from the file
    name, else from magic bytes, else application/octet-stream.

    Raises:
        ValidationError: If data is empty or larger than config.max_image_bytes
    """
    cfg = config or get_config()
    _check_size(data, cfg.max_image_bytes, filename)
    mime = (
        (mime_type or "").strip().lower()
        or (declared_mime_type(filename) if filename else None)
        or infer_mime_type_from_magic(data)
        or DEFAULT_MIME_TYPE
    )
    return ImagePayload(data=data, mime_type=mime, filename=filename)


def load_picked_file(
    source: str | Path,
    mime_type: str | None = None,
    config: Config | None = None,
) -> ImagePayload:
    """
    Accept a file chosen with the picker, or a data URL.

    Picker selections are not checked for being images; the payload carries
    whatever media type the file declares.

    Raises:
        FileNotFoundError: If the path does not exist
        ValidationError: If the file is empty or too large
        ImageProcessingError: If the file cannot be read
    """
    if isinstance(source, str) and source.strip().startswith("data:"):
        data, parsed_mime = _parse_data_url(source)
        return payload_from_bytes(data, mime_type or parsed_mime, config=config)

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ImageProcessingError(f"Failed to read image: {e}", image_path=str(path)) from e
    payload = payload_from_bytes(data, mime_type, filename=path.name, config=config)
    logger.info(
        "Accepted image name=%s mime_type=%s bytes=%d",
        payload.filename,
        payload.mime_type,
        payload.size_bytes,
    )
    return payload


def accept_dropped_file(
    source: str | Path,
    mime_type: str | None = None,
    config: Config | None = None,
) -> ImagePayload | None:
    """
    Accept a dropped file only if its declared media type is an image.

    Non-image drops are ignored and return None without raising.
    """
    declared = mime_type or declared_mime_type(str(source))
    if not is_image_mime_type(declared):
        logger.debug("Ignoring dropped file with non-image type=%s", declared)
        return None
    return load_picked_file(source, declared, config=config)


def create_preview(payload: ImagePayload, max_size: tuple[int, int] = PREVIEW_MAX_SIZE) -> Image.Image:
    """
    Decode the payload into a downscaled RGB preview image.

    Raises:
        ImageProcessingError: If the bytes cannot be decoded as an image
    """
    try:
        # HEIC/HEIF decoding is available when pillow-heif is installed
        try:
            from pillow_heif import register_heif_opener

            register_heif_opener()
        except ImportError:
            pass

        image = Image.open(io.BytesIO(payload.data))
        image.load()
    except Exception as e:
        raise ImageProcessingError(
            f"Failed to decode image: {str(e)}", image_path=payload.filename
        ) from e

    preview = image.copy()
    preview.thumbnail(max_size, Image.Resampling.LANCZOS)
    if preview.mode in ("RGBA", "LA"):
        background = Image.new("RGB", preview.size, (255, 255, 255))
        background.paste(preview, mask=preview.split()[-1])
        return background
    if preview.mode != "RGB":
        return preview.convert("RGB")
    return preview


def try_create_preview(payload: ImagePayload) -> Image.Image | None:
    """Like create_preview but returns None (and logs) when the bytes are not decodable."""
    try:
        return create_preview(payload)
    except ImageProcessingError as e:
        logger.warning("No preview for %s: %s", payload.filename or "image", e)
        return None
