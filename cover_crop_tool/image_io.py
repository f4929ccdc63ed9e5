"""
Qt-free image I/O utilities.

Provides helpers to decode generated image bytes, read reference uploads
(including PSD) under the upload size limit, convert references to and from
data URIs, encode PNG, and generate unique file paths.
"""

import base64
import binascii
import io
import logging
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError
from psd_tools import PSDImage

from cover_crop_tool.config import MAX_UPLOAD_BYTES, PNG_COMPRESS_LEVEL, UPLOAD_MIME_TYPES
from cover_crop_tool.errors import InputValidationError, UploadTooLargeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceImage:
    """Raw reference image bytes plus their MIME type."""
    data: bytes
    mime_type: str

    def to_data_uri(self) -> str:
        payload = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{payload}"

    @classmethod
    def from_data_uri(cls, uri: str) -> "ReferenceImage":
        """Parse a ``data:<mime>;base64,<payload>`` URI, enforcing the size limit."""
        header, sep, payload = uri.partition(",")
        if not sep or not header.startswith("data:") or not header.endswith(";base64"):
            raise InputValidationError("Reference image must be a base64 data URI.")
        mime_type = header[len("data:"):-len(";base64")] or "application/octet-stream"
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InputValidationError(f"Reference image is not valid base64: {exc}") from exc
        if len(data) > MAX_UPLOAD_BYTES:
            raise UploadTooLargeError(len(data), MAX_UPLOAD_BYTES)
        return cls(data, mime_type)


def decode_image(data: bytes) -> Image.Image:
    """Decode raster bytes and force a full load.

    Drawing must never start on a lazily-opened image, so this is the single
    point where callers wait for decoding to finish.
    """
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ValueError(f"Could not decode image data: {exc}") from exc
    return img


def encode_png(img: Image.Image) -> bytes:
    """Encode an image as lossless PNG bytes."""
    buf = io.BytesIO()
    img.save(buf, "PNG", compress_level=PNG_COMPRESS_LEVEL)
    return buf.getvalue()


def open_image(path: Path) -> Image.Image:
    """Open an image file, using psd-tools for PSD and Pillow for the rest."""
    if path.suffix.lower() == ".psd":
        psd = PSDImage.open(str(path))
        return psd.composite()
    return Image.open(path)


def read_upload(path: Path) -> ReferenceImage:
    """Read a reference image from disk.

    The size check happens before the file is read. PSD files are flattened
    and re-encoded as PNG so the generation call only ever sees common
    formats.
    """
    ext = path.suffix.lower()
    mime_type = UPLOAD_MIME_TYPES.get(ext)
    if mime_type is None:
        raise InputValidationError(f"Unsupported image type: {ext or path.name}")

    try:
        size = path.stat().st_size
    except OSError as exc:
        raise InputValidationError(f"Could not read {path.name}: {exc}") from exc
    if size > MAX_UPLOAD_BYTES:
        raise UploadTooLargeError(size, MAX_UPLOAD_BYTES)

    if ext == ".psd":
        try:
            flat = open_image(path)
        except (OSError, ValueError) as exc:
            raise InputValidationError(f"Could not read PSD {path.name}: {exc}") from exc
        logger.debug("Flattened PSD reference %s (%dx%d)", path, flat.width, flat.height)
        return ReferenceImage(encode_png(flat), "image/png")

    try:
        data = path.read_bytes()
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise InputValidationError(f"{path.name} is not a readable image: {exc}") from exc
    return ReferenceImage(data, mime_type)


def unique_path(out_path: Path) -> Path:
    """Return a unique path by appending -01, -02, etc. if file already exists."""
    if not out_path.exists():
        return out_path
    stem = out_path.stem
    suffix = out_path.suffix
    parent = out_path.parent
    counter = 1
    while True:
        candidate = parent / f"{stem}-{counter:02d}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1
