from __future__ import annotations

import base64
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
MAX_COMPRESSED_BYTES = 500 * 1024
FALLBACK_QUALITY = 50


class ImageValidationError(ValueError):
    pass


def load_image(data: bytes) -> Image.Image:
    if len(data) > MAX_UPLOAD_BYTES:
        raise ImageValidationError("Image size should be less than 10MB")
    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageValidationError("Please upload an image file") from exc
    return image


def _encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


def compress_image(data: bytes, max_dimension: int = 400, quality: int = 70) -> bytes:
    image = ImageOps.exif_transpose(load_image(data))
    image.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
    if image.mode in ("RGBA", "LA", "P"):
        image = image.convert("RGBA")
        background = Image.new("RGB", image.size, (255, 255, 255))
        background.paste(image, mask=image.getchannel("A"))
        image = background
    elif image.mode != "RGB":
        image = image.convert("RGB")

    encoded = _encode_jpeg(image, quality)
    if len(encoded) > MAX_COMPRESSED_BYTES:
        encoded = _encode_jpeg(image, FALLBACK_QUALITY)
    return encoded


def to_data_url(data: bytes, content_type: str = "image/jpeg") -> str:
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_url(url: str) -> bytes:
    _, _, payload = url.partition(",")
    return base64.b64decode(payload)


class LocalImageStorage:
    """Keeps uploads inline on the row as data URLs."""

    def upload(self, bucket: str, path: str, data: bytes, content_type: str = "image/jpeg") -> str:
        return to_data_url(data, content_type)
