"""
Image preparation for the descriptor service.

Turns a captured or picked photo into the inline payload the service
expects: base64 text plus a MIME type.
"""

import base64
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from PIL import Image, ImageOps, UnidentifiedImageError
from PIL.Image import DecompressionBombError

from .config import DEFAULT_MIME_TYPE
from .exceptions import ObjectifyError

logger = logging.getLogger(__name__)

# The service doesn't need full camera resolution to describe a scene
MAX_DIMENSION = 1600

_FORMAT_TO_MIME = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "HEIF": "image/heif",
    "HEIC": "image/heic",
}


class ImageLoadError(ObjectifyError):
    """The bytes aren't a readable image."""


@dataclass
class EncodedImage:
    """Inline image payload."""
    data: str  # base64
    mime_type: str = DEFAULT_MIME_TYPE
    size: Tuple[int, int] = (0, 0)


def _reencode(img: Image.Image) -> bytes:
    img = ImageOps.exif_transpose(img)
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    img.thumbnail((MAX_DIMENSION, MAX_DIMENSION))
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=90)
    return buf.getvalue()


def encode_image(raw: bytes, max_dimension: Optional[int] = MAX_DIMENSION) -> EncodedImage:
    """
    Encode image bytes as a base64 payload.

    Images in a format the service accepts and within ``max_dimension`` are
    sent untouched. Anything else is re-encoded as a downscaled JPEG.

    Args:
        raw: Image file contents
        max_dimension: Longest side allowed before downscaling (None: never)

    Returns:
        EncodedImage ready to inline into a request

    Raises:
        ImageLoadError: If the bytes can't be decoded as an image
    """
    try:
        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            fmt = img.format
            size = img.size
            mime_type = _FORMAT_TO_MIME.get(fmt or "")
            too_big = max_dimension is not None and max(size) > max_dimension

            if mime_type is None or too_big:
                logger.debug("Re-encoding %s image of size %s as JPEG", fmt, size)
                payload = _reencode(img)
                mime_type = "image/jpeg"
                with Image.open(io.BytesIO(payload)) as small:
                    size = small.size
            else:
                payload = raw
    except (UnidentifiedImageError, DecompressionBombError, OSError) as e:
        raise ImageLoadError(f"Could not read image: {e}") from e

    return EncodedImage(
        data=base64.b64encode(payload).decode("ascii"),
        mime_type=mime_type,
        size=size,
    )


def encode_image_file(path: Union[str, Path], max_dimension: Optional[int] = MAX_DIMENSION) -> EncodedImage:
    """Read an image from disk and encode it."""
    try:
        raw = Path(path).read_bytes()
    except OSError as e:
        raise ImageLoadError(f"Could not read {path}: {e}") from e
    return encode_image(raw, max_dimension=max_dimension)
