"""
Image ingestion: turn a user-supplied file into a validated, transportable
image (raw bytes + MIME type, with a data URI for display).
"""

import base64
import binascii
import logging
import mimetypes
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from errors import InvalidInputError

logger = logging.getLogger(__name__)

INVALID_IMAGE_MESSAGE = "Please upload a valid image file."

_DATA_URI_RE = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?:;[\w-]+=[\w.-]+)*;base64,(?P<data>.*)$",
    re.DOTALL,
)


@dataclass(frozen=True)
class ImageUpload:
    data: bytes
    mime_type: str
    filename: Optional[str] = None

    @property
    def base64_data(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64_data}"

    def __repr__(self) -> str:
        return (
            f"ImageUpload(filename={self.filename!r}, "
            f"mime_type={self.mime_type!r}, size={len(self.data)})"
        )


def is_image_mime(mime_type: Optional[str]) -> bool:
    return bool(mime_type) and mime_type.lower().startswith("image/")


def from_bytes(
    data: bytes,
    mime_type: Optional[str],
    filename: Optional[str] = None,
) -> ImageUpload:
    if not is_image_mime(mime_type):
        logger.warning(
            "[INVALID INPUT] not an image file=%s mime=%s", filename, mime_type
        )
        raise InvalidInputError(INVALID_IMAGE_MESSAGE)

    if not data:
        logger.warning("[INVALID INPUT] empty image file=%s", filename)
        raise InvalidInputError(INVALID_IMAGE_MESSAGE)

    return ImageUpload(data=bytes(data), mime_type=mime_type.lower(), filename=filename)


def load_image(path: Union[str, Path]) -> ImageUpload:
    path = Path(path)
    mime_type, _ = mimetypes.guess_type(path.name)

    # Check the type before touching the file, like an <input accept="image/*">.
    if not is_image_mime(mime_type):
        logger.warning("[INVALID INPUT] not an image file=%s mime=%s", path, mime_type)
        raise InvalidInputError(INVALID_IMAGE_MESSAGE)

    try:
        data = path.read_bytes()
    except OSError as e:
        logger.warning("[INVALID INPUT] unreadable file=%s error=%s", path, e)
        raise InvalidInputError(f"Could not read image file: {path.name}") from e

    return from_bytes(data, mime_type, filename=path.name)


def from_data_uri(uri: str, filename: Optional[str] = None) -> ImageUpload:
    match = _DATA_URI_RE.match(uri.strip()) if isinstance(uri, str) else None
    if not match:
        raise InvalidInputError(INVALID_IMAGE_MESSAGE)

    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInputError("Invalid base64 encoding") from e

    return from_bytes(data, match.group("mime"), filename=filename)
