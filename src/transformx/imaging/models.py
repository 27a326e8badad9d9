"""Request-scoped values that flow through the image pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from PIL import Image


class ImageFormat(StrEnum):
    """Container formats the decoder can recognise from byte signatures."""

    PNG = "png"
    JPEG = "jpeg"
    GIF = "gif"
    BMP = "bmp"
    WEBP = "webp"
    TIFF = "tiff"


@dataclass(frozen=True)
class UploadedFile:
    """Raw bytes of the ``file`` part plus the client-declared content type.

    The declared type is unverified and is never used to pick a decoder.
    """

    data: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class DecodedImage:
    """A decoded pixel buffer with the metadata carried through from upload.

    Transforms never mutate ``pixels``; each one returns a new instance.
    """

    pixels: Image.Image
    content_type: str
    size: int
    detected_format: ImageFormat

    @property
    def width(self) -> int:
        return self.pixels.width

    @property
    def height(self) -> int:
        return self.pixels.height


@dataclass(frozen=True)
class ImageStats:
    """Metadata returned by the inspect operation."""

    size: int
    width: int
    height: int
    format: str


@dataclass(frozen=True)
class EncodedImage:
    """Encoded output bytes and the MIME type to serve them with."""

    data: bytes
    mime_type: str
