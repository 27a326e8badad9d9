"""Serialization of decoded images into the requested output format."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from transformx.imaging.errors import EncodeError, UnsupportedOutputFormat
from transformx.imaging.models import EncodedImage

if TYPE_CHECKING:
    from PIL import Image

    from transformx.imaging.models import DecodedImage

logger = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 100


class OutputFormat(StrEnum):
    PNG = "png"
    JPEG = "jpeg"
    GIF = "gif"

    @classmethod
    def default(cls) -> OutputFormat:
        return cls.PNG

    @classmethod
    def parse(cls, name: str) -> OutputFormat:
        """Look up an output format by case-insensitive name.

        Raises:
            UnsupportedOutputFormat: If the name is outside png/jpeg/gif.
        """
        key = name.strip().lower()
        if key == "jpg":
            key = "jpeg"
        try:
            return cls(key)
        except ValueError:
            raise UnsupportedOutputFormat(f"can't convert to {name}") from None


@dataclass(frozen=True)
class OutputSpec:
    format: OutputFormat = OutputFormat.PNG
    jpeg_quality: int = DEFAULT_JPEG_QUALITY

    @property
    def mime_type(self) -> str:
        return f"image/{self.format.value}"


def _prepare(pixels: Image.Image, fmt: OutputFormat) -> Image.Image:
    # JPEG has no alpha channel.
    if fmt is OutputFormat.JPEG and pixels.mode not in ("L", "RGB"):
        return pixels.convert("L" if pixels.mode == "LA" else "RGB")
    return pixels


def encode(image: DecodedImage, spec: OutputSpec) -> EncodedImage:
    """Encode ``image`` into ``spec.format``.

    Raises:
        EncodeError: If Pillow fails to serialize the pixel buffer.
    """
    buffer = io.BytesIO()
    options: dict[str, object] = {}
    if spec.format is OutputFormat.JPEG:
        options["quality"] = spec.jpeg_quality

    try:
        _prepare(image.pixels, spec.format).save(buffer, format=spec.format.value.upper(), **options)
    except (OSError, ValueError, KeyError) as exc:
        raise EncodeError(f"image write error ({spec.format}, mode={image.pixels.mode}): {exc}") from exc

    data = buffer.getvalue()
    logger.debug("Encoded %dx%d image as %s (%d bytes)", image.width, image.height, spec.format, len(data))
    return EncodedImage(data=data, mime_type=spec.mime_type)
