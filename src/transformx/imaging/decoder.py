"""Format sniffing and decoding of uploaded image bytes.

The container format is detected from magic numbers, never from the
client-declared content type. Pillow is then restricted to that single format
so a mislabelled or polyglot upload cannot be routed to a different parser.
"""

from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image, ImageFile, UnidentifiedImageError

from transformx.imaging.errors import DecodeError, UnrecognizedFormat
from transformx.imaging.models import DecodedImage, ImageFormat

if TYPE_CHECKING:
    from transformx.imaging.models import UploadedFile

logger = logging.getLogger(__name__)

# Reject truncated payloads instead of padding them with black rows.
ImageFile.LOAD_TRUNCATED_IMAGES = False

_SIGNATURES: tuple[tuple[bytes, ImageFormat], ...] = (
    (b"\x89PNG\r\n\x1a\n", ImageFormat.PNG),
    (b"\xff\xd8\xff", ImageFormat.JPEG),
    (b"GIF87a", ImageFormat.GIF),
    (b"GIF89a", ImageFormat.GIF),
    (b"BM", ImageFormat.BMP),
    (b"II*\x00", ImageFormat.TIFF),
    (b"MM\x00*", ImageFormat.TIFF),
)

# Pillow plugin identifiers for each sniffed format.
_PIL_FORMATS: dict[ImageFormat, str] = {
    ImageFormat.PNG: "PNG",
    ImageFormat.JPEG: "JPEG",
    ImageFormat.GIF: "GIF",
    ImageFormat.BMP: "BMP",
    ImageFormat.WEBP: "WEBP",
    ImageFormat.TIFF: "TIFF",
}

_NATIVE_MODES = frozenset({"L", "RGB", "RGBA"})


def sniff_format(data: bytes) -> ImageFormat | None:
    """Detect the container format from the leading bytes, or return None."""
    for magic, fmt in _SIGNATURES:
        if data.startswith(magic):
            return fmt
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return ImageFormat.WEBP
    return None


def _is_high_depth(mode: str) -> bool:
    return mode in ("I", "F") or mode.startswith("I;16")


def _to_8bit(img: Image.Image) -> Image.Image:
    """Rescale 16/32-bit grayscale samples onto 0..255.

    Samples are read as 16-bit intensities (0..65535); values outside that
    range are clipped.
    """
    samples = np.clip(np.asarray(img, dtype=np.float64), 0, 65535) / 257.0
    return Image.fromarray(np.rint(samples).astype(np.uint8))


def _normalize_mode(img: Image.Image) -> Image.Image:
    if img.mode in _NATIVE_MODES:
        return img
    if _is_high_depth(img.mode):
        return _to_8bit(img)
    has_alpha = "A" in img.getbands() or "transparency" in img.info
    return img.convert("RGBA" if has_alpha else "RGB")


def decode(upload: UploadedFile, *, max_pixels: int) -> DecodedImage:
    """Decode an upload into a pixel buffer.

    Args:
        upload: Raw bytes and declared content type from ingestion.
        max_pixels: Ceiling on width * height, checked before pixel data is
            decompressed.

    Returns:
        DecodedImage in L, RGB or RGBA mode carrying the declared label and the
        original byte length.

    Raises:
        UnrecognizedFormat: No known signature matches.
        DecodeError: The payload is truncated, corrupt, or too large.
    """
    detected = sniff_format(upload.data)
    if detected is None:
        raise UnrecognizedFormat("could not recognize image format from file contents")

    try:
        with Image.open(io.BytesIO(upload.data), formats=[_PIL_FORMATS[detected]]) as img:
            width, height = img.size
            if width * height > max_pixels:
                raise DecodeError(
                    f"image has {width * height} pixels, exceeds limit of {max_pixels}"
                )
            # First frame only; load() forces full decompression of it.
            img.load()
            pixels = _normalize_mode(img)
            if pixels is img:
                pixels = img.copy()
    except DecodeError:
        raise
    except Image.DecompressionBombError as exc:
        raise DecodeError(f"image too large to decode: {exc}") from exc
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise DecodeError(f"error reading {detected} image: {exc}") from exc

    if pixels.width <= 0 or pixels.height <= 0:
        raise DecodeError(f"{detected} image has empty dimensions")

    logger.debug(
        "Decoded %s image %dx%d mode=%s (declared %s)",
        detected,
        pixels.width,
        pixels.height,
        pixels.mode,
        upload.content_type,
    )
    return DecodedImage(
        pixels=pixels,
        content_type=upload.content_type,
        size=upload.size,
        detected_format=detected,
    )
