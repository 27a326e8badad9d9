"""Shared fixtures: in-memory test images."""

from __future__ import annotations

import io

import numpy as np
import pytest
from PIL import Image

from transformx.imaging.decoder import decode
from transformx.imaging.models import DecodedImage, UploadedFile

MAX_PIXELS = 50_000_000


def encode_image(img: Image.Image, fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def solid_png(width: int, height: int, color: tuple[int, ...] = (255, 0, 0)) -> bytes:
    return encode_image(Image.new("RGB", (width, height), color))


def gradient_image(width: int, height: int) -> Image.Image:
    """RGB image whose pixels are all distinct enough to detect rotations."""
    img = Image.new("RGB", (width, height))
    img.putdata([((x * 37) % 256, (y * 53) % 256, (x + y) % 256) for y in range(height) for x in range(width)])
    return img


def pixel_array(image: DecodedImage) -> np.ndarray:
    return np.array(image.pixels, dtype=np.uint8)


def decoded(img: Image.Image, content_type: str = "image/png") -> DecodedImage:
    data = encode_image(img)
    return decode(UploadedFile(data=data, content_type=content_type), max_pixels=MAX_PIXELS)


@pytest.fixture()
def red_png() -> bytes:
    """A 10x10 opaque red PNG."""
    return solid_png(10, 10)


@pytest.fixture()
def gradient() -> DecodedImage:
    """A decoded 6x4 gradient image."""
    return decoded(gradient_image(6, 4))
