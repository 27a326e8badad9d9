"""Tests for format sniffing and decoding."""

from __future__ import annotations

import io

import numpy as np
import pytest
from PIL import Image

from conftest import MAX_PIXELS, encode_image, gradient_image, pixel_array, solid_png
from transformx.imaging.decoder import decode, sniff_format
from transformx.imaging.errors import DecodeError, UnrecognizedFormat
from transformx.imaging.models import ImageFormat, UploadedFile


def _upload(data: bytes, content_type: str = "image/png") -> UploadedFile:
    return UploadedFile(data=data, content_type=content_type)


class TestSniffFormat:
    @pytest.mark.parametrize(
        ("fmt", "expected"),
        [
            ("PNG", ImageFormat.PNG),
            ("JPEG", ImageFormat.JPEG),
            ("GIF", ImageFormat.GIF),
            ("BMP", ImageFormat.BMP),
            ("TIFF", ImageFormat.TIFF),
            ("WEBP", ImageFormat.WEBP),
        ],
    )
    def test_detects_encoded_formats(self, fmt: str, expected: ImageFormat) -> None:
        data = encode_image(Image.new("RGB", (4, 4), (0, 128, 255)), fmt)
        assert sniff_format(data) is expected

    def test_unknown_bytes(self) -> None:
        assert sniff_format(b"hello, this is plain text") is None

    def test_empty_bytes(self) -> None:
        assert sniff_format(b"") is None


class TestDecode:
    def test_dimensions_and_size(self) -> None:
        data = solid_png(7, 3)
        image = decode(_upload(data), max_pixels=MAX_PIXELS)
        assert (image.width, image.height) == (7, 3)
        assert image.size == len(data)
        assert image.detected_format is ImageFormat.PNG

    def test_declared_label_is_kept_even_when_wrong(self) -> None:
        data = solid_png(2, 2)
        image = decode(_upload(data, "image/jpeg"), max_pixels=MAX_PIXELS)
        assert image.content_type == "image/jpeg"
        assert image.detected_format is ImageFormat.PNG

    def test_text_is_unrecognized(self) -> None:
        with pytest.raises(UnrecognizedFormat, match="recognize"):
            decode(_upload(b"just some text\n", "text/plain"), max_pixels=MAX_PIXELS)

    def test_truncated_png_is_decode_error(self) -> None:
        data = encode_image(gradient_image(32, 32))
        with pytest.raises(DecodeError):
            decode(_upload(data[: len(data) // 2]), max_pixels=MAX_PIXELS)

    def test_signature_only_is_decode_error(self) -> None:
        with pytest.raises(DecodeError):
            decode(_upload(b"\x89PNG\r\n\x1a\n" + b"\x00" * 16), max_pixels=MAX_PIXELS)

    def test_pixel_ceiling(self) -> None:
        with pytest.raises(DecodeError, match="exceeds limit"):
            decode(_upload(solid_png(20, 20)), max_pixels=100)

    def test_deterministic(self) -> None:
        data = encode_image(gradient_image(5, 5))
        first = decode(_upload(data), max_pixels=MAX_PIXELS)
        second = decode(_upload(data), max_pixels=MAX_PIXELS)
        np.testing.assert_array_equal(pixel_array(first), pixel_array(second))

    def test_palette_image_is_normalized(self) -> None:
        data = encode_image(Image.new("RGB", (4, 4), (10, 20, 30)).convert("P"), "GIF")
        image = decode(_upload(data, "image/gif"), max_pixels=MAX_PIXELS)
        assert image.pixels.mode in ("RGB", "RGBA")

    def test_grayscale_kept(self) -> None:
        data = encode_image(Image.new("L", (3, 3), 200))
        image = decode(_upload(data), max_pixels=MAX_PIXELS)
        assert image.pixels.mode == "L"
        assert pixel_array(image).shape == (3, 3)

    def test_multi_frame_gif_decodes_first_frame(self) -> None:
        first = Image.new("RGB", (4, 4), (255, 0, 0))
        second = Image.new("RGB", (4, 4), (0, 0, 255))
        buffer = io.BytesIO()
        first.save(buffer, format="GIF", save_all=True, append_images=[second])
        image = decode(_upload(buffer.getvalue(), "image/gif"), max_pixels=MAX_PIXELS)
        assert image.pixels.convert("RGB").getpixel((0, 0)) == (255, 0, 0)


class TestHighBitDepth:
    def test_dark_16bit_png_stays_dark(self) -> None:
        data = encode_image(Image.new("I;16", (4, 4), 1000))
        image = decode(_upload(data), max_pixels=MAX_PIXELS)
        assert image.pixels.mode == "L"
        assert np.all(pixel_array(image) == 4)

    def test_16bit_range_maps_onto_8bit(self) -> None:
        img = Image.new("I;16", (3, 1), 0)
        img.putpixel((1, 0), 32768)
        img.putpixel((2, 0), 65535)
        image = decode(_upload(encode_image(img)), max_pixels=MAX_PIXELS)
        assert pixel_array(image).tolist() == [[0, 128, 255]]
