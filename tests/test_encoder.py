"""Tests for output format parsing and encoding."""

from __future__ import annotations

import io
from unittest.mock import patch

import pytest
from PIL import Image

from conftest import decoded, gradient_image
from transformx.imaging.encoder import OutputFormat, OutputSpec, encode
from transformx.imaging.errors import EncodeError, UnsupportedOutputFormat
from transformx.imaging.models import DecodedImage
from transformx.imaging.transforms import Rotate, rotate


class TestOutputFormat:
    def test_default_is_png(self) -> None:
        assert OutputFormat.default() is OutputFormat.PNG
        assert OutputSpec().format is OutputFormat.PNG
        assert OutputSpec().jpeg_quality == 100

    @pytest.mark.parametrize(("name", "expected"), [("PNG", "png"), ("Jpeg", "jpeg"), ("jpg", "jpeg"), ("gif", "gif")])
    def test_parse(self, name: str, expected: str) -> None:
        assert OutputFormat.parse(name).value == expected

    @pytest.mark.parametrize("name", ["bmp", "webp", ""])
    def test_unsupported(self, name: str) -> None:
        with pytest.raises(UnsupportedOutputFormat):
            OutputFormat.parse(name)

    def test_mime_type(self) -> None:
        assert OutputSpec(format=OutputFormat.GIF).mime_type == "image/gif"


class TestEncode:
    @pytest.mark.parametrize("fmt", list(OutputFormat))
    def test_round_trips_dimensions(self, gradient: DecodedImage, fmt: OutputFormat) -> None:
        encoded = encode(gradient, OutputSpec(format=fmt))
        assert encoded.mime_type == f"image/{fmt.value}"
        with Image.open(io.BytesIO(encoded.data)) as img:
            assert img.format == fmt.value.upper()
            assert img.size == (6, 4)

    def test_jpeg_drops_alpha(self) -> None:
        rgba = rotate(decoded(gradient_image(8, 8)), Rotate(degrees=30))
        assert rgba.pixels.mode == "RGBA"
        encoded = encode(rgba, OutputSpec(format=OutputFormat.JPEG))
        with Image.open(io.BytesIO(encoded.data)) as img:
            assert img.mode == "RGB"

    def test_save_failure_is_encode_error(self, gradient: DecodedImage) -> None:
        with (
            patch.object(Image.Image, "save", side_effect=OSError("disk on fire")),
            pytest.raises(EncodeError, match="disk on fire"),
        ):
            encode(gradient, OutputSpec())
