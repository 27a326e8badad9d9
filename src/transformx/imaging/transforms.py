"""Transform engine: inspect, resize, blur and rotate.

Each transform is a pure function from a DecodedImage (plus validated
parameters) to a new DecodedImage. Parameters are validated when the request
object is constructed, so invalid values never reach pixel code.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from PIL import Image, ImageFilter

from transformx.imaging.errors import InvalidParameter
from transformx.imaging.models import ImageStats

if TYPE_CHECKING:
    from transformx.imaging.models import DecodedImage


class FilterKind(StrEnum):
    """Resampling kernels accepted by the resize operation."""

    NEAREST = "nearest"
    TRIANGLE = "triangle"
    CATMULL_ROM = "catmullrom"
    GAUSSIAN = "gaussian"
    LANCZOS3 = "lanczos3"

    @classmethod
    def default(cls) -> FilterKind:
        return cls.NEAREST

    @classmethod
    def parse(cls, name: str) -> FilterKind:
        """Look up a filter by case-insensitive name.

        Raises:
            InvalidParameter: If the name is not a known filter.
        """
        key = name.strip().lower()
        try:
            return _FILTER_ALIASES.get(key) or cls(key)
        except ValueError:
            known = ", ".join(f.value for f in cls)
            raise InvalidParameter(f"unknown filter type {name!r}; expected one of: {known}") from None


_FILTER_ALIASES: dict[str, FilterKind] = {
    "bilinear": FilterKind.TRIANGLE,
    "bicubic": FilterKind.CATMULL_ROM,
    "lanczos": FilterKind.LANCZOS3,
}

_RESAMPLING: dict[FilterKind, Image.Resampling] = {
    FilterKind.NEAREST: Image.Resampling.NEAREST,
    FilterKind.TRIANGLE: Image.Resampling.BILINEAR,
    FilterKind.CATMULL_ROM: Image.Resampling.BICUBIC,
    FilterKind.GAUSSIAN: Image.Resampling.BILINEAR,
    FilterKind.LANCZOS3: Image.Resampling.LANCZOS,
}


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Inspect:
    """Report metadata without touching pixels."""


@dataclass(frozen=True)
class Resize:
    width: int
    height: int
    filter: FilterKind = FilterKind.NEAREST
    keep_aspect: bool = True
    max_dimension: int | None = None

    def __post_init__(self) -> None:
        for name, value in (("width", self.width), ("height", self.height)):
            if value < 1:
                raise InvalidParameter(f"{name} must be a positive integer; supplied {value}")
            if self.max_dimension is not None and value > self.max_dimension:
                raise InvalidParameter(f"{name} must not exceed {self.max_dimension}; supplied {value}")


@dataclass(frozen=True)
class Blur:
    sigma: float
    max_sigma: float | None = None

    def __post_init__(self) -> None:
        if not math.isfinite(self.sigma):
            raise InvalidParameter(f"strength param should be a finite number; supplied {self.sigma}")
        if self.sigma < 0:
            raise InvalidParameter(f"strength param should be positive; supplied {self.sigma}")
        if self.max_sigma is not None and self.sigma > self.max_sigma:
            raise InvalidParameter(f"strength param must not exceed {self.max_sigma}; supplied {self.sigma}")


@dataclass(frozen=True)
class Rotate:
    degrees: int

    def __post_init__(self) -> None:
        if self.degrees < 0:
            raise InvalidParameter(f"degrees should be a non-negative integer; supplied {self.degrees}")

    @property
    def normalized(self) -> int:
        return self.degrees % 360


TransformRequest = Inspect | Resize | Blur | Rotate


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def inspect(image: DecodedImage) -> ImageStats:
    """Return dimensions, original byte length and the declared format label."""
    return ImageStats(
        size=image.size,
        width=image.width,
        height=image.height,
        format=image.content_type,
    )


def fit_within(width: int, height: int, box_width: int, box_height: int) -> tuple[int, int]:
    """Largest size with the aspect ratio of ``width x height`` that fits the box."""
    ratio = min(box_width / width, box_height / height)
    return max(1, round(width * ratio)), max(1, round(height * ratio))


def resize(image: DecodedImage, request: Resize) -> DecodedImage:
    if request.keep_aspect:
        target = fit_within(image.width, image.height, request.width, request.height)
    else:
        target = (request.width, request.height)

    source = image.pixels
    if request.filter is FilterKind.GAUSSIAN:
        # Gaussian kernel: low-pass proportional to the downscale factor, then interpolate.
        scale = max(image.width / target[0], image.height / target[1], 1.0)
        source = source.filter(ImageFilter.GaussianBlur(radius=0.5 * scale))

    resized = source.resize(target, resample=_RESAMPLING[request.filter])
    return dataclasses.replace(image, pixels=resized)


def blur(image: DecodedImage, request: Blur) -> DecodedImage:
    if request.sigma == 0:
        return dataclasses.replace(image, pixels=image.pixels.copy())
    blurred = image.pixels.filter(ImageFilter.GaussianBlur(radius=request.sigma))
    return dataclasses.replace(image, pixels=blurred)


# Clockwise quarter turns expressed as Pillow transposes (Pillow rotates counter-clockwise).
_QUARTER_TURNS: dict[int, Image.Transpose] = {
    90: Image.Transpose.ROTATE_270,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_90,
}

ROTATE_FILL = (0, 0, 0, 0)


def rotate(image: DecodedImage, request: Rotate) -> DecodedImage:
    """Rotate clockwise by ``request.degrees`` modulo 360.

    Quarter turns are lossless. Any other angle expands the canvas to hold the
    whole rotated image and fills the uncovered corners with transparent black.
    """
    degrees = request.normalized
    if degrees == 0:
        rotated = image.pixels.copy()
    elif degrees in _QUARTER_TURNS:
        rotated = image.pixels.transpose(_QUARTER_TURNS[degrees])
    else:
        rotated = image.pixels.convert("RGBA").rotate(
            -degrees,
            resample=Image.Resampling.BICUBIC,
            expand=True,
            fillcolor=ROTATE_FILL,
        )
    return dataclasses.replace(image, pixels=rotated)


def apply(image: DecodedImage, request: TransformRequest) -> DecodedImage | ImageStats:
    """Dispatch a transform request to its operation."""
    if isinstance(request, Inspect):
        return inspect(image)
    if isinstance(request, Resize):
        return resize(image, request)
    if isinstance(request, Blur):
        return blur(image, request)
    if isinstance(request, Rotate):
        return rotate(image, request)
    raise TypeError(f"unsupported transform request: {request!r}")
