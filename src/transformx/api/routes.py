"""API route definitions."""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError, version
from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Query, Request, Response, status
from starlette.concurrency import run_in_threadpool

from transformx.api.schemas import (
    ErrorResponse,
    HealthResponse,
    ImageStatsResponse,
    OutputQuery,
    ResizeQuery,
)
from transformx.imaging import pipeline
from transformx.imaging.encoder import OutputSpec
from transformx.imaging.errors import InternalError
from transformx.imaging.ingestion import read_upload
from transformx.imaging.models import EncodedImage, ImageStats
from transformx.imaging.pipeline import RequestLogger
from transformx.imaging.transforms import Blur, Inspect, Resize, Rotate

if TYPE_CHECKING:
    from transformx.config import Settings
    from transformx.imaging.transforms import TransformRequest

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}

_IMAGE_RESPONSES: dict[int | str, dict[str, object]] = {
    status.HTTP_200_OK: {"content": {"image/png": {}, "image/jpeg": {}, "image/gif": {}}},
    **_ERROR_RESPONSES,
}


def _get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


async def _process(
    request: Request,
    transform: TransformRequest,
    output: OutputSpec,
    log: RequestLogger,
) -> ImageStats | EncodedImage:
    upload = await read_upload(request)
    log.info("Received %d bytes declared as %s", upload.size, upload.content_type)
    return await run_in_threadpool(
        pipeline.run,
        upload,
        transform,
        output,
        settings=_get_settings(request),
        log=log,
    )


def _image_response(result: ImageStats | EncodedImage) -> Response:
    if not isinstance(result, EncodedImage):
        raise InternalError(f"expected encoded image, pipeline returned {type(result).__name__}")
    return Response(content=result.data, media_type=result.mime_type)


@router.post(
    "/stats",
    response_model=ImageStatsResponse,
    responses=_ERROR_RESPONSES,
    summary="Describe an uploaded image",
)
async def stats(request: Request) -> ImageStatsResponse:
    """Return size, dimensions and declared format of the uploaded image."""
    log = RequestLogger(logger)
    log.info("Image stats")
    result = await _process(request, Inspect(), OutputSpec(), log)
    return ImageStatsResponse.model_validate(result)


@router.post(
    "/resize/{width}/{height}",
    response_class=Response,
    responses=_IMAGE_RESPONSES,
    summary="Resize an uploaded image",
)
async def resize(
    request: Request,
    width: int,
    height: int,
    params: Annotated[ResizeQuery, Query()],
) -> Response:
    """Resize to ``width x height``, optionally fitting within the box to keep the aspect ratio."""
    log = RequestLogger(logger)
    log.info("Image resize: w(%d), h(%d), params(%s)", width, height, params)
    settings = _get_settings(request)

    transform = Resize(
        width=width,
        height=height,
        filter=params.to_filter(),
        keep_aspect=params.keep_aspect,
        max_dimension=settings.max_output_dimension,
    )
    output = params.to_output_spec(settings.jpeg_quality)
    return _image_response(await _process(request, transform, output, log))


@router.post(
    "/blur/{strength}",
    response_class=Response,
    responses=_IMAGE_RESPONSES,
    summary="Gaussian-blur an uploaded image",
)
async def blur(
    request: Request,
    strength: float,
    params: Annotated[OutputQuery, Query()],
) -> Response:
    """Blur with a Gaussian kernel whose standard deviation is ``strength``."""
    log = RequestLogger(logger)
    log.info("Image blur: strength(%s)", strength)
    settings = _get_settings(request)

    transform = Blur(sigma=strength, max_sigma=settings.max_blur_sigma)
    output = params.to_output_spec(settings.jpeg_quality)
    return _image_response(await _process(request, transform, output, log))


@router.post(
    "/rotate/{degrees}",
    response_class=Response,
    responses=_IMAGE_RESPONSES,
    summary="Rotate an uploaded image clockwise",
)
async def rotate(
    request: Request,
    degrees: int,
    params: Annotated[OutputQuery, Query()],
) -> Response:
    """Rotate clockwise by ``degrees`` (modulo 360)."""
    log = RequestLogger(logger)
    log.info("Image rotate: degrees(%d)", degrees)
    settings = _get_settings(request)

    transform = Rotate(degrees=degrees)
    output = params.to_output_spec(settings.jpeg_quality)
    return _image_response(await _process(request, transform, output, log))


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health() -> HealthResponse:
    """Return service health status."""
    try:
        service_version = version("transformx")
    except PackageNotFoundError:
        service_version = "unknown"
    return HealthResponse(status="ok", version=service_version)
