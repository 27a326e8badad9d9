"""Pipeline runner: decode, transform, encode.

Architecture:
    route (async) -> read_upload -> run_in_threadpool(run) -> decode -> apply -> encode

Every stage either returns a value or raises a PipelineError; the first error
aborts the request and is forwarded unchanged to the response mapper.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any

from transformx.imaging import decoder, encoder, transforms
from transformx.imaging.errors import InternalError, PipelineError
from transformx.imaging.models import ImageStats

if TYPE_CHECKING:
    from collections.abc import MutableMapping

    from transformx.config import Settings
    from transformx.imaging.encoder import OutputSpec
    from transformx.imaging.models import EncodedImage, UploadedFile
    from transformx.imaging.transforms import TransformRequest

logger = logging.getLogger(__name__)


class RequestLogger(logging.LoggerAdapter):  # type: ignore[type-arg]
    """Logger handle scoped to a single request, prefixing its id."""

    def __init__(self, base: logging.Logger, request_id: str | None = None) -> None:
        super().__init__(base, {"request_id": request_id or uuid.uuid4().hex[:8]})

    @property
    def request_id(self) -> str:
        return str(self.extra["request_id"]) if self.extra else ""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        return f"[{self.request_id}] {msg}", kwargs


def run(
    upload: UploadedFile,
    request: TransformRequest,
    output: OutputSpec,
    *,
    settings: Settings,
    log: RequestLogger | None = None,
) -> ImageStats | EncodedImage:
    """Run one transform request against an uploaded file.

    Raises:
        PipelineError: Any categorised failure, unchanged. Unexpected exceptions
            are logged with their traceback and re-raised as InternalError.
    """
    log = log or RequestLogger(logger)
    try:
        image = decoder.decode(upload, max_pixels=settings.max_image_pixels)
        log.info(
            "Decoded %s upload %dx%d (%d bytes, declared %s)",
            image.detected_format,
            image.width,
            image.height,
            image.size,
            image.content_type,
        )

        result = transforms.apply(image, request)
        if isinstance(result, ImageStats):
            return result

        log.info("Applied %r -> %dx%d", request, result.width, result.height)
        return encoder.encode(result, output)
    except PipelineError:
        raise
    except Exception as exc:
        log.exception("Unexpected failure while processing %r", request)
        raise InternalError(f"unexpected {type(exc).__name__}: {exc}") from exc
