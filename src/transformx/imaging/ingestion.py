"""Extraction of the uploaded ``file`` part from a multipart request body.

The body is fed straight into python-multipart so every part keeps its own
headers. A ``file`` part is accepted on its declared Content-Type whether or
not it carries a filename.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header
from starlette.requests import ClientDisconnect

from transformx.imaging.errors import MalformedBody, MissingFilePart, UnknownContentType
from transformx.imaging.models import UploadedFile

if TYPE_CHECKING:
    from collections.abc import Callable

    from starlette.requests import Request

logger = logging.getLogger(__name__)

FILE_FIELD = "file"


class _FilePartCollector:
    """Parser callbacks that keep the first part named ``file`` and its headers."""

    def __init__(self) -> None:
        self.headers: dict[str, str] | None = None
        self.data = bytearray()
        self.complete = False
        self._capturing = False
        self._part_headers: dict[str, str] = {}
        self._header_field = bytearray()
        self._header_value = bytearray()

    def callbacks(self) -> dict[str, Callable[..., None]]:
        return {
            "on_part_begin": self.on_part_begin,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_headers_finished": self.on_headers_finished,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
        }

    def on_part_begin(self) -> None:
        self._part_headers = {}

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def on_header_end(self) -> None:
        name = self._header_field.decode("latin-1").strip().lower()
        self._part_headers[name] = self._header_value.decode("latin-1").strip()
        self._header_field.clear()
        self._header_value.clear()

    def on_headers_finished(self) -> None:
        _, options = parse_options_header(self._part_headers.get("content-disposition", ""))
        name = options.get(b"name", b"").decode("latin-1")
        self._capturing = self.headers is None and name == FILE_FIELD
        if self._capturing:
            self.headers = self._part_headers

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        if self._capturing:
            self.data += data[start:end]

    def on_part_end(self) -> None:
        if self._capturing:
            self.complete = True
        self._capturing = False


async def read_upload(request: Request) -> UploadedFile:
    """Read the first ``file`` part and its declared content type.

    Raises:
        MalformedBody: The multipart stream cannot be parsed or read.
        MissingFilePart: No part named ``file`` exists.
        UnknownContentType: The ``file`` part declares no content type.
    """
    content_type, params = parse_options_header(request.headers.get("content-type"))
    if content_type != b"multipart/form-data":
        raise MissingFilePart("file not found in request")
    boundary = params.get(b"boundary")
    if not boundary:
        raise MalformedBody("read error: missing boundary in multipart body")

    collector = _FilePartCollector()
    parser = MultipartParser(boundary, collector.callbacks())
    try:
        async for chunk in request.stream():
            parser.write(chunk)
        parser.finalize()
    except MultipartParseError as exc:
        raise MalformedBody(f"read error: {exc}") from exc
    except ClientDisconnect as exc:
        raise MalformedBody("read error: client disconnected") from exc

    if collector.headers is None:
        raise MissingFilePart("file not found in request")
    if not collector.complete:
        raise MalformedBody("read error: file part ended before the closing boundary")

    declared = collector.headers.get("content-type")
    if not declared:
        raise UnknownContentType("file type could not be determined")

    logger.debug("Read upload part: %d bytes declared as %s", len(collector.data), declared)
    return UploadedFile(data=bytes(collector.data), content_type=declared)
