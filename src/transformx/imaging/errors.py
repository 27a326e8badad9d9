"""Error taxonomy for the image pipeline.

Every failure along ingestion, decoding, transformation and encoding is raised
as a subclass of :class:`PipelineError`. Transport-layer conditions (oversized
body, unknown route, wrong method) share the same hierarchy so the response
mapper handles all of them in one place.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    MISSING_FILE_PART = "missing_file_part"
    UNKNOWN_CONTENT_TYPE = "unknown_content_type"
    MALFORMED_BODY = "malformed_body"
    UNRECOGNIZED_FORMAT = "unrecognized_format"
    DECODE_ERROR = "decode_error"
    INVALID_PARAMETER = "invalid_parameter"
    UNSUPPORTED_OUTPUT_FORMAT = "unsupported_output_format"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    ROUTE_NOT_FOUND = "route_not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    ENCODE_ERROR = "encode_error"
    INTERNAL = "internal"


class PipelineError(Exception):
    """Base class for all categorised failures."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


# Ingestion


class MissingFilePart(PipelineError):
    kind = ErrorKind.MISSING_FILE_PART


class UnknownContentType(PipelineError):
    kind = ErrorKind.UNKNOWN_CONTENT_TYPE


class MalformedBody(PipelineError):
    kind = ErrorKind.MALFORMED_BODY


# Decoding


class UnrecognizedFormat(PipelineError):
    kind = ErrorKind.UNRECOGNIZED_FORMAT


class DecodeError(PipelineError):
    kind = ErrorKind.DECODE_ERROR


# Parameters


class InvalidParameter(PipelineError):
    kind = ErrorKind.INVALID_PARAMETER


class UnsupportedOutputFormat(PipelineError):
    kind = ErrorKind.UNSUPPORTED_OUTPUT_FORMAT


# Transport


class PayloadTooLarge(PipelineError):
    kind = ErrorKind.PAYLOAD_TOO_LARGE


class RouteNotFound(PipelineError):
    kind = ErrorKind.ROUTE_NOT_FOUND


class MethodNotAllowed(PipelineError):
    kind = ErrorKind.METHOD_NOT_ALLOWED


# Internal


class EncodeError(PipelineError):
    kind = ErrorKind.ENCODE_ERROR


class InternalError(PipelineError):
    kind = ErrorKind.INTERNAL
