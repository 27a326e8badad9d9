"""Middleware: request body size ceiling."""

from __future__ import annotations

from typing import TYPE_CHECKING

from transformx.api.errors import error_response
from transformx.imaging.errors import PayloadTooLarge

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

    from transformx.config import Settings


class UploadLimitMiddleware:
    """Reject request bodies larger than ``Settings.max_upload_size``.

    A declared Content-Length over the limit is rejected before the route runs.
    Bodies without a trustworthy length are counted while streaming and abort
    with PayloadTooLarge as soon as the limit is crossed, before any decoding.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        settings: Settings = scope["app"].state.settings
        limit = settings.max_upload_size

        declared = _content_length(scope)
        if declared is not None and declared > limit:
            response = error_response(PayloadTooLarge(f"request body of {declared} bytes exceeds limit of {limit}"))
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    raise PayloadTooLarge(f"request body exceeds limit of {limit} bytes")
            return message

        await self.app(scope, limited_receive, send)


def _content_length(scope: Scope) -> int | None:
    for name, value in scope.get("headers", []):
        if name == b"content-length":
            try:
                return int(value)
            except ValueError:
                return None
    return None
