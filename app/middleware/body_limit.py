"""
OP-Blog API: Body Size Limit Middleware
=======================================

Rejects non-multipart request bodies larger than `max_json_body_size`
(10 KB) with 413. Multipart uploads are bounded per file by the image
service instead.

The declared Content-Length is checked first. Bodies without one
(chunked transfer) are read and counted before the app runs, then
replayed to it, so the limit holds for the bytes actually received.

Plain ASGI middleware: the app receives the buffered body through a
replacement `receive`.
"""

import logging
from typing import List, Optional

from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.config import settings
from app.exceptions import PayloadTooLargeError
from app.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware:

    def __init__(self, app: ASGIApp, max_body_size: Optional[int] = None):
        self.app = app
        self.max_body_size = max_body_size or settings.max_json_body_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        if headers.get("content-type", "").startswith("multipart/form-data"):
            await self.app(scope, receive, send)
            return

        declared = headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self.max_body_size:
            await self._reject(scope, receive, send, int(declared))
            return

        buffered: List[Message] = []
        received = 0
        while True:
            message = await receive()
            buffered.append(message)
            if message["type"] != "http.request":
                break
            received += len(message.get("body", b""))
            if received > self.max_body_size:
                await self._reject(scope, receive, send, received)
                return
            if not message.get("more_body", False):
                break

        async def replay() -> Message:
            if buffered:
                return buffered.pop(0)
            return await receive()

        await self.app(scope, replay, send)

    async def _reject(self, scope: Scope, receive: Receive, send: Send, size: int) -> None:
        logger.warning("Rejected body of at least %d bytes on %s", size, scope.get("path", ""))
        exc = PayloadTooLargeError()
        response = JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.message, "request_id": request_id_var.get("")},
        )
        await response(scope, receive, send)
