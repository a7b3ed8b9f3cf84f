"""
Gzip Request Middleware

Starlette's GZipMiddleware only compresses responses. This middleware
handles the other direction: request bodies sent with
Content-Encoding: gzip are decompressed before they reach the endpoints.

Implemented as a plain ASGI middleware so the decompressed body can be
replayed to the app as a single http.request message.
"""

import gzip
import logging
import zlib

from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class GzipRequestMiddleware:
    """Decompress gzip-encoded request bodies; answer 400 when the body is corrupt."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        if "gzip" not in headers.get("content-encoding", "").lower():
            await self.app(scope, receive, send)
            return

        body = await self._read_body(receive)
        try:
            body = gzip.decompress(body)
        except (OSError, EOFError, zlib.error) as e:
            logger.warning(f"Rejected corrupt gzip request body: {e}")
            response = PlainTextResponse("Invalid gzip body", status_code=400)
            await response(scope, receive, send)
            return

        scope = dict(scope)
        mutable_headers = MutableHeaders(scope=scope)
        del mutable_headers["content-encoding"]
        mutable_headers["content-length"] = str(len(body))

        sent = False

        async def replay() -> Message:
            nonlocal sent
            if not sent:
                sent = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)

    @staticmethod
    async def _read_body(receive: Receive) -> bytes:
        chunks = []
        more_body = True
        while more_body:
            message = await receive()
            chunks.append(message.get("body", b""))
            more_body = message.get("more_body", False)
        return b"".join(chunks)
