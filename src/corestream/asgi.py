"""
ASGI adapter for WebhookReceiver (Starlette/FastAPI).

Example (FastAPI):
    >>> from fastapi import FastAPI
    >>> from corestream import WebhookReceiver
    >>> from corestream.asgi import WebhookEndpoint
    >>>
    >>> receiver = WebhookReceiver.from_env(handle_notification)
    >>> app = FastAPI()
    >>> app.mount("/webhooks/corestream", WebhookEndpoint(receiver))
"""

from typing import Any, Optional

from starlette.concurrency import run_in_threadpool
from starlette.requests import ClientDisconnect, Request
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from .webhook import WebhookReceiver


async def _read_limited(request: Request, limit: int) -> bytes:
    chunks: list[bytes] = []
    size = 0
    async for chunk in request.stream():
        chunk = chunk[: limit - size]
        chunks.append(chunk)
        size += len(chunk)
        if size >= limit:
            break
    return b"".join(chunks)


class WebhookEndpoint:
    """
    ASGI application serving a :class:`WebhookReceiver`.

    The body is read asynchronously up to the receiver's size limit; the
    pipeline, including the user handler, then runs in the threadpool so a
    blocking handler does not stall the event loop.
    """

    def __init__(self, receiver: WebhookReceiver) -> None:
        self.receiver = receiver

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)

        body = b""
        read_error: Optional[Exception] = None
        if request.method.upper() == "POST":
            try:
                body = await _read_limited(request, self.receiver.max_body_size)
            except ClientDisconnect as err:
                read_error = err

        def read_body(limit: int) -> bytes:
            if read_error is not None:
                raise read_error
            return body[:limit]

        result = await run_in_threadpool(
            self.receiver.handle, request.method, request.headers, read_body
        )

        headers: dict[str, Any] = {}
        if result.allow:
            headers["Allow"] = result.allow
        response = Response(
            result.body,
            status_code=result.status_code,
            media_type=result.content_type,
            headers=headers,
        )
        await response(scope, receive, send)
