"""
Inbound webhook receiver.

core.stream pushes a :class:`~corestream.types.WebhookNotification` to your
endpoint whenever an alert matches, signed with HMAC-SHA256 over the raw
body. :class:`WebhookReceiver` authenticates, decodes and dispatches those
requests to a callback, and is itself a WSGI application:

    >>> from wsgiref.simple_server import make_server
    >>> from corestream import WebhookReceiver
    >>>
    >>> def on_match(notification):
    ...     print(notification.matched_phrase)
    >>>
    >>> receiver = WebhookReceiver("whsec_...", on_match)
    >>> make_server("", 8080, receiver).serve_forever()

For ASGI frameworks see :mod:`corestream.asgi`.
"""

import json
import logging
import os
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from .errors import ConfigurationError, WebhookPayloadError
from .signature import extract_signature_header, verify_signature
from .types import WebhookNotification

logger = logging.getLogger(__name__)

# Upper bound on how much of a webhook body is read (1 MB).
MAX_WEBHOOK_BODY_SIZE = 1 << 20

ENV_WEBHOOK_SECRET = "CORESTREAM_WEBHOOK_SECRET"

WebhookHandler = Callable[[WebhookNotification], Any]
BodyReader = Callable[[int], bytes]


def parse_webhook_notification(body: Union[str, bytes]) -> WebhookNotification:
    """
    Parse a webhook payload into a WebhookNotification.

    Useful for manual webhook handling outside of WebhookReceiver. Verify
    the signature over the same bytes first.

    Raises:
        WebhookPayloadError: If the body is not a valid notification
    """
    try:
        data = json.loads(body)
        return WebhookNotification.from_dict(data)
    except (
        ValueError, KeyError, TypeError, AttributeError, RecursionError
    ) as err:
        raise WebhookPayloadError(
            f"corestream: invalid webhook payload: {err!r}"
        ) from err


@dataclass(frozen=True)
class WebhookResponse:
    """HTTP response produced for one inbound webhook request."""

    status_code: int
    body: bytes
    content_type: str = "application/json"
    allow: Optional[str] = None

    @property
    def status_line(self) -> str:
        return f"{self.status_code} {HTTPStatus(self.status_code).phrase}"

    @property
    def headers(self) -> list[tuple[str, str]]:
        headers = [
            ("Content-Type", self.content_type),
            ("Content-Length", str(len(self.body))),
        ]
        if self.allow:
            headers.append(("Allow", self.allow))
        return headers


OK_RESPONSE = WebhookResponse(200, b'{"status":"ok"}')


def _error(status_code: int, message: str, **kwargs: Any) -> WebhookResponse:
    body = json.dumps({"error": message}).encode("utf-8")
    return WebhookResponse(status_code, body, **kwargs)


def _extract_headers(environ: dict[str, Any]) -> dict[str, str]:
    """Extract HTTP headers from WSGI environ."""
    headers: dict[str, str] = {}
    for key, value in environ.items():
        if key.startswith("HTTP_"):
            # HTTP_X_WEBHOOK_SIGNATURE -> x-webhook-signature
            headers[key[5:].replace("_", "-").lower()] = value
        elif key == "CONTENT_TYPE":
            headers["content-type"] = value
        elif key == "CONTENT_LENGTH":
            headers["content-length"] = value
    return headers


class WebhookReceiver:
    """
    Receives, verifies and dispatches core.stream webhook notifications.

    Each request goes through a fixed pipeline, stopping at the first
    failure:

    ==========================  ======
    Stage                       Status
    ==========================  ======
    method is not POST          405
    body cannot be read         400
    signature header missing    401
    signature invalid           401
    payload is not valid JSON   400
    handler raised              500
    handler returned            200
    ==========================  ======

    The receiver holds no per-request state, so one instance can serve
    concurrent requests. The handler runs inline and no timeout is applied
    to it; keep it fast or hand work off to a queue.

    Args:
        secret: Webhook signing secret used as the HMAC key
        handler: Called with each verified notification; raise to signal failure
        max_body_size: Maximum number of body bytes read (default: 1 MB)
        verify_signatures: Set to False to skip signature checks. Only for
            local development or behind a proxy that already authenticated
            the request; never expose an unverified receiver in production.

    Raises:
        ConfigurationError: If the secret is empty while verification is on,
            the handler is not callable or max_body_size is not positive
    """

    def __init__(
        self,
        secret: Union[str, bytes],
        handler: WebhookHandler,
        *,
        max_body_size: int = MAX_WEBHOOK_BODY_SIZE,
        verify_signatures: bool = True,
    ) -> None:
        if verify_signatures and not secret:
            raise ConfigurationError(
                "corestream: webhook secret is required when verification is enabled"
            )
        if not callable(handler):
            raise ConfigurationError("corestream: webhook handler must be callable")
        if max_body_size <= 0:
            raise ConfigurationError("corestream: max_body_size must be positive")

        self._secret = secret.encode("utf-8") if isinstance(secret, str) else secret
        self._handler = handler
        self.max_body_size = max_body_size
        self.verify_signatures = verify_signatures
        if not verify_signatures:
            logger.warning(
                "webhook signature verification is disabled; "
                "do not expose this receiver publicly"
            )

    @classmethod
    def from_env(
        cls,
        handler: WebhookHandler,
        environ: Optional[Mapping[str, str]] = None,
        **kwargs: Any,
    ) -> "WebhookReceiver":
        """Create a receiver using the secret in ``CORESTREAM_WEBHOOK_SECRET``."""
        env = os.environ if environ is None else environ
        return cls(env.get(ENV_WEBHOOK_SECRET, ""), handler, **kwargs)

    def handle(
        self,
        method: str,
        headers: Mapping[str, Any],
        read_body: BodyReader,
    ) -> WebhookResponse:
        """
        Run one inbound request through the pipeline.

        Args:
            method: HTTP request method
            headers: Request headers (looked up case-insensitively)
            read_body: Called once with the byte limit, returns at most that
                many bytes of the raw body. Not called for non-POST requests.

        Returns:
            The response to send back to core.stream
        """
        if method.upper() != "POST":
            return _error(405, "method not allowed", allow="POST")

        try:
            body = read_body(self.max_body_size)
        except Exception as err:
            logger.warning("webhook rejected: failed to read body: %s", err)
            return _error(400, "failed to read body")

        if self.verify_signatures:
            signature = extract_signature_header(headers)
            if not signature:
                logger.warning("webhook rejected: missing signature")
                return _error(401, "missing signature")
            # Malformed hex and a wrong digest share one outcome.
            if not verify_signature(body, signature, self._secret):
                logger.warning("webhook rejected: invalid signature")
                return _error(401, "invalid signature")

        try:
            notification = parse_webhook_notification(body)
        except WebhookPayloadError as err:
            logger.warning("webhook rejected: %s", err)
            return _error(400, "invalid payload")

        try:
            self._handler(notification)
        except Exception:
            logger.exception("webhook handler failed for notification %s", notification.id)
            return _error(500, "handler error")

        logger.debug("webhook notification %s handled", notification.id)
        return OK_RESPONSE

    def __call__(
        self,
        environ: dict[str, Any],
        start_response: Callable[..., Any],
    ) -> Iterable[bytes]:
        """WSGI entry point."""

        def read_body(limit: int) -> bytes:
            stream = environ["wsgi.input"]
            content_length = environ.get("CONTENT_LENGTH")
            if content_length:
                length = int(content_length)
                if length < 0:
                    raise ValueError(f"negative Content-Length {length}")
                return stream.read(min(length, limit))
            if environ.get("wsgi.input_terminated"):
                return stream.read(limit)
            return b""

        response = self.handle(
            environ.get("REQUEST_METHOD", "GET"),
            _extract_headers(environ),
            read_body,
        )
        start_response(response.status_line, response.headers)
        return [response.body]
