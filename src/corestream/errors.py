"""Error types for the core.stream SDK."""

import json
from typing import Any


class CoreStreamError(Exception):
    """Base error class for the core.stream SDK."""

    pass


class ConfigurationError(CoreStreamError):
    """Invalid client or receiver configuration."""

    pass


class NetworkError(CoreStreamError):
    """The request could not be completed at the transport level."""

    pass


class RequestTimeoutError(NetworkError):
    """The request did not complete before its deadline."""

    pass


class EncodingError(CoreStreamError):
    """A request body could not be serialized to JSON."""

    pass


class DecodingError(CoreStreamError):
    """A response body could not be decoded into the expected type."""

    pass


class APIError(CoreStreamError):
    """Error returned by the core.stream API."""

    def __init__(self, status_code: int, code: str = "", message: str = "") -> None:
        super().__init__(message or f"HTTP {status_code}")
        self.status_code = status_code
        self.code = code
        self.message = message

    def __str__(self) -> str:
        if self.message:
            return (
                f"corestream: {self.message} "
                f"(status {self.status_code}, code {self.code})"
            )
        return f"corestream: request failed with status {self.status_code}"

    @classmethod
    def from_response(cls, status_code: int, body: bytes) -> "APIError":
        """
        Create from a failed API response.

        The body is expected to hold an ``{"error": {"code", "message"}}``
        envelope. Anything else leaves code and message empty.
        """
        if body:
            try:
                data = json.loads(body)
            except (ValueError, RecursionError):
                data = None
            envelope = data.get("error") if isinstance(data, dict) else None
            if isinstance(envelope, dict):
                code = envelope.get("code")
                message = envelope.get("message")
                return cls(
                    status_code,
                    code=code if isinstance(code, str) else "",
                    message=message if isinstance(message, str) else "",
                )
        return cls(status_code)

    def is_unauthorized(self) -> bool:
        """Check if this is an authorization error."""
        return self.status_code == 401

    def is_forbidden(self) -> bool:
        """Check if this is a forbidden error."""
        return self.status_code == 403

    def is_not_found(self) -> bool:
        """Check if this is a not found error."""
        return self.status_code == 404

    def is_rate_limited(self) -> bool:
        """Check if this is a rate limit error."""
        return self.status_code == 429

    def is_server_error(self) -> bool:
        """Check if this is a server error."""
        return self.status_code >= 500


def _has_status(err: Any, status_code: int) -> bool:
    return isinstance(err, APIError) and err.status_code == status_code


def is_not_found(err: Any) -> bool:
    """Return True if ``err`` is a 404 Not Found API error."""
    return _has_status(err, 404)


def is_unauthorized(err: Any) -> bool:
    """Return True if ``err`` is a 401 Unauthorized API error."""
    return _has_status(err, 401)


def is_forbidden(err: Any) -> bool:
    """Return True if ``err`` is a 403 Forbidden API error."""
    return _has_status(err, 403)


def is_rate_limited(err: Any) -> bool:
    """Return True if ``err`` is a 429 Too Many Requests API error."""
    return _has_status(err, 429)


class SignatureError(CoreStreamError):
    """Error during webhook signature verification."""

    pass


class InvalidSignatureError(SignatureError):
    """Signature is malformed or does not match."""

    def __init__(self) -> None:
        super().__init__("corestream: invalid webhook signature")


class MissingSignatureError(SignatureError):
    """Signature header is missing."""

    def __init__(self) -> None:
        super().__init__("corestream: missing webhook signature")


class WebhookPayloadError(DecodingError):
    """Webhook body is not a valid notification."""

    pass
