"""Webhook signature verification."""

import binascii
import hashlib
import hmac
from typing import Any, Mapping, Union

from .errors import InvalidSignatureError, MissingSignatureError

SIGNATURE_HEADER = "X-Webhook-Signature"


def _as_bytes(value: Union[str, bytes]) -> bytes:
    return value if isinstance(value, bytes) else value.encode("utf-8")


def compute_signature(body: Union[str, bytes], secret: Union[str, bytes]) -> str:
    """
    Compute the HMAC-SHA256 signature core.stream sends with a webhook.

    Args:
        body: The raw request body
        secret: The webhook signing secret

    Returns:
        The signature as lowercase hex
    """
    mac = hmac.new(_as_bytes(secret), _as_bytes(body), hashlib.sha256)
    return mac.hexdigest()


def verify_signature(
    body: Union[str, bytes],
    signature: str,
    secret: Union[str, bytes],
) -> bool:
    """
    Verify a webhook signature from core.stream.

    The signature is compared against the HMAC of the exact raw body, so
    pass the bytes as received rather than re-serialized JSON. A signature
    that is not valid hex never matches.

    Args:
        body: The raw request body as a string or bytes
        signature: The X-Webhook-Signature header value
        secret: Your webhook signing secret

    Returns:
        True if the signature matches the body
    """
    try:
        expected = binascii.unhexlify(signature)
    except (ValueError, TypeError):
        return False

    mac = hmac.new(_as_bytes(secret), _as_bytes(body), hashlib.sha256)
    return hmac.compare_digest(expected, mac.digest())


def check_signature(
    body: Union[str, bytes],
    signature: str,
    secret: Union[str, bytes],
) -> None:
    """
    Verify a webhook signature, raising on failure.

    Raises:
        MissingSignatureError: If signature is empty
        InvalidSignatureError: If signature is malformed or doesn't match
    """
    if not signature:
        raise MissingSignatureError()
    if not verify_signature(body, signature, secret):
        raise InvalidSignatureError()


def extract_signature_header(headers: Mapping[str, Any]) -> str:
    """
    Extract the webhook signature from a request headers object.

    Works with various header dict formats (case-insensitive).

    Args:
        headers: Headers mapping from the request

    Returns:
        The signature, or an empty string if absent
    """

    def first(value: Any) -> str:
        if isinstance(value, (list, tuple)):
            value = value[0] if value else ""
        return str(value) if value else ""

    if SIGNATURE_HEADER in headers:
        return first(headers[SIGNATURE_HEADER])
    lower_name = SIGNATURE_HEADER.lower()
    for key, value in headers.items():
        if key.lower() == lower_name:
            return first(value)
    return ""
