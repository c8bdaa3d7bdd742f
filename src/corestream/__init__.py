"""core.stream SDK - Python client for the core.stream stream-monitoring API."""

from .client import USER_AGENT, CoreStreamClient
from .config import DEFAULT_BASE_URL, ClientConfig
from .errors import (
    APIError,
    ConfigurationError,
    CoreStreamError,
    DecodingError,
    EncodingError,
    InvalidSignatureError,
    MissingSignatureError,
    NetworkError,
    RequestTimeoutError,
    SignatureError,
    WebhookPayloadError,
    is_forbidden,
    is_not_found,
    is_rate_limited,
    is_unauthorized,
)
from .signature import (
    SIGNATURE_HEADER,
    check_signature,
    compute_signature,
    extract_signature_header,
    verify_signature,
)
from .types import (
    Alert,
    BillingSummary,
    ListAlertsResponse,
    ListNotificationsResponse,
    ListStreamsResponse,
    MonthlyUsageResponse,
    Notification,
    Pagination,
    SearchResult,
    SearchStreamsResponse,
    Stream,
    Streamer,
    Subscription,
    TranscriptResponse,
    TranscriptSegment,
    Webhook,
    WebhookNotification,
)
from .webhook import (
    MAX_WEBHOOK_BODY_SIZE,
    WebhookReceiver,
    WebhookResponse,
    parse_webhook_notification,
)

__version__ = "1.0.0"

__all__ = [
    # Client
    "CoreStreamClient",
    "ClientConfig",
    "DEFAULT_BASE_URL",
    "USER_AGENT",
    # Types
    "Alert",
    "ListAlertsResponse",
    "Notification",
    "ListNotificationsResponse",
    "Webhook",
    "Stream",
    "ListStreamsResponse",
    "SearchResult",
    "SearchStreamsResponse",
    "TranscriptSegment",
    "TranscriptResponse",
    "Streamer",
    "BillingSummary",
    "Subscription",
    "MonthlyUsageResponse",
    "Pagination",
    "WebhookNotification",
    # Errors
    "CoreStreamError",
    "ConfigurationError",
    "NetworkError",
    "RequestTimeoutError",
    "EncodingError",
    "DecodingError",
    "APIError",
    "SignatureError",
    "InvalidSignatureError",
    "MissingSignatureError",
    "WebhookPayloadError",
    "is_not_found",
    "is_unauthorized",
    "is_forbidden",
    "is_rate_limited",
    # Signature
    "SIGNATURE_HEADER",
    "verify_signature",
    "check_signature",
    "compute_signature",
    "extract_signature_header",
    # Webhook receiver
    "MAX_WEBHOOK_BODY_SIZE",
    "WebhookReceiver",
    "WebhookResponse",
    "parse_webhook_notification",
]
