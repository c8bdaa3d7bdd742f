"""Type definitions for the core.stream SDK."""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

_FRACTION = re.compile(r"\.(\d+)")


def _parse_datetime(value: str) -> datetime:
    # The API emits RFC 3339 with anywhere from 0 to 9 fractional digits.
    value = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value)
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp {value!r} has no UTC offset")
    return parsed


def _parse_optional_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return _parse_datetime(value)


def _format_datetime(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


@dataclass
class Pagination:
    """Pagination information for list responses."""

    page: int
    page_size: int
    total_items: int
    total_pages: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Pagination":
        """Create from API response dict."""
        return cls(
            page=data.get("page", 0),
            page_size=data.get("page_size", 0),
            total_items=data.get("total_items", 0),
            total_pages=data.get("total_pages", 0),
        )


@dataclass
class Alert:
    """An alert watching streams for a set of phrases."""

    id: str
    name: str
    phrases: list[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Alert":
        """Create from API response dict."""
        return cls(
            id=data["id"],
            name=data["name"],
            phrases=list(data.get("phrases") or []),
            is_active=data.get("is_active", False),
            created_at=_parse_datetime(data["created_at"]),
            updated_at=_parse_datetime(data["updated_at"]),
        )


@dataclass
class ListAlertsResponse:
    """Paginated list of alerts."""

    alerts: list[Alert]
    pagination: Pagination

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ListAlertsResponse":
        """Create from API response dict."""
        return cls(
            alerts=[Alert.from_dict(a) for a in data.get("alerts") or []],
            pagination=Pagination.from_dict(data.get("pagination") or {}),
        )


@dataclass
class Notification:
    """A notification previously generated by an alert."""

    id: str
    alert_id: str
    alert_name: str
    matched_phrase: str
    context: str
    stream_source: str
    stream_title: str
    timestamp: datetime
    transcript_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Notification":
        """Create from API response dict."""
        return cls(
            id=data["id"],
            alert_id=data["alert_id"],
            alert_name=data.get("alert_name", ""),
            matched_phrase=data["matched_phrase"],
            context=data.get("context", ""),
            stream_source=data.get("stream_source", ""),
            stream_title=data.get("stream_title", ""),
            timestamp=_parse_datetime(data["timestamp"]),
            transcript_url=data.get("transcript_url") or None,
        )


@dataclass
class ListNotificationsResponse:
    """Paginated list of alert notifications."""

    notifications: list[Notification]
    pagination: Pagination

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ListNotificationsResponse":
        """Create from API response dict."""
        return cls(
            notifications=[
                Notification.from_dict(n) for n in data.get("notifications") or []
            ],
            pagination=Pagination.from_dict(data.get("pagination") or {}),
        )


@dataclass
class Webhook:
    """Webhook configuration attached to an alert."""

    id: str
    alert_id: str
    url: str
    is_active: bool
    include_full_transcript: bool
    created_at: datetime
    updated_at: datetime
    secret: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Webhook":
        """Create from API response dict."""
        return cls(
            id=data["id"],
            alert_id=data["alert_id"],
            url=data["url"],
            is_active=data.get("is_active", False),
            include_full_transcript=data.get("include_full_transcript", False),
            created_at=_parse_datetime(data["created_at"]),
            updated_at=_parse_datetime(data["updated_at"]),
            secret=data.get("secret") or None,
        )


@dataclass
class Stream:
    """A recorded stream."""

    id: str
    streamer_id: str
    started_at: datetime
    created_at: datetime
    twitch_id: Optional[str] = None
    title: Optional[str] = None
    vod_id: Optional[str] = None
    vod_url: Optional[str] = None
    duration_seconds: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Stream":
        """Create from API response dict."""
        return cls(
            id=data["id"],
            streamer_id=data["streamer_id"],
            started_at=_parse_datetime(data["started_at"]),
            created_at=_parse_datetime(data["created_at"]),
            twitch_id=data.get("twitch_id") or None,
            title=data.get("title") or None,
            vod_id=data.get("vod_id") or None,
            vod_url=data.get("vod_url") or None,
            duration_seconds=data.get("duration_seconds"),
        )


@dataclass
class GetStreamResponse:
    """Envelope around a single stream."""

    stream: Stream

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GetStreamResponse":
        """Create from API response dict."""
        return cls(stream=Stream.from_dict(data["stream"]))


@dataclass
class ListStreamsResponse:
    """Paginated list of streams."""

    streams: list[Stream]
    total: int
    page: int
    page_size: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ListStreamsResponse":
        """Create from API response dict."""
        return cls(
            streams=[Stream.from_dict(s) for s in data.get("streams") or []],
            total=data.get("total", 0),
            page=data.get("page", 0),
            page_size=data.get("page_size", 0),
        )


@dataclass
class SearchResult:
    """A single transcript search hit."""

    stream_id: str
    streamer_id: str
    title: str
    user_display_name: str
    created_at: datetime
    highlights: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchResult":
        """Create from API response dict."""
        return cls(
            stream_id=data["stream_id"],
            streamer_id=data["streamer_id"],
            title=data.get("title", ""),
            user_display_name=data.get("user_display_name", ""),
            created_at=_parse_datetime(data["created_at"]),
            highlights=list(data.get("highlights") or []),
        )


@dataclass
class SearchStreamsResponse:
    """Paginated transcript search results."""

    results: list[SearchResult]
    total: int
    page: int
    page_size: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchStreamsResponse":
        """Create from API response dict."""
        return cls(
            results=[SearchResult.from_dict(r) for r in data.get("results") or []],
            total=data.get("total", 0),
            page=data.get("page", 0),
            page_size=data.get("page_size", 0),
        )


@dataclass
class TranscriptSegment:
    """A timed piece of a stream transcript."""

    start: float
    end: float
    text: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TranscriptSegment":
        """Create from API response dict."""
        return cls(start=data["start"], end=data["end"], text=data["text"])


@dataclass
class TranscriptResponse:
    """Full transcript of a stream."""

    segments: list[TranscriptSegment]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TranscriptResponse":
        """Create from API response dict."""
        return cls(
            segments=[TranscriptSegment.from_dict(s) for s in data.get("segments") or []]
        )


@dataclass
class Streamer:
    """A streamer profile."""

    id: str
    twitch_id: str
    login: str
    display_name: str
    fetched_at: datetime
    type: Optional[str] = None
    broadcaster_type: Optional[str] = None
    description: Optional[str] = None
    profile_image_url: Optional[str] = None
    offline_image_url: Optional[str] = None
    view_count: int = 0
    followers: int = 0
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Streamer":
        """Create from API response dict."""
        return cls(
            id=data["id"],
            twitch_id=data.get("twitch_id", ""),
            login=data["login"],
            display_name=data.get("display_name", ""),
            fetched_at=_parse_datetime(data["fetched_at"]),
            type=data.get("type") or None,
            broadcaster_type=data.get("broadcaster_type") or None,
            description=data.get("description") or None,
            profile_image_url=data.get("profile_image_url") or None,
            offline_image_url=data.get("offline_image_url") or None,
            view_count=data.get("view_count", 0),
            followers=data.get("followers", 0),
            created_at=_parse_optional_datetime(data.get("created_at")),
        )


@dataclass
class BillingSummary:
    """Billing information for Enterprise users."""

    user_id: str
    billing_period_start: datetime
    billing_period_end: datetime
    total_requests: int
    included_requests: int
    billable_requests: int
    subscription_tier: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BillingSummary":
        """Create from API response dict."""
        return cls(
            user_id=data["user_id"],
            billing_period_start=_parse_datetime(data["billing_period_start"]),
            billing_period_end=_parse_datetime(data["billing_period_end"]),
            total_requests=data.get("total_requests", 0),
            included_requests=data.get("included_requests", 0),
            billable_requests=data.get("billable_requests", 0),
            subscription_tier=data.get("subscription_tier", ""),
        )


@dataclass
class Subscription:
    """Subscription status."""

    status: str
    tier: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Subscription":
        """Create from API response dict."""
        return cls(status=data.get("status", ""), tier=data.get("tier", ""))


@dataclass
class MonthlyUsageResponse:
    """Monthly API usage with billing information."""

    billing_summary: BillingSummary
    subscription: Subscription

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MonthlyUsageResponse":
        """Create from API response dict."""
        return cls(
            billing_summary=BillingSummary.from_dict(data["billing_summary"]),
            subscription=Subscription.from_dict(data.get("subscription") or {}),
        )


@dataclass
class WebhookNotification:
    """The payload core.stream pushes to a webhook when a phrase matches."""

    id: str
    alert_id: str
    matched_phrase: str
    timestamp: datetime
    stream_id: Optional[str] = None
    streamer_id: Optional[str] = None
    context_text: Optional[str] = None
    full_transcript: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WebhookNotification":
        """Create from webhook payload dict."""
        for key in ("id", "alert_id", "matched_phrase", "timestamp"):
            value = data[key]
            if not isinstance(value, str):
                raise TypeError(f"{key} must be a string, got {type(value).__name__}")
        return cls(
            id=data["id"],
            alert_id=data["alert_id"],
            matched_phrase=data["matched_phrase"],
            timestamp=_parse_datetime(data["timestamp"]),
            stream_id=data.get("stream_id") or None,
            streamer_id=data.get("streamer_id") or None,
            context_text=data.get("context_text") or None,
            full_transcript=data.get("full_transcript") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the webhook wire format, omitting unset fields."""
        data: dict[str, Any] = {
            "id": self.id,
            "alert_id": self.alert_id,
            "matched_phrase": self.matched_phrase,
            "timestamp": _format_datetime(self.timestamp),
        }
        if self.stream_id:
            data["stream_id"] = self.stream_id
        if self.streamer_id:
            data["streamer_id"] = self.streamer_id
        if self.context_text:
            data["context_text"] = self.context_text
        if self.full_transcript:
            data["full_transcript"] = self.full_transcript
        return data
