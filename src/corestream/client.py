"""core.stream API client."""

import json
import logging
from typing import Any, Optional, Sequence
from urllib.parse import quote

import httpx

from .config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, ClientConfig
from .errors import (
    APIError,
    ConfigurationError,
    DecodingError,
    EncodingError,
    NetworkError,
    RequestTimeoutError,
)
from .types import (
    Alert,
    GetStreamResponse,
    ListAlertsResponse,
    ListNotificationsResponse,
    ListStreamsResponse,
    MonthlyUsageResponse,
    SearchStreamsResponse,
    Stream,
    Streamer,
    TranscriptResponse,
    Webhook,
)

logger = logging.getLogger(__name__)

USER_AGENT = "corestream-python/1.0"

QueryParams = Sequence[tuple[str, str]]


def _segment(value: str) -> str:
    return quote(value, safe="")


def _paging(page: Optional[int], page_size: Optional[int]) -> list[tuple[str, str]]:
    params: list[tuple[str, str]] = []
    if page is not None and page > 0:
        params.append(("page", str(page)))
    if page_size is not None and page_size > 0:
        params.append(("page_size", str(page_size)))
    return params


class CoreStreamClient:
    """Client for the core.stream API."""

    def __init__(
        self,
        token: Optional[str] = None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
        headers: Optional[dict[str, str]] = None,
        config: Optional[ClientConfig] = None,
    ) -> None:
        """
        Initialize the core.stream client.

        Args:
            token: API bearer token (required unless ``config`` is given)
            base_url: Base URL of the API (default: https://api.core.stream)
            timeout: Default request deadline in seconds (default: 30)
            transport: Custom httpx transport used to perform requests
            headers: Additional headers to include in all requests
            config: A prepared :class:`ClientConfig`; overrides the other arguments

        Raises:
            ConfigurationError: If the token, base URL, timeout or transport is invalid
        """
        if config is None:
            config = ClientConfig(
                token=token or "",
                base_url=base_url,
                timeout=timeout,
                transport=transport,
                headers=dict(headers or {}),
            )
        self.config = config
        self.base_url = httpx.URL(config.base_url)
        self._client = httpx.Client(
            timeout=config.timeout,
            transport=config.transport,
            headers={
                **config.headers,
                "Authorization": f"Bearer {config.token}",
                "User-Agent": USER_AGENT,
                "Accept": "application/json",
            },
        )

    @classmethod
    def from_env(cls) -> "CoreStreamClient":
        """Create a client from ``CORESTREAM_*`` environment variables."""
        return cls(config=ClientConfig.from_env())

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "CoreStreamClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[QueryParams] = None,
        body: Optional[Any] = None,
        response_type: Optional[Any] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Make an HTTP request.

        Returns ``response_type.from_dict(...)`` of the decoded body, or None
        when no ``response_type`` is given or the response body is empty.
        """
        try:
            url = self.base_url.join(path)
        except httpx.InvalidURL as err:
            raise ConfigurationError(f"corestream: invalid path {path!r}") from err

        headers: dict[str, str] = {}
        content: Optional[bytes] = None
        if body is not None:
            try:
                content = json.dumps(body).encode("utf-8")
            except (TypeError, ValueError) as err:
                raise EncodingError(
                    f"corestream: failed to encode request body: {err}"
                ) from err
            headers["Content-Type"] = "application/json"

        request = self._client.build_request(
            method,
            url,
            params=list(params) if params else None,
            content=content,
            headers=headers,
            timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
        )
        logger.debug("request %s %s", method, request.url)

        try:
            response = self._client.send(request)
        except httpx.TimeoutException as err:
            raise RequestTimeoutError(
                f"corestream: request to {request.url} timed out"
            ) from err
        except httpx.TransportError as err:
            raise NetworkError(f"corestream: request failed: {err}") from err

        raw = response.content

        if response.status_code >= 400:
            api_error = APIError.from_response(response.status_code, raw)
            logger.debug("request %s %s failed: %s", method, request.url, api_error)
            raise api_error

        if response_type is None or not raw:
            return None

        try:
            return response_type.from_dict(json.loads(raw))
        except (
            ValueError, KeyError, TypeError, AttributeError, RecursionError
        ) as err:
            raise DecodingError(
                f"corestream: failed to decode response: {err!r}"
            ) from err

    # ==========================================
    # Alert operations
    # ==========================================

    def list_alerts(
        self,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        *,
        timeout: Optional[float] = None,
    ) -> ListAlertsResponse:
        """
        List alerts for the authenticated user.

        Args:
            page: Page number (1-based)
            page_size: Number of alerts per page
            timeout: Deadline for this call in seconds

        Returns:
            Paginated list of alerts
        """
        return self._request(
            "GET",
            "/v2/alerts",
            params=_paging(page, page_size),
            response_type=ListAlertsResponse,
            timeout=timeout,
        )

    def create_alert(
        self,
        name: str,
        phrases: list[str],
        *,
        is_active: Optional[bool] = None,
        timeout: Optional[float] = None,
    ) -> Alert:
        """
        Create a new alert.

        Args:
            name: Display name of the alert
            phrases: Phrases to watch for in stream transcripts
            is_active: Whether the alert starts active (server default if omitted)
            timeout: Deadline for this call in seconds

        Returns:
            The created alert
        """
        body: dict[str, Any] = {"name": name, "phrases": phrases}
        if is_active is not None:
            body["is_active"] = is_active
        return self._request(
            "POST", "/v2/alerts", body=body, response_type=Alert, timeout=timeout
        )

    def get_alert(self, alert_id: str, *, timeout: Optional[float] = None) -> Alert:
        """
        Get an alert by ID.

        Args:
            alert_id: The alert ID
            timeout: Deadline for this call in seconds

        Returns:
            The alert
        """
        return self._request(
            "GET",
            f"/v2/alerts/{_segment(alert_id)}",
            response_type=Alert,
            timeout=timeout,
        )

    def update_alert(
        self,
        alert_id: str,
        *,
        name: Optional[str] = None,
        phrases: Optional[list[str]] = None,
        is_active: Optional[bool] = None,
        timeout: Optional[float] = None,
    ) -> Alert:
        """
        Update an alert. Only the given fields are changed.

        Args:
            alert_id: The alert ID
            name: New name
            phrases: New phrase list
            is_active: Enable or disable the alert
            timeout: Deadline for this call in seconds

        Returns:
            The updated alert
        """
        body: dict[str, Any] = {}
        if name is not None:
            body["name"] = name
        if phrases:
            body["phrases"] = phrases
        if is_active is not None:
            body["is_active"] = is_active
        return self._request(
            "PUT",
            f"/v2/alerts/{_segment(alert_id)}",
            body=body,
            response_type=Alert,
            timeout=timeout,
        )

    def delete_alert(self, alert_id: str, *, timeout: Optional[float] = None) -> None:
        """
        Permanently delete an alert.

        Args:
            alert_id: The alert ID
            timeout: Deadline for this call in seconds
        """
        self._request("DELETE", f"/v2/alerts/{_segment(alert_id)}", timeout=timeout)

    def get_alert_notifications(
        self,
        alert_id: str,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        *,
        timeout: Optional[float] = None,
    ) -> ListNotificationsResponse:
        """
        List notifications produced by an alert.

        Args:
            alert_id: The alert ID
            page: Page number (1-based)
            page_size: Number of notifications per page
            timeout: Deadline for this call in seconds

        Returns:
            Paginated list of notifications
        """
        return self._request(
            "GET",
            f"/v2/alerts/{_segment(alert_id)}/notifications",
            params=_paging(page, page_size),
            response_type=ListNotificationsResponse,
            timeout=timeout,
        )

    # ==========================================
    # Webhook operations
    # ==========================================

    def create_webhook(
        self,
        alert_id: str,
        url: str,
        *,
        secret: Optional[str] = None,
        is_active: Optional[bool] = None,
        include_full_transcript: Optional[bool] = None,
        timeout: Optional[float] = None,
    ) -> Webhook:
        """
        Attach a webhook to an alert.

        Args:
            alert_id: The alert ID
            url: Destination URL for notifications
            secret: Signing secret (generated by the server if omitted)
            is_active: Whether the webhook starts active
            include_full_transcript: Send the full transcript with each notification
            timeout: Deadline for this call in seconds

        Returns:
            The created webhook
        """
        body: dict[str, Any] = {"url": url}
        if secret:
            body["secret"] = secret
        if is_active is not None:
            body["is_active"] = is_active
        if include_full_transcript is not None:
            body["include_full_transcript"] = include_full_transcript
        return self._request(
            "POST",
            f"/v2/alerts/{_segment(alert_id)}/webhook",
            body=body,
            response_type=Webhook,
            timeout=timeout,
        )

    def get_webhook(self, alert_id: str, *, timeout: Optional[float] = None) -> Webhook:
        """
        Get the webhook configuration of an alert.

        Args:
            alert_id: The alert ID
            timeout: Deadline for this call in seconds

        Returns:
            The webhook
        """
        return self._request(
            "GET",
            f"/v2/alerts/{_segment(alert_id)}/webhook",
            response_type=Webhook,
            timeout=timeout,
        )

    def update_webhook(
        self,
        alert_id: str,
        url: str,
        *,
        is_active: bool,
        include_full_transcript: bool,
        secret: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Webhook:
        """
        Replace the webhook configuration of an alert.

        Args:
            alert_id: The alert ID
            url: Destination URL for notifications
            is_active: Whether the webhook is active
            include_full_transcript: Send the full transcript with each notification
            secret: New signing secret (unchanged if omitted)
            timeout: Deadline for this call in seconds

        Returns:
            The updated webhook
        """
        body: dict[str, Any] = {
            "url": url,
            "is_active": is_active,
            "include_full_transcript": include_full_transcript,
        }
        if secret:
            body["secret"] = secret
        return self._request(
            "PUT",
            f"/v2/alerts/{_segment(alert_id)}/webhook",
            body=body,
            response_type=Webhook,
            timeout=timeout,
        )

    def delete_webhook(self, alert_id: str, *, timeout: Optional[float] = None) -> None:
        """
        Remove the webhook from an alert.

        Args:
            alert_id: The alert ID
            timeout: Deadline for this call in seconds
        """
        self._request(
            "DELETE", f"/v2/alerts/{_segment(alert_id)}/webhook", timeout=timeout
        )

    def test_webhook(
        self,
        alert_id: str,
        *,
        url: Optional[str] = None,
        secret: Optional[str] = None,
        include_full_transcript: Optional[bool] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Ask the service to send a test notification.

        With no overrides the saved webhook configuration is used; otherwise
        the test goes to the given URL and is signed with the given secret.

        Args:
            alert_id: The alert ID
            url: Override destination URL
            secret: Override signing secret
            include_full_transcript: Include a sample transcript
            timeout: Deadline for this call in seconds
        """
        body: Optional[dict[str, Any]] = None
        if url or secret or include_full_transcript is not None:
            body = {}
            if url:
                body["url"] = url
            if secret:
                body["secret"] = secret
            if include_full_transcript is not None:
                body["include_full_transcript"] = include_full_transcript
        self._request(
            "POST",
            f"/v2/alerts/{_segment(alert_id)}/webhook/test",
            body=body,
            timeout=timeout,
        )

    # ==========================================
    # Stream operations
    # ==========================================

    def list_streams(
        self,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        streamer_id: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> ListStreamsResponse:
        """
        List streams.

        Args:
            page: Page number (1-based)
            page_size: Number of streams per page
            streamer_id: Only return streams of this streamer
            timeout: Deadline for this call in seconds

        Returns:
            Paginated list of streams
        """
        params = _paging(page, page_size)
        if streamer_id:
            params.append(("streamer_id", streamer_id))
        return self._request(
            "GET",
            "/v2/streams",
            params=params,
            response_type=ListStreamsResponse,
            timeout=timeout,
        )

    def search_streams(
        self,
        query: str,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        time_range: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> SearchStreamsResponse:
        """
        Search stream transcripts.

        Args:
            query: Words and "quoted phrases" to look for
            page: Page number (1-based)
            page_size: Number of results per page
            time_range: "today", "week" or "month" (server default: "today")
            timeout: Deadline for this call in seconds

        Returns:
            Paginated search results
        """
        params = [("q", query), *_paging(page, page_size)]
        if time_range:
            params.append(("time_range", time_range))
        return self._request(
            "GET",
            "/v2/streams/search",
            params=params,
            response_type=SearchStreamsResponse,
            timeout=timeout,
        )

    def get_stream(self, stream_id: str, *, timeout: Optional[float] = None) -> Stream:
        """
        Get a stream by ID.

        Args:
            stream_id: The stream ID
            timeout: Deadline for this call in seconds

        Returns:
            The stream
        """
        resp = self._request(
            "GET",
            f"/v2/streams/{_segment(stream_id)}",
            response_type=GetStreamResponse,
            timeout=timeout,
        )
        return None if resp is None else resp.stream

    def get_stream_transcript(
        self, stream_id: str, *, timeout: Optional[float] = None
    ) -> TranscriptResponse:
        """
        Get the full transcript of a stream.

        Args:
            stream_id: The stream ID
            timeout: Deadline for this call in seconds

        Returns:
            The transcript segments
        """
        return self._request(
            "GET",
            f"/v2/streams/{_segment(stream_id)}/transcript",
            response_type=TranscriptResponse,
            timeout=timeout,
        )

    # ==========================================
    # Streamers & Usage
    # ==========================================

    def get_streamer(
        self, streamer_id: str, *, timeout: Optional[float] = None
    ) -> Streamer:
        """
        Get a streamer profile.

        Args:
            streamer_id: The streamer ID
            timeout: Deadline for this call in seconds

        Returns:
            The streamer
        """
        return self._request(
            "GET",
            f"/v2/streamers/{_segment(streamer_id)}",
            response_type=Streamer,
            timeout=timeout,
        )

    def get_monthly_usage(
        self, *, timeout: Optional[float] = None
    ) -> MonthlyUsageResponse:
        """
        Get monthly API usage with billing information.

        Only available on the Enterprise tier.

        Args:
            timeout: Deadline for this call in seconds

        Returns:
            Usage and subscription details
        """
        return self._request(
            "GET",
            "/v2/usage/monthly",
            response_type=MonthlyUsageResponse,
            timeout=timeout,
        )
