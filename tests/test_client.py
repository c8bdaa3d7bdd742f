"""Tests for core.stream client."""

import json

import httpx
import pytest
from pytest_httpx import HTTPXMock

from corestream import (
    APIError,
    CoreStreamClient,
    DecodingError,
    EncodingError,
    NetworkError,
    RequestTimeoutError,
    is_forbidden,
    is_not_found,
    is_rate_limited,
    is_unauthorized,
)

STREAMER = {
    "id": "streamer_123",
    "twitch_id": "987654",
    "login": "teststreamer",
    "display_name": "TestStreamer",
    "broadcaster_type": "partner",
    "view_count": 1500,
    "followers": 320,
    "created_at": "2020-05-01T12:00:00Z",
    "fetched_at": "2024-01-15T10:30:00.123456789Z",
}

ALERT = {
    "id": "alert_123",
    "name": "Brand mentions",
    "phrases": ["core stream", "corestream"],
    "is_active": True,
    "created_at": "2024-01-01T00:00:00Z",
    "updated_at": "2024-01-02T00:00:00Z",
}

WEBHOOK = {
    "id": "wh_1",
    "alert_id": "alert_123",
    "url": "https://example.com/hook",
    "is_active": True,
    "include_full_transcript": False,
    "created_at": "2024-01-01T00:00:00Z",
    "updated_at": "2024-01-01T00:00:00Z",
}


@pytest.fixture
def client() -> CoreStreamClient:
    return CoreStreamClient("test-token", base_url="http://localhost:8080")


class TestCoreStreamClient:
    def test_get_streamer_sends_bearer_token(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(json=STREAMER)

        client = CoreStreamClient("test-token", base_url="http://localhost:8080")
        streamer = client.get_streamer("streamer_123")

        request = httpx_mock.get_request()
        assert request is not None
        assert request.method == "GET"
        assert str(request.url) == "http://localhost:8080/v2/streamers/streamer_123"
        assert request.headers["Authorization"] == "Bearer test-token"
        assert request.headers["User-Agent"] == "corestream-python/1.0"
        assert request.headers["Accept"] == "application/json"
        assert "Content-Type" not in request.headers

        assert streamer.id == "streamer_123"
        assert streamer.login == "teststreamer"
        assert streamer.followers == 320
        assert streamer.fetched_at.microsecond == 123456
        assert streamer.description is None

    def test_absolute_paths_resolve_against_host(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(json=ALERT)

        client = CoreStreamClient("key", base_url="https://api.example.com/ignored/")
        client.get_alert("alert_123")

        request = httpx_mock.get_request()
        assert request is not None
        assert str(request.url) == "https://api.example.com/v2/alerts/alert_123"

    def test_default_base_url(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(json=ALERT)

        CoreStreamClient("key").get_alert("alert_123")

        request = httpx_mock.get_request()
        assert request is not None
        assert request.url.host == "api.core.stream"

    def test_quotes_path_segments(self, client: CoreStreamClient, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(json=ALERT)

        client.get_alert("a/b c")

        request = httpx_mock.get_request()
        assert request is not None
        assert request.url.raw_path == b"/v2/alerts/a%2Fb%20c"

    def test_extra_headers(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(json=ALERT)

        client = CoreStreamClient("key", headers={"X-Trace": "abc"})
        client.get_alert("alert_123")

        request = httpx_mock.get_request()
        assert request is not None
        assert request.headers["X-Trace"] == "abc"
        assert request.headers["Authorization"] == "Bearer key"

    def test_context_manager(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(status_code=204)

        with CoreStreamClient("key") as client:
            assert client.delete_alert("alert_123") is None

    def test_custom_transport(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=STREAMER)

        client = CoreStreamClient(
            "test-token",
            base_url="http://stub.local",
            transport=httpx.MockTransport(handler),
        )
        streamer = client.get_streamer("streamer_123")

        assert streamer.display_name == "TestStreamer"
        assert len(seen) == 1
        assert seen[0].headers["Authorization"] == "Bearer test-token"


class TestRequestExecutor:
    def test_preserves_duplicate_query_keys(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(json={})

        client._request("GET", "/v2/streams", params=[("tag", "a"), ("tag", "b")])

        request = httpx_mock.get_request()
        assert request is not None
        assert request.url.params.get_list("tag") == ["a", "b"]

    def test_sets_content_type_only_with_body(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(json=ALERT)

        client.create_alert("Brand mentions", ["core stream"])

        request = httpx_mock.get_request()
        assert request is not None
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {
            "name": "Brand mentions",
            "phrases": ["core stream"],
        }

    def test_unserializable_body_raises_encoding_error(
        self, client: CoreStreamClient
    ) -> None:
        with pytest.raises(EncodingError):
            client._request("POST", "/v2/alerts", body={"bad": object()})

    def test_invalid_json_raises_decoding_error(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(content=b"not json")

        with pytest.raises(DecodingError):
            client.get_alert("alert_123")

    def test_wrong_shape_raises_decoding_error(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(json={"unexpected": True})

        with pytest.raises(DecodingError):
            client.get_alert("alert_123")

    def test_deeply_nested_json_raises_decoding_error(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(content=b"[" * 200000 + b"]" * 200000)

        with pytest.raises(DecodingError):
            client.get_streamer("streamer_123")

    def test_empty_body_returns_none(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(status_code=200)

        assert client.get_alert("alert_123") is None

    def test_body_ignored_without_response_type(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(content=b"not json")

        assert client.delete_alert("alert_123") is None

    def test_timeout_raises_request_timeout_error(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"))

        with pytest.raises(RequestTimeoutError) as exc_info:
            client.get_alert("alert_123")

        assert isinstance(exc_info.value, NetworkError)
        assert not isinstance(exc_info.value, APIError)

    def test_connection_failure_raises_network_error(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_exception(httpx.ConnectError("connection refused"))

        with pytest.raises(NetworkError):
            client.list_alerts()

    def test_per_call_timeout(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(json=ALERT)

        client.get_alert("alert_123", timeout=1.5)

        request = httpx_mock.get_request()
        assert request is not None
        assert request.extensions["timeout"]["read"] == 1.5


class TestAlerts:
    def test_lists_alerts_with_paging(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(
            json={
                "alerts": [ALERT],
                "pagination": {
                    "page": 2,
                    "page_size": 10,
                    "total_items": 11,
                    "total_pages": 2,
                },
            }
        )

        result = client.list_alerts(page=2, page_size=10)

        request = httpx_mock.get_request()
        assert request is not None
        assert request.url.params["page"] == "2"
        assert request.url.params["page_size"] == "10"
        assert len(result.alerts) == 1
        assert result.alerts[0].phrases == ["core stream", "corestream"]
        assert result.pagination.total_pages == 2

    def test_lists_alerts_without_paging(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(json={"alerts": [], "pagination": {}})

        result = client.list_alerts(page=0)

        request = httpx_mock.get_request()
        assert request is not None
        assert str(request.url) == "http://localhost:8080/v2/alerts"
        assert result.alerts == []

    def test_updates_alert(self, client: CoreStreamClient, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(json={**ALERT, "is_active": False})

        alert = client.update_alert("alert_123", is_active=False)

        request = httpx_mock.get_request()
        assert request is not None
        assert request.method == "PUT"
        assert json.loads(request.content) == {"is_active": False}
        assert alert.is_active is False

    def test_deletes_alert(self, client: CoreStreamClient, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(status_code=204)

        client.delete_alert("alert_123")

        request = httpx_mock.get_request()
        assert request is not None
        assert request.method == "DELETE"
        assert request.url.path == "/v2/alerts/alert_123"

    def test_gets_alert_notifications(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(
            json={
                "notifications": [
                    {
                        "id": "notif_1",
                        "alert_id": "alert_123",
                        "alert_name": "Brand mentions",
                        "matched_phrase": "core stream",
                        "context": "...love core stream...",
                        "stream_source": "twitch",
                        "stream_title": "Morning show",
                        "timestamp": "2024-01-15T10:30:00Z",
                    }
                ],
                "pagination": {"page": 1, "page_size": 20, "total_items": 1, "total_pages": 1},
            }
        )

        result = client.get_alert_notifications("alert_123", page=1)

        request = httpx_mock.get_request()
        assert request is not None
        assert request.url.path == "/v2/alerts/alert_123/notifications"
        assert result.notifications[0].matched_phrase == "core stream"
        assert result.notifications[0].transcript_url is None


class TestWebhookOperations:
    def test_creates_webhook(self, client: CoreStreamClient, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(json={**WEBHOOK, "secret": "whsec_123"})

        webhook = client.create_webhook(
            "alert_123", "https://example.com/hook", include_full_transcript=False
        )

        request = httpx_mock.get_request()
        assert request is not None
        assert request.method == "POST"
        assert request.url.path == "/v2/alerts/alert_123/webhook"
        assert json.loads(request.content) == {
            "url": "https://example.com/hook",
            "include_full_transcript": False,
        }
        assert webhook.secret == "whsec_123"

    def test_updates_webhook_with_full_body(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(json=WEBHOOK)

        client.update_webhook(
            "alert_123",
            "https://example.com/hook",
            is_active=False,
            include_full_transcript=True,
        )

        request = httpx_mock.get_request()
        assert request is not None
        assert request.method == "PUT"
        assert json.loads(request.content) == {
            "url": "https://example.com/hook",
            "is_active": False,
            "include_full_transcript": True,
        }

    def test_tests_saved_webhook_without_body(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(json={"status": "sent"})

        client.test_webhook("alert_123")

        request = httpx_mock.get_request()
        assert request is not None
        assert request.url.path == "/v2/alerts/alert_123/webhook/test"
        assert request.content == b""
        assert "Content-Type" not in request.headers

    def test_tests_webhook_with_overrides(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(status_code=204)

        client.test_webhook("alert_123", url="https://other.example.com", secret="s")

        request = httpx_mock.get_request()
        assert request is not None
        assert json.loads(request.content) == {
            "url": "https://other.example.com",
            "secret": "s",
        }


class TestStreams:
    def test_lists_streams_in_parameter_order(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(
            json={
                "streams": [
                    {
                        "id": "stream_1",
                        "streamer_id": "streamer_123",
                        "title": "Morning show",
                        "started_at": "2024-01-15T08:00:00Z",
                        "duration_seconds": 7200,
                        "created_at": "2024-01-15T08:00:05Z",
                    }
                ],
                "total": 1,
                "page": 2,
                "page_size": 10,
            }
        )

        result = client.list_streams(page=2, page_size=10, streamer_id="streamer_123")

        request = httpx_mock.get_request()
        assert request is not None
        assert request.url.query == b"page=2&page_size=10&streamer_id=streamer_123"
        assert result.streams[0].duration_seconds == 7200
        assert result.streams[0].vod_url is None

    def test_searches_streams(self, client: CoreStreamClient, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(
            json={
                "results": [
                    {
                        "stream_id": "stream_1",
                        "streamer_id": "streamer_123",
                        "title": "Morning show",
                        "user_display_name": "TestStreamer",
                        "highlights": ["...<em>hello world</em>..."],
                        "created_at": "2024-01-15T08:00:05Z",
                    }
                ],
                "total": 1,
                "page": 1,
                "page_size": 20,
            }
        )

        result = client.search_streams('"hello world"', time_range="week")

        request = httpx_mock.get_request()
        assert request is not None
        assert request.url.path == "/v2/streams/search"
        assert request.url.params["q"] == '"hello world"'
        assert request.url.params["time_range"] == "week"
        assert "page" not in request.url.params
        assert result.results[0].highlights == ["...<em>hello world</em>..."]

    def test_gets_stream_unwrapped(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(
            json={
                "stream": {
                    "id": "stream_1",
                    "streamer_id": "streamer_123",
                    "started_at": "2024-01-15T08:00:00Z",
                    "created_at": "2024-01-15T08:00:05Z",
                }
            }
        )

        stream = client.get_stream("stream_1")

        assert stream.id == "stream_1"
        assert stream.title is None

    def test_gets_transcript(self, client: CoreStreamClient, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(
            json={
                "segments": [
                    {"start": 0.0, "end": 2.5, "text": "Good morning"},
                    {"start": 2.5, "end": 4.0, "text": "everyone"},
                ]
            }
        )

        transcript = client.get_stream_transcript("stream_1")

        request = httpx_mock.get_request()
        assert request is not None
        assert request.url.path == "/v2/streams/stream_1/transcript"
        assert [s.text for s in transcript.segments] == ["Good morning", "everyone"]
        assert transcript.segments[1].end == 4.0


class TestUsage:
    def test_gets_monthly_usage(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(
            json={
                "billing_summary": {
                    "user_id": "user_1",
                    "billing_period_start": "2024-01-01T00:00:00Z",
                    "billing_period_end": "2024-01-31T23:59:59Z",
                    "total_requests": 12000,
                    "included_requests": 10000,
                    "billable_requests": 2000,
                    "subscription_tier": "enterprise",
                },
                "subscription": {"status": "active", "tier": "enterprise"},
            }
        )

        usage = client.get_monthly_usage()

        assert usage.billing_summary.billable_requests == 2000
        assert usage.subscription.status == "active"


class TestErrorHandling:
    @pytest.mark.parametrize(
        ("status_code", "predicate"),
        [
            (404, is_not_found),
            (401, is_unauthorized),
            (403, is_forbidden),
            (429, is_rate_limited),
        ],
    )
    def test_classifies_error_envelope(
        self,
        client: CoreStreamClient,
        httpx_mock: HTTPXMock,
        status_code: int,
        predicate,
    ) -> None:
        httpx_mock.add_response(
            status_code=status_code,
            json={"error": {"code": "some_code", "message": "Something went wrong"}},
        )

        with pytest.raises(APIError) as exc_info:
            client.get_alert("alert_123")

        assert predicate(exc_info.value)
        assert exc_info.value.status_code == status_code
        assert exc_info.value.code == "some_code"
        assert exc_info.value.message == "Something went wrong"

    @pytest.mark.parametrize(
        ("status_code", "predicate"),
        [
            (404, is_not_found),
            (401, is_unauthorized),
            (403, is_forbidden),
            (429, is_rate_limited),
        ],
    )
    def test_classifies_unparsable_body_by_status(
        self,
        client: CoreStreamClient,
        httpx_mock: HTTPXMock,
        status_code: int,
        predicate,
    ) -> None:
        httpx_mock.add_response(status_code=status_code, content=b"<html>oops</html>")

        with pytest.raises(APIError) as exc_info:
            client.get_alert("alert_123")

        assert predicate(exc_info.value)
        assert exc_info.value.code == ""
        assert exc_info.value.message == ""

    def test_deeply_nested_error_body_classifies_by_status(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(status_code=404, content=b"[" * 200000)

        with pytest.raises(APIError) as exc_info:
            client.get_streamer("streamer_123")

        assert is_not_found(exc_info.value)
        assert exc_info.value.message == ""

    def test_raises_api_error_for_500(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(status_code=500)

        with pytest.raises(APIError) as exc_info:
            client.get_monthly_usage()

        assert exc_info.value.is_server_error()
        assert not is_not_found(exc_info.value)
        assert str(exc_info.value) == "corestream: request failed with status 500"

    def test_success_with_error_shaped_body_is_not_an_error(
        self, client: CoreStreamClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(
            status_code=200, json={"error": {"code": "x", "message": "y"}}
        )

        assert client.delete_webhook("alert_123") is None
