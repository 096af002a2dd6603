import json

import httpx
import pytest

from pn_filer.document_builder.formats import FormatVersion
from pn_filer.errors import (
    ConfigurationError,
    RateLimitedError,
    TransientUpstreamError,
    UpstreamError,
)
from pn_filer.services.customscity_client import CustomsCityClient, StatusOutcome
from pn_filer.services.http import parse_body, raise_for_upstream_status
from pn_filer.services.retry import RetryPolicy

DOCUMENT = {"type": "fda-pn", "send": False, "sendAs": "add", "body": [{"MBOLNumber": "#1001"}]}


class Recorder:
    """MockTransport handler that replays canned responses and keeps requests."""

    def __init__(self, *responses: httpx.Response):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)

    def body(self, index: int) -> dict:
        return json.loads(self.requests[index].content)


def make_client(test_settings, sleeper, handler) -> CustomsCityClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CustomsCityClient(test_settings, http_client=http, retry_policy=RetryPolicy(sleep=sleeper))


# ── Response helpers ──


class TestHttpHelpers:
    def test_non_json_body_becomes_message(self):
        response = httpx.Response(502, text="<html>Bad Gateway</html>")
        assert parse_body(response) == {"message": "<html>Bad Gateway</html>"}

    def test_json_array_becomes_message(self):
        response = httpx.Response(200, json=[1, 2])
        assert parse_body(response) == {"message": response.text}

    def test_status_classification(self):
        with pytest.raises(RateLimitedError) as exc_info:
            raise_for_upstream_status(httpx.Response(429, headers={"Retry-After": "7"}), "customscity")
        assert exc_info.value.retry_after == 7.0

        with pytest.raises(TransientUpstreamError):
            raise_for_upstream_status(httpx.Response(503, text="down"), "customscity")

        with pytest.raises(UpstreamError) as exc_info:
            raise_for_upstream_status(httpx.Response(422, json={"message": "Invalid port"}), "customscity")
        assert exc_info.value.message == "Invalid port"
        assert exc_info.value.status_code == 422

        raise_for_upstream_status(httpx.Response(201, json={}), "customscity")


# ── Submission ──


class TestSubmitDocument:
    @pytest.mark.asyncio
    async def test_create_then_send(self, test_settings, sleeper):
        handler = Recorder(
            httpx.Response(201, json={"documentId": "doc-1"}),
            httpx.Response(200, json={"status": "sent"}),
        )
        client = make_client(test_settings, sleeper, handler)

        result = await client.submit_document(DOCUMENT)

        assert result.success is True
        assert result.document_id == "doc-1"
        assert str(handler.requests[0].url) == "https://api.customscity.test/api/abi/documents"
        assert handler.body(0) == {"documentType": "FDA_PN", "data": DOCUMENT}
        assert str(handler.requests[1].url) == "https://api.customscity.test/api/abi/send"
        assert handler.body(1) == {"documentId": "doc-1"}
        assert handler.requests[0].headers["Authorization"] == "Bearer cc-test-key"

    @pytest.mark.asyncio
    async def test_falls_back_to_id_field(self, test_settings, sleeper):
        handler = Recorder(httpx.Response(201, json={"id": 42}), httpx.Response(200, json={}))
        result = await make_client(test_settings, sleeper, handler).submit_document(DOCUMENT)

        assert result.success is True
        assert result.document_id == "42"

    @pytest.mark.asyncio
    async def test_missing_document_id_is_failure(self, test_settings, sleeper):
        handler = Recorder(httpx.Response(201, json={"status": "ok"}))
        result = await make_client(test_settings, sleeper, handler).submit_document(DOCUMENT)

        assert result.success is False
        assert result.message == "Document created but no ID returned"
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_rejection_message_is_reported(self, test_settings, sleeper):
        handler = Recorder(httpx.Response(400, json={"message": "Invalid product code"}))
        result = await make_client(test_settings, sleeper, handler).submit_document(DOCUMENT)

        assert result.success is False
        assert result.message == "Invalid product code"

    @pytest.mark.asyncio
    async def test_non_json_error_body_is_message(self, test_settings, sleeper):
        handler = Recorder(httpx.Response(400, text="Bad request: malformed payload"))
        result = await make_client(test_settings, sleeper, handler).submit_document(DOCUMENT)

        assert result.success is False
        assert result.message == "Bad request: malformed payload"

    @pytest.mark.asyncio
    async def test_server_error_is_not_retried(self, test_settings, sleeper):
        handler = Recorder(httpx.Response(500, text="Internal Server Error"))
        result = await make_client(test_settings, sleeper, handler).submit_document(DOCUMENT)

        assert result.success is False
        assert len(handler.requests) == 1
        assert sleeper.calls == []

    @pytest.mark.asyncio
    async def test_rate_limit_is_waited_out(self, test_settings, sleeper):
        handler = Recorder(
            httpx.Response(429, headers={"Retry-After": "4"}),
            httpx.Response(201, json={"documentId": "doc-1"}),
            httpx.Response(200, json={}),
        )
        result = await make_client(test_settings, sleeper, handler).submit_document(DOCUMENT)

        assert result.success is True
        assert sleeper.calls == [4.0]

    @pytest.mark.asyncio
    async def test_send_failure_is_reported(self, test_settings, sleeper):
        handler = Recorder(
            httpx.Response(201, json={"documentId": "doc-1"}),
            httpx.Response(409, json={"message": "Document already sent"}),
        )
        result = await make_client(test_settings, sleeper, handler).submit_document(DOCUMENT)

        assert result.success is False
        assert result.message == "Document already sent"

    @pytest.mark.asyncio
    async def test_missing_api_key(self, test_settings, sleeper):
        settings = test_settings.model_copy(update={"customscity_api_key": ""})
        client = make_client(settings, sleeper, Recorder())

        with pytest.raises(ConfigurationError):
            await client.submit_document(DOCUMENT)


# ── Status queries ──


class TestFetchStatus:
    def test_status_url_follows_format(self, test_settings, sleeper):
        client = make_client(test_settings, sleeper, Recorder())

        assert client.status_url("doc-1", FormatVersion.ABI_DOCUMENT) == (
            "https://app.customscity.test/api/api/abi/documents/doc-1"
        )
        assert client.status_url("doc-1", "fda-pn") == (
            "https://app.customscity.test/api/pn-v2/submissions/doc-1"
        )

    @pytest.mark.asyncio
    async def test_pnc_received(self, test_settings, sleeper):
        handler = Recorder(httpx.Response(200, json={"pncNumber": "PNC-0001"}))
        status = await make_client(test_settings, sleeper, handler).fetch_status("doc-1", FormatVersion.FDA_PN)

        assert status.outcome == StatusOutcome.RECEIVED
        assert status.pnc_number == "PNC-0001"
        assert handler.requests[0].method == "GET"

    @pytest.mark.asyncio
    async def test_not_yet_available(self, test_settings, sleeper):
        handler = Recorder(httpx.Response(200, json={"status": "processing"}))
        status = await make_client(test_settings, sleeper, handler).fetch_status("doc-1", FormatVersion.FDA_PN)

        assert status.outcome == StatusOutcome.NOT_YET_AVAILABLE
        assert status.pnc_number is None
        assert status.message == "PNC not yet available"

    @pytest.mark.asyncio
    async def test_unknown_format_version_is_not_queried(self, test_settings, sleeper):
        handler = Recorder()
        status = await make_client(test_settings, sleeper, handler).fetch_status("doc-1", None)

        assert status.outcome == StatusOutcome.UPSTREAM_ERROR
        assert status.message == "Unknown format version: None"
        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_hard_error(self, test_settings, sleeper):
        handler = Recorder(httpx.Response(404, json={"message": "Document not found"}))
        status = await make_client(test_settings, sleeper, handler).fetch_status("doc-1", FormatVersion.FDA_PN)

        assert status.outcome == StatusOutcome.UPSTREAM_ERROR
        assert status.message == "Document not found"

    @pytest.mark.asyncio
    async def test_server_errors_are_retried(self, test_settings, sleeper):
        handler = Recorder(
            httpx.Response(503, text="unavailable"),
            httpx.Response(200, json={"pncNumber": "PNC-0002"}),
        )
        status = await make_client(test_settings, sleeper, handler).fetch_status("doc-1", FormatVersion.ABI_DOCUMENT)

        assert status.outcome == StatusOutcome.RECEIVED
        assert sleeper.calls == [1.0]

    @pytest.mark.asyncio
    async def test_exhausted_retries_become_upstream_error(self, test_settings, sleeper):
        handler = Recorder(*[httpx.Response(503, text="unavailable") for _ in range(3)])
        status = await make_client(test_settings, sleeper, handler).fetch_status("doc-1", FormatVersion.FDA_PN)

        assert status.outcome == StatusOutcome.UPSTREAM_ERROR
        assert len(handler.requests) == 3
