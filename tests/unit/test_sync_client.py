"""
Unit tests for the cloud sync client.
"""

import json

import httpx
import pytest
import pytest_asyncio

from src.sync.client import PULL_ENDPOINT, PUSH_ENDPOINT, SyncClient

BASE_URL = "https://sync.example.test"


@pytest.fixture
def exported():
    """A minimal export payload."""
    return {"profile": {"exam_type": "IELTS"}, "sessions": [{"id": "s1"}, {"id": "s2"}]}


class Recorder:
    """MockTransport handler that records requests and replays a canned response."""

    def __init__(self, status_code=200, body=None, raw=None):
        self.status_code = status_code
        self.body = body
        self.raw = raw
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raw is not None:
            return httpx.Response(self.status_code, content=self.raw)
        return httpx.Response(self.status_code, json=self.body)


def _client(handler, token="token-123"):
    return SyncClient(BASE_URL, token, transport=httpx.MockTransport(handler))


@pytest_asyncio.fixture
async def recorder_client():
    recorder = Recorder(body={"success": True})
    client = _client(recorder)
    yield recorder, client
    await client.close()


class TestPush:
    @pytest.mark.asyncio
    async def test_push_sends_wrapped_payload(self, recorder_client, exported):
        recorder, client = recorder_client
        result = await client.push(exported)

        assert result.success
        assert result.status_code == 200

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == PUSH_ENDPOINT
        assert request.headers["Authorization"] == "Bearer token-123"
        assert json.loads(request.content) == {"data": exported}

    @pytest.mark.asyncio
    async def test_push_without_token_makes_no_request(self, exported):
        recorder = Recorder(body={"success": True})
        async with _client(recorder, token=None) as client:
            result = await client.push(exported)

        assert not result.success
        assert "Not signed in" in result.error
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_server_error_message_is_returned(self, exported):
        recorder = Recorder(status_code=401, body={"error": "Unauthorized"})
        async with _client(recorder) as client:
            result = await client.push(exported)

        assert not result.success
        assert result.status_code == 401
        assert result.error == "Unauthorized"

    @pytest.mark.asyncio
    async def test_error_without_body(self, exported):
        recorder = Recorder(status_code=500, raw=b"<html>oops</html>")
        async with _client(recorder) as client:
            result = await client.push(exported)

        assert not result.success
        assert result.error == "HTTP 500"

    @pytest.mark.asyncio
    async def test_success_false_in_body(self, exported):
        recorder = Recorder(status_code=200, body={"success": False, "error": "Quota exceeded"})
        async with _client(recorder) as client:
            result = await client.push(exported)

        assert not result.success
        assert result.error == "Quota exceeded"


class TestPull:
    @pytest.mark.asyncio
    async def test_pull_returns_data(self, exported):
        recorder = Recorder(body={"success": True, "data": exported})
        async with _client(recorder) as client:
            result = await client.pull()

        assert result.success
        assert result.data == exported
        assert recorder.requests[0].url.path == PULL_ENDPOINT

    @pytest.mark.asyncio
    async def test_pull_with_nothing_stored(self):
        recorder = Recorder(body={"success": True, "data": None})
        async with _client(recorder) as client:
            result = await client.pull()

        assert result.success
        assert result.data is None

    @pytest.mark.asyncio
    async def test_connection_error_is_reported(self):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        async with _client(refuse) as client:
            result = await client.pull()

        assert not result.success
        assert "Connection refused" in result.error
        assert result.status_code is None


class TestClientLifecycle:
    @pytest.mark.asyncio
    async def test_base_url_trailing_slash(self):
        client = SyncClient(BASE_URL + "/", "t")
        assert client.base_url == BASE_URL
        await client.close()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, recorder_client):
        _, client = recorder_client
        await client.pull()
        await client.close()
        await client.close()
        assert client._client is None
