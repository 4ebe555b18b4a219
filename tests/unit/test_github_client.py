from __future__ import annotations

import json

import httpx
import pytest

from common.errors import RemoteRejectedError, SessionExpiredError, TransportFailureError
from common.github import GitHubClient


def _client(handler) -> GitHubClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GitHubClient(api_base="https://api.github.test", client=http)


@pytest.mark.asyncio
async def test_get_file_found_sends_bearer_and_ref():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, json={"sha": "abc123", "content": "cHJp\nbnQoMSk=\n"})

    async with _client(handler) as gh:
        state = await gh.get_file("alice/solutions", "Two Sum.py", "tok", ref="main")

    req = seen["request"]
    assert req.method == "GET"
    assert req.url.host == "api.github.test"
    assert req.url.path == "/repos/alice/solutions/contents/Two Sum.py"
    assert req.url.params.get("ref") == "main"
    assert req.headers["Authorization"] == "Bearer tok"
    assert req.headers["Accept"] == "application/vnd.github.v3+json"
    assert state.exists and state.sha == "abc123"
    assert state.decoded_content() == b"print(1)"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [404, 403, 500])
async def test_get_file_non_success_reads_as_absent(status):
    async with _client(lambda _: httpx.Response(status, json={"message": "x"})) as gh:
        state = await gh.get_file("a/b", "x.py", "tok")
    assert not state.exists
    assert state.sha is None


@pytest.mark.asyncio
async def test_get_file_401_raises_session_expired():
    async with _client(lambda _: httpx.Response(401, json={"message": "Bad credentials"})) as gh:
        with pytest.raises(SessionExpiredError):
            await gh.get_file("a/b", "x.py", "tok")


@pytest.mark.asyncio
async def test_put_file_includes_sha_only_when_updating():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"content": {"sha": "new"}})

    async with _client(handler) as gh:
        await gh.put_file("a/b", "x.py", "tok", message="m", content="Yw==", branch="main")
        await gh.put_file("a/b", "x.py", "tok", message="m", content="Yw==", branch="main", sha="abc123")

    assert bodies[0] == {"message": "m", "content": "Yw==", "branch": "main"}
    assert bodies[1] == {"message": "m", "content": "Yw==", "branch": "main", "sha": "abc123"}


@pytest.mark.asyncio
async def test_put_file_errors():
    async with _client(lambda _: httpx.Response(409, json={"message": "sha mismatch"})) as gh:
        with pytest.raises(RemoteRejectedError) as ei:
            await gh.put_file("a/b", "x.py", "tok", message="m", content="")
    assert str(ei.value) == "sha mismatch"
    assert ei.value.status_code == 409

    async with _client(lambda _: httpx.Response(500, text="oops")) as gh:
        with pytest.raises(RemoteRejectedError, match="Failed to push to GitHub"):
            await gh.put_file("a/b", "x.py", "tok", message="m", content="")

    async with _client(lambda _: httpx.Response(401)) as gh:
        with pytest.raises(SessionExpiredError):
            await gh.put_file("a/b", "x.py", "tok", message="m", content="")


@pytest.mark.asyncio
async def test_transport_error_is_wrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("no route", request=request)

    async with _client(handler) as gh:
        with pytest.raises(TransportFailureError):
            await gh.get_file("a/b", "x.py", "tok")


@pytest.mark.asyncio
async def test_malformed_json_is_transport_failure():
    async with _client(lambda _: httpx.Response(200, text="<html>")) as gh:
        with pytest.raises(TransportFailureError):
            await gh.get_file("a/b", "x.py", "tok")
