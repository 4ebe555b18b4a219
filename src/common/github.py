from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from state.models import RemoteFileState

from .config import DEFAULT_API_BASE, DEFAULT_BRANCH
from .errors import RemoteRejectedError, SessionExpiredError, TransportFailureError


logger = logging.getLogger(__name__)

ACCEPT_HEADER = "application/vnd.github.v3+json"
DEFAULT_PUSH_ERROR = "Failed to push to GitHub"


def _is_success(resp: httpx.Response) -> bool:
    return 200 <= resp.status_code < 300


class GitHubClient:
    """
    Minimal async GitHub REST client: `/user` plus read/write of one file.

    Notes
    - Token is passed per call (the session owns it, not the client).
    - No retries and no timeout of its own beyond the transport's `timeout`.
    - Transport errors and undecodable JSON raise `TransportFailureError`;
      a 401 from the contents API raises `SessionExpiredError`.
    """

    def __init__(
        self,
        *,
        api_base: str = DEFAULT_API_BASE,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self._timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # --------------- Public API ---------------
    async def get_user(self, token: str) -> httpx.Response:
        """GET /user. Returns the raw response; callers interpret the status."""
        return await self._request("GET", "/user", token)

    async def get_file(self, repo: str, path: str, token: str, *, ref: str = DEFAULT_BRANCH) -> RemoteFileState:
        """
        Read the current state of `path` in `repo` at `ref`.

        Any non-2xx other than 401 reads as an absent file; a later write
        reports the real problem if there was one.
        """
        resp = await self._request("GET", self._contents_url(repo, path), token, params={"ref": ref})
        if resp.status_code == 401:
            raise SessionExpiredError()
        if not _is_success(resp):
            if resp.status_code != 404:
                logger.warning("Unexpected HTTP %s reading %s in %s; treating as absent", resp.status_code, path, repo)
            return RemoteFileState.absent()

        payload = self._json(resp)
        if not isinstance(payload, dict):
            raise TransportFailureError(f"Unexpected contents payload for {path}")
        return RemoteFileState(exists=True, sha=payload.get("sha"), content_base64=payload.get("content"))

    async def put_file(
        self,
        repo: str,
        path: str,
        token: str,
        *,
        message: str,
        content: str,
        branch: str = DEFAULT_BRANCH,
        sha: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create (no `sha`) or update (with `sha`) `path` with base64 `content`.

        Returns the API's response body on success.
        """
        body: Dict[str, Any] = {"message": message, "content": content, "branch": branch}
        if sha:
            body["sha"] = sha

        resp = await self._request("PUT", self._contents_url(repo, path), token, json=body)
        if resp.status_code == 401:
            raise SessionExpiredError()
        if not _is_success(resp):
            message_text = DEFAULT_PUSH_ERROR
            try:
                err = resp.json()
            except ValueError:
                err = None
            if isinstance(err, dict) and isinstance(err.get("message"), str) and err["message"]:
                message_text = err["message"]
            raise RemoteRejectedError(message_text, status_code=resp.status_code)

        payload = self._json(resp)
        return payload if isinstance(payload, dict) else {}

    # --------------- Internal ---------------
    @staticmethod
    def _contents_url(repo: str, path: str) -> str:
        return f"/repos/{repo}/contents/{quote(path, safe='')}"

    @staticmethod
    def _headers(token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}", "Accept": ACCEPT_HEADER}

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as exc:  # JSON decode error
            raise TransportFailureError("Failed to parse JSON from GitHub API") from exc

    async def _request(self, method: str, path: str, token: str, **kwargs: Any) -> httpx.Response:
        url = f"{self._api_base}{path}"
        try:
            return await self._client.request(method, url, headers=self._headers(token), **kwargs)
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            raise TransportFailureError(f"{method} {url} failed: {exc}") from exc


__all__ = ["GitHubClient", "ACCEPT_HEADER", "DEFAULT_PUSH_ERROR"]
