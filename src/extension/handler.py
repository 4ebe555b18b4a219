from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from auth.identity import IdentityClient
from auth.manager import AuthRequester, TokenLifecycleManager
from common.config import Settings
from common.errors import SolutionSyncError
from common.github import GitHubClient
from state.credentials import CredentialStore
from state.kv import KeyValueStore, MemoryKeyValueStore
from state.models import SelectedRepository, Submission
from state.s3_store import S3KeyValueStore
from state.session import SessionState
from sync.engine import ContentUpsertEngine


logger = logging.getLogger(__name__)


def build_store(settings: Settings, *, s3: Optional[object] = None) -> KeyValueStore:
    """Encrypted S3 store when a state bucket is configured, else process memory."""
    if not settings.state_bucket:
        logger.warning("No state bucket configured; credentials will not survive a restart")
        return MemoryKeyValueStore()
    if settings.fernet_key is None:
        raise RuntimeError("state_bucket is set but fernet_key is missing")
    return S3KeyValueStore(
        bucket=settings.state_bucket,
        key=settings.state_key,
        fernet_key=settings.fernet_key.get_secret_value(),
        s3=s3,
        region_name=settings.state_region,
    )


class Extension:
    """
    Process-wide wiring of session state, storage, GitHub client and the
    auth/sync components, plus a dispatcher for host messages.

    Messages are dicts with an `action` key:
    - checkAuth
    - authenticate
    - disconnect
    - selectRepo {repo: "owner/name"}
    - submissionCaptured {submission: {problemTitle, language, code}}
    - push {commitMessage?}

    Replies are `{"ok": True, ...}` or `{"ok": False, "error": str}`.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        *,
        request_auth: Optional[AuthRequester] = None,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.session = SessionState()
        self.store = CredentialStore(kv)
        self.github = GitHubClient(
            api_base=self.settings.api_base,
            timeout=self.settings.timeout,
            client=http_client,
        )
        self.identity = IdentityClient(self.github)
        self.auth = TokenLifecycleManager(
            self.session,
            self.store,
            self.identity,
            request_auth=request_auth,
            revalidation_window_ms=self.settings.revalidation_window_ms,
        )
        self.sync = ContentUpsertEngine(
            self.session,
            self.github,
            self.auth.invalidate,
            store=self.store,
            branch=self.settings.branch,
        )

    @classmethod
    def from_env(
        cls,
        *,
        request_auth: Optional[AuthRequester] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "Extension":
        """Build from SOLSYNC_* environment variables, choosing the store via `build_store`."""
        settings = Settings.from_env()
        return cls(build_store(settings), request_auth=request_auth, settings=settings, http_client=http_client)

    async def startup(self) -> None:
        await self.auth.check_auth_status()
        await self.sync.load_latest_submission()

    async def close(self) -> None:
        await self.github.aclose()

    async def __aenter__(self) -> "Extension":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def handle_action(self, message: Dict[str, Any]) -> Dict[str, Any]:
        action = message.get("action") if isinstance(message, dict) else None
        try:
            if action == "checkAuth":
                await self.auth.check_auth_status()
                return self._auth_reply()
            if action == "authenticate":
                await self.auth.authenticate()
                return self._auth_reply()
            if action == "disconnect":
                await self.auth.disconnect()
                return {"ok": True}
            if action == "selectRepo":
                repo = SelectedRepository.parse(str(message.get("repo") or ""))
                self.session.selected_repo.set(repo)
                return {"ok": True, "repo": repo.full_name}
            if action == "submissionCaptured":
                submission = Submission.model_validate(message.get("submission"))
                await self.store.save_submission(submission)
                self.session.latest_submission.set(submission)
                return {"ok": True}
            if action == "push":
                result = await self.sync.push(message.get("commitMessage") or None)
                return {"ok": True, "written": result.written, "path": result.path}
        except (SolutionSyncError, ValidationError, ValueError) as exc:
            return {"ok": False, "error": str(exc)}

        logger.warning("Unknown action: %r", action)
        return {"ok": False, "error": f"Unknown action: {action!r}"}

    def _auth_reply(self) -> Dict[str, Any]:
        user = self.session.user.get()
        reply: Dict[str, Any] = {
            "ok": True,
            "authenticated": self.session.is_authenticated,
            "login": user.login if user else None,
        }
        error = self.session.auth_error.get()
        if error:
            reply["error"] = error
        return reply
