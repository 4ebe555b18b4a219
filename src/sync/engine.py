from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from common.config import DEFAULT_BRANCH
from common.errors import (
    NoRepositorySelectedError,
    NoSubmissionError,
    NotAuthenticatedError,
    SessionExpiredError,
)
from common.github import GitHubClient
from common.languages import default_commit_message, destination_path, encode_content
from state.credentials import CredentialStore
from state.models import PushResult, Submission
from state.session import SessionState


logger = logging.getLogger(__name__)

Invalidate = Callable[[], Awaitable[None]]


class ContentUpsertEngine:
    """
    Publishes the latest submission to `<title>.<ext>` on the selected repo.

    Every push reads the file first: the returned `sha` is required by the
    contents API to update an existing file, and an unchanged file is left
    alone (`written=False`) instead of producing an empty commit. A 401 on
    either request calls `invalidate` and raises `SessionExpiredError`.

    Pushes are serialised on an asyncio.Lock so two overlapping pushes never
    race on the same `sha`.
    """

    def __init__(
        self,
        session: SessionState,
        github: GitHubClient,
        invalidate: Invalidate,
        *,
        store: Optional[CredentialStore] = None,
        branch: str = DEFAULT_BRANCH,
    ) -> None:
        self._session = session
        self._github = github
        self._invalidate = invalidate
        self._store = store
        self._branch = branch
        self._push_lock = asyncio.Lock()

    async def load_latest_submission(self) -> Optional[Submission]:
        """Copy the submission the host last captured into the session, if any."""
        if self._store is None:
            return None
        submission = await self._store.load_submission()
        if submission is not None:
            self._session.latest_submission.set(submission)
        return submission

    async def push(
        self,
        commit_message: Optional[str] = None,
        *,
        submission: Optional[Submission] = None,
    ) -> PushResult:
        token = self._session.token.get()
        repo = self._session.selected_repo.get()
        submission = submission or self._session.latest_submission.get()

        if not token:
            raise NotAuthenticatedError()
        if repo is None:
            raise NoRepositorySelectedError()
        if submission is None:
            raise NoSubmissionError()

        async with self._push_lock:
            self._session.push_loading.set(True)
            self._session.push_error.set(None)
            self._session.push_success.set(False)
            try:
                return await self._upsert(token, repo.full_name, submission, commit_message)
            except Exception as exc:
                logger.error("Error pushing %r to %s: %s", submission.problem_title, repo.full_name, exc)
                self._session.push_error.set(str(exc) or "Failed to push")
                raise
            finally:
                self._session.push_loading.set(False)

    async def _upsert(
        self,
        token: str,
        repo: str,
        submission: Submission,
        commit_message: Optional[str],
    ) -> PushResult:
        path = destination_path(submission)
        message = commit_message or default_commit_message(submission)
        content = encode_content(submission.code)

        try:
            existing = await self._github.get_file(repo, path, token, ref=self._branch)
        except SessionExpiredError:
            await self._invalidate()
            raise

        sha: Optional[str] = None
        if existing.exists:
            if existing.decoded_content() == submission.code.encode("utf-8"):
                logger.info("%s in %s is already up to date", path, repo)
                self._session.push_success.set(True)
                return PushResult(written=False, path=path, commit_message=message)
            sha = existing.sha

        try:
            await self._github.put_file(
                repo,
                path,
                token,
                message=message,
                content=content,
                branch=self._branch,
                sha=sha,
            )
        except SessionExpiredError:
            await self._invalidate()
            raise

        logger.info("%s %s in %s", "Updated" if sha else "Created", path, repo)
        self._session.push_success.set(True)
        return PushResult(written=True, path=path, commit_message=message)
