from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from .kv import KeyValueStore
from .models import Credential, Submission, UserProfile


logger = logging.getLogger(__name__)

KEY_TOKEN = "token"
KEY_TOKEN_CREATED_AT = "tokenCreatedAt"
KEY_USER = "user"
KEY_LATEST_SUBMISSION = "latestSubmission"

AUTH_KEYS = (KEY_TOKEN, KEY_TOKEN_CREATED_AT, KEY_USER)


class CredentialStore:
    """
    Typed access to the host key-value store for auth and submission data.

    Only this class knows the storage keys. `clear()` erases the credential and
    cached profile but keeps the last captured submission.
    """

    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv

    async def load_credential(self) -> Optional[Credential]:
        data = await self._kv.get([KEY_TOKEN, KEY_TOKEN_CREATED_AT])
        token = data.get(KEY_TOKEN)
        if not token or not isinstance(token, str):
            return None
        created_at = data.get(KEY_TOKEN_CREATED_AT)
        if isinstance(created_at, bool) or not isinstance(created_at, (int, float)):
            created_at = None
        return Credential(token=token, created_at=None if created_at is None else int(created_at))

    async def save_credential(self, token: str, created_at: int) -> None:
        """Store a new token; any profile cached for a previous token is dropped."""
        await self._kv.clear([KEY_USER])
        await self._kv.set({KEY_TOKEN: token, KEY_TOKEN_CREATED_AT: created_at})

    async def touch(self, created_at: int) -> None:
        """Record a fresh confirmation time for the stored token."""
        await self._kv.set({KEY_TOKEN_CREATED_AT: created_at})

    async def load_profile(self) -> Optional[UserProfile]:
        data = await self._kv.get([KEY_USER])
        raw = data.get(KEY_USER)
        if raw is None:
            return None
        try:
            return UserProfile.model_validate(raw)
        except ValidationError:
            logger.warning("Ignoring malformed cached user profile")
            return None

    async def save_profile(self, profile: UserProfile) -> None:
        await self._kv.set({KEY_USER: profile.model_dump()})

    async def load_submission(self) -> Optional[Submission]:
        data = await self._kv.get([KEY_LATEST_SUBMISSION])
        raw = data.get(KEY_LATEST_SUBMISSION)
        if raw is None:
            return None
        try:
            return Submission.model_validate(raw)
        except ValidationError:
            logger.warning("Ignoring malformed stored submission")
            return None

    async def save_submission(self, submission: Submission) -> None:
        await self._kv.set({KEY_LATEST_SUBMISSION: submission.model_dump(by_alias=True)})

    async def clear(self) -> None:
        await self._kv.clear(AUTH_KEYS)


__all__ = [
    "AUTH_KEYS",
    "CredentialStore",
    "KEY_LATEST_SUBMISSION",
    "KEY_TOKEN",
    "KEY_TOKEN_CREATED_AT",
    "KEY_USER",
]
