from __future__ import annotations

import asyncio
import enum
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import ValidationError

from common.config import REVALIDATION_WINDOW_MS
from common.errors import AuthenticationError
from state.credentials import CredentialStore
from state.models import AuthResponse, Credential
from state.session import SessionState

from .identity import IdentityClient


logger = logging.getLogger(__name__)

SESSION_EXPIRED_MESSAGE = "Session expired. Please sign in again."
CHECK_FAILED_MESSAGE = "Failed to check authentication status"

AuthRequester = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


def _now_ms() -> int:
    return int(time.time() * 1000)


class AuthState(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    VALID = "valid"
    STALE_UNCHECKED = "stale_unchecked"
    REVALIDATING = "revalidating"
    INVALIDATED = "invalidated"


class TokenLifecycleManager:
    """
    Decides whether the stored token can be trusted and keeps the session in sync.

    - `check_auth_status()` trusts a token confirmed within the revalidation
      window without a remote call and publishes the cached profile (fetching it
      only when none is cached); older tokens (or ones with no timestamp)
      are re-verified against GET /user exactly once.
    - `invalidate()` is the cross-cutting transition other components call
      when any remote call answers 401.
    - `authenticate()` asks the host to run the OAuth flow and stores the
      resulting token with a fresh timestamp.
    - `disconnect()` wipes the credential; the session is cleared even if the
      store fails.

    Overlapping `check_auth_status()` calls are serialised on an asyncio.Lock.
    """

    def __init__(
        self,
        session: SessionState,
        store: CredentialStore,
        identity: IdentityClient,
        *,
        request_auth: Optional[AuthRequester] = None,
        revalidation_window_ms: int = REVALIDATION_WINDOW_MS,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._session = session
        self._store = store
        self._identity = identity
        self._request_auth = request_auth
        self._window_ms = revalidation_window_ms
        self._clock = clock
        self._check_lock = asyncio.Lock()
        self._state = AuthState.UNAUTHENTICATED

    @property
    def state(self) -> AuthState:
        return self._state

    def _transition(self, new_state: AuthState) -> None:
        if new_state is not self._state:
            logger.debug("Auth state %s -> %s", self._state.value, new_state.value)
        self._state = new_state

    def needs_revalidation(self, credential: Credential) -> bool:
        if credential.created_at is None:
            return True
        return self._clock() - credential.created_at > self._window_ms

    # --------------- Operations ---------------
    async def check_auth_status(self) -> None:
        async with self._check_lock:
            self._session.auth_loading.set(True)
            self._session.auth_error.set(None)
            try:
                await self._check()
            except Exception:
                logger.exception("Error checking auth status")
                self._session.auth_error.set(CHECK_FAILED_MESSAGE)
            finally:
                self._session.auth_loading.set(False)

    async def _check(self) -> None:
        credential = await self._store.load_credential()
        if credential is None:
            self._transition(AuthState.UNAUTHENTICATED)
            return

        if not self.needs_revalidation(credential):
            self._session.token.set(credential.token)
            self._transition(AuthState.VALID)
            cached = await self._store.load_profile()
            if cached is not None:
                self._session.user.set(cached)
            else:
                await self._refresh_profile(credential.token)
            return

        self._transition(AuthState.STALE_UNCHECKED)
        self._transition(AuthState.REVALIDATING)
        if await self._identity.verify(credential.token):
            await self._store.touch(self._clock())
            self._session.token.set(credential.token)
            self._transition(AuthState.VALID)
            await self._refresh_profile(credential.token)
        else:
            await self.invalidate()

    async def invalidate(self) -> None:
        """Drop the credential everywhere and tell the user the session expired."""
        self._transition(AuthState.INVALIDATED)
        await self._store.clear()
        self._session.clear_auth()
        self._session.auth_error.set(SESSION_EXPIRED_MESSAGE)
        self._transition(AuthState.UNAUTHENTICATED)
        logger.info("Stored GitHub token invalidated")

    async def authenticate(self) -> None:
        if self._request_auth is None:
            raise AuthenticationError("No authentication handler configured")

        self._session.auth_loading.set(True)
        self._session.auth_error.set(None)
        try:
            try:
                raw = await self._request_auth({"action": "authenticate"})
                response = AuthResponse.model_validate(raw)
            except ValidationError as exc:
                response = AuthResponse(success=False, error=f"malformed response ({exc.error_count()} errors)")
            except Exception as exc:
                logger.exception("Authentication request failed")
                response = AuthResponse(success=False, error=str(exc) or exc.__class__.__name__)

            if not response.success or not response.token:
                error = response.error or "no token returned"
                self._session.auth_error.set(f"Authentication failed: {error}")
                logger.error("Authentication failed: %s", error)
                raise AuthenticationError(error)

            await self._store.save_credential(response.token, self._clock())
            self._session.user.set(None)
            self._session.token.set(response.token)
            self._transition(AuthState.VALID)
            await self._refresh_profile(response.token)
        finally:
            self._session.auth_loading.set(False)

    async def disconnect(self) -> None:
        try:
            await self._store.clear()
        finally:
            self._session.clear_auth()
            self._transition(AuthState.UNAUTHENTICATED)

    async def _refresh_profile(self, token: str) -> None:
        profile = await self._identity.fetch_profile(token)
        if profile is None:
            return
        # A concurrent invalidation may have dropped the token meanwhile
        if self._session.token.get() != token:
            return
        self._session.user.set(profile)
        await self._store.save_profile(profile)
