from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from common.errors import TransportFailureError
from common.github import GitHubClient
from state.models import UserProfile


logger = logging.getLogger(__name__)


class IdentityClient:
    """
    Answers "who am I" for a token via GET /user.

    `verify` fails closed: an unreachable API counts as an invalid token.
    `fetch_profile` fails silently and returns None.
    """

    def __init__(self, github: GitHubClient) -> None:
        self._github = github

    async def verify(self, token: str) -> bool:
        try:
            resp = await self._github.get_user(token)
        except TransportFailureError as exc:
            logger.warning("Token verification could not reach GitHub: %s", exc)
            return False
        if not resp.is_success:
            logger.info("Token verification rejected (HTTP %s)", resp.status_code)
            return False
        return True

    async def fetch_profile(self, token: str) -> Optional[UserProfile]:
        try:
            resp = await self._github.get_user(token)
        except TransportFailureError as exc:
            logger.warning("Fetching user profile failed: %s", exc)
            return None
        if not resp.is_success:
            logger.debug("Profile fetch returned HTTP %s", resp.status_code)
            return None
        try:
            return UserProfile.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            logger.warning("Malformed user profile payload: %s", exc)
            return None
