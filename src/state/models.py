from __future__ import annotations

import base64
import binascii
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Credential(BaseModel):
    """
    Persisted GitHub credential.

    Fields
    - token: opaque OAuth token string.
    - created_at: epoch milliseconds when the token was stored or last
      re-verified. None when the timestamp was never recorded, which
      forces a revalidation on the next auth check.
    """

    token: str
    created_at: Optional[int] = Field(default=None, description="Epoch ms of last confirmation")


class UserProfile(BaseModel):
    """Cached `/user` payload for the current token. Extra fields are kept as-is."""

    model_config = ConfigDict(extra="allow")

    login: str
    id: int
    avatar_url: Optional[str] = None
    name: Optional[str] = None
    html_url: Optional[str] = None


class SelectedRepository(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def parse(cls, full_name: str) -> "SelectedRepository":
        """Parse an `owner/name` string."""
        owner, sep, name = (full_name or "").strip().partition("/")
        if not sep or not owner or not name or "/" in name:
            raise ValueError(f"Expected 'owner/name', got {full_name!r}")
        return cls(owner=owner, name=name)


class Submission(BaseModel):
    """
    One accepted solution captured by the host, consumed once per push attempt.

    Accepts both snake_case and the camelCase keys (`problemTitle`) the host
    writes into the persistent store.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    problem_title: str = Field(..., alias="problemTitle")
    language: str
    code: str


class RemoteFileState(BaseModel):
    """Current state of the destination file; fetched fresh for every push."""

    exists: bool
    sha: Optional[str] = None
    content_base64: Optional[str] = None

    @classmethod
    def absent(cls) -> "RemoteFileState":
        return cls(exists=False)

    def normalized_content(self) -> Optional[str]:
        """Base64 content with the API's line breaks removed."""
        if self.content_base64 is None:
            return None
        return self.content_base64.replace("\n", "")

    def decoded_content(self) -> Optional[bytes]:
        content = self.normalized_content()
        if content is None:
            return None
        try:
            return base64.b64decode(content, validate=True)
        except (binascii.Error, ValueError):
            return None


class PushResult(BaseModel):
    written: bool
    path: str
    commit_message: str


class AuthResponse(BaseModel):
    """Reply of the host's `{"action": "authenticate"}` request."""

    success: bool
    token: Optional[str] = None
    error: Optional[str] = None


__all__ = [
    "AuthResponse",
    "Credential",
    "PushResult",
    "RemoteFileState",
    "SelectedRepository",
    "Submission",
    "UserProfile",
]
