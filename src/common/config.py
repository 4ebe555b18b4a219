from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, Field, SecretStr


DEFAULT_API_BASE = "https://api.github.com"
DEFAULT_BRANCH = "main"

# Re-verify tokens older than 7 days
REVALIDATION_WINDOW_MS = 7 * 24 * 60 * 60 * 1000

ENV_API_BASE = "SOLSYNC_API_BASE"
ENV_TIMEOUT = "SOLSYNC_TIMEOUT"
ENV_REVALIDATION_DAYS = "SOLSYNC_REVALIDATION_DAYS"
ENV_STATE_BUCKET = "SOLSYNC_STATE_BUCKET"
ENV_STATE_KEY = "SOLSYNC_STATE_KEY"
ENV_FERNET_KEY = "SOLSYNC_FERNET_KEY"
ENV_STATE_REGION = "SOLSYNC_STATE_REGION"

DEFAULT_STATE_KEY = "solution-sync/state.json"


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.environ.get(name)
    return val if val not in (None, "") else default


class Settings(BaseModel):
    """
    Runtime settings shared by the GitHub client and the auth/sync components.

    Every field has a working default, so a host that sets nothing gets the
    public GitHub API, branch `main`, a 7-day revalidation window and an
    in-memory credential store. Setting `state_bucket` (plus `fernet_key`)
    switches persistence to the encrypted S3 store.
    """

    api_base: str = Field(default=DEFAULT_API_BASE, description="GitHub REST API root")
    branch: str = Field(default=DEFAULT_BRANCH, description="Branch all reads/writes target")
    timeout: float = Field(default=15.0, gt=0, description="Transport timeout in seconds")
    revalidation_window_ms: int = Field(
        default=REVALIDATION_WINDOW_MS,
        gt=0,
        description="Token age (ms) after which it must be re-verified",
    )
    state_bucket: Optional[str] = Field(default=None, description="S3 bucket for persisted credentials")
    state_key: str = Field(default=DEFAULT_STATE_KEY, description="S3 key of the encrypted state object")
    state_region: Optional[str] = None
    fernet_key: Optional[SecretStr] = Field(default=None, description="Fernet key encrypting the state object")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from optional SOLSYNC_* environment variables."""
        values = {}
        api_base = _getenv(ENV_API_BASE)
        if api_base:
            values["api_base"] = api_base.rstrip("/")
        timeout = _getenv(ENV_TIMEOUT)
        if timeout:
            try:
                values["timeout"] = float(timeout)
            except ValueError as ex:
                raise RuntimeError(f"Invalid {ENV_TIMEOUT}: {timeout!r}") from ex
        days = _getenv(ENV_REVALIDATION_DAYS)
        if days:
            try:
                values["revalidation_window_ms"] = int(float(days) * 24 * 60 * 60 * 1000)
            except ValueError as ex:
                raise RuntimeError(f"Invalid {ENV_REVALIDATION_DAYS}: {days!r}") from ex
        bucket = _getenv(ENV_STATE_BUCKET)
        if bucket:
            fernet_key = _getenv(ENV_FERNET_KEY)
            if not fernet_key:
                raise RuntimeError(f"{ENV_STATE_BUCKET} is set but {ENV_FERNET_KEY} is missing")
            values["state_bucket"] = bucket
            values["state_key"] = _getenv(ENV_STATE_KEY, DEFAULT_STATE_KEY)
            values["state_region"] = _getenv(ENV_STATE_REGION)
            values["fernet_key"] = SecretStr(fernet_key)
        return cls(**values)
