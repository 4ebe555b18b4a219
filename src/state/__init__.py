"""
State models, persistent key-value backends and the observable session state.

The credential and the cached profile survive restarts through a
`KeyValueStore`; everything the UI renders lives in `SessionState`.
"""

from .credentials import CredentialStore
from .kv import KeyValueStore, MemoryKeyValueStore
from .models import (
    AuthResponse,
    Credential,
    PushResult,
    RemoteFileState,
    SelectedRepository,
    Submission,
    UserProfile,
)
from .session import Cell, SessionState

__all__ = [
    "AuthResponse",
    "Cell",
    "Credential",
    "CredentialStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "PushResult",
    "RemoteFileState",
    "SelectedRepository",
    "SessionState",
    "Submission",
    "UserProfile",
]
