"""Token verification and the token lifecycle state machine."""

from .identity import IdentityClient
from .manager import AuthState, TokenLifecycleManager

__all__ = ["AuthState", "IdentityClient", "TokenLifecycleManager"]
