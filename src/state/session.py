from __future__ import annotations

from typing import Callable, Generic, List, Optional, TypeVar

from .models import SelectedRepository, Submission, UserProfile


T = TypeVar("T")
Listener = Callable[[T], None]


class Cell(Generic[T]):
    """
    Observable value holder.

    - `subscribe(fn)` calls `fn` with the current value right away, then again
      on every change; it returns a callable that unsubscribes.
    - `set()` notifies listeners synchronously, in registration order, only
      when the new value differs from the current one.
    """

    def __init__(self, value: T) -> None:
        self._value = value
        self._listeners: List[Listener[T]] = []

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        if value is self._value or value == self._value:
            return
        self._value = value
        for listener in list(self._listeners):
            listener(value)

    def subscribe(self, listener: Listener[T]) -> Callable[[], None]:
        self._listeners.append(listener)
        listener(self._value)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


class SessionState:
    """
    Process-wide observable state read by the UI.

    Built once at startup and passed to every component that needs it.
    `auth_loading` starts as True so the UI shows a spinner until the first
    auth check completes.
    """

    def __init__(self) -> None:
        self.token: Cell[Optional[str]] = Cell(None)
        self.user: Cell[Optional[UserProfile]] = Cell(None)
        self.auth_loading: Cell[bool] = Cell(True)
        self.auth_error: Cell[Optional[str]] = Cell(None)
        self.push_loading: Cell[bool] = Cell(False)
        self.push_error: Cell[Optional[str]] = Cell(None)
        self.push_success: Cell[bool] = Cell(False)
        self.latest_submission: Cell[Optional[Submission]] = Cell(None)
        self.selected_repo: Cell[Optional[SelectedRepository]] = Cell(None)

    @property
    def is_authenticated(self) -> bool:
        return self.token.get() is not None

    def clear_auth(self) -> None:
        # Drop the profile first so no listener sees a user without its token
        self.user.set(None)
        self.token.set(None)


__all__ = ["Cell", "SessionState"]
