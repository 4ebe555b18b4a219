from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Protocol


class KeyValueStore(Protocol):
    """
    Async key-value persistence provided by the host runtime.

    - `get(keys)` returns only the keys that are present.
    - `set(items)` merges `items` into the store.
    - `clear(keys)` removes the given keys; `clear()` removes everything.
    """

    async def get(self, keys: Iterable[str]) -> Dict[str, Any]: ...

    async def set(self, items: Dict[str, Any]) -> None: ...

    async def clear(self, keys: Optional[Iterable[str]] = None) -> None: ...


class MemoryKeyValueStore:
    """Process-local store; contents are lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})

    async def get(self, keys: Iterable[str]) -> Dict[str, Any]:
        return {k: self._data[k] for k in keys if k in self._data}

    async def set(self, items: Dict[str, Any]) -> None:
        self._data.update(items)

    async def clear(self, keys: Optional[Iterable[str]] = None) -> None:
        if keys is None:
            self._data.clear()
            return
        for k in keys:
            self._data.pop(k, None)

    def snapshot(self) -> Dict[str, Any]:
        return dict(self._data)


__all__ = ["KeyValueStore", "MemoryKeyValueStore"]
