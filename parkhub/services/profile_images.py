from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Optional, Protocol

from ..config import settings


class ProfileImageStore(Protocol):
    """user id -> profile image url"""

    def get(self, user_id: int) -> Optional[str]: ...

    def put(self, user_id: int, url: str) -> None: ...

    def discard(self, user_id: int) -> None: ...


class LRUProfileImageStore:
    """In-process store bounded to ``max_entries``; least recently used entries go first.

    Contents are lost on restart. The users table stays the source of truth,
    so a miss just means a database read.
    """

    def __init__(self, max_entries: int = 1024):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self._data: "OrderedDict[int, str]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, user_id: int) -> Optional[str]:
        with self._lock:
            url = self._data.get(user_id)
            if url is not None:
                self._data.move_to_end(user_id)
            return url

    def put(self, user_id: int, url: str) -> None:
        with self._lock:
            self._data[user_id] = url
            self._data.move_to_end(user_id)
            while len(self._data) > self.max_entries:
                self._data.popitem(last=False)

    def discard(self, user_id: int) -> None:
        with self._lock:
            self._data.pop(user_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


_default_store: Optional[LRUProfileImageStore] = None


def get_profile_image_store() -> ProfileImageStore:
    """FastAPI dependency; override it in app.dependency_overrides to swap the backend."""
    global _default_store
    if _default_store is None:
        _default_store = LRUProfileImageStore(settings.profile_image_cache_size)
    return _default_store
