"""A cache of what is known about the type of each child name."""

from __future__ import annotations

from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Optional


class _LruCache:
    """A bounded mapping that evicts the least recently used entry."""

    def __init__(self, capacity: int) -> None:
        self._capacity = capacity
        self._entries: OrderedDict[str, datetime] = OrderedDict()

    def insert(self, key: str, value: datetime) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
        self._entries[key] = value
        while len(self._entries) > self._capacity:
            self._entries.popitem(last=False)

    def look_up(self, key: str) -> Optional[datetime]:
        value = self._entries.get(key)
        if value is not None:
            self._entries.move_to_end(key)
        return value

    def erase(self, key: str) -> None:
        self._entries.pop(key, None)

    def check_invariants(self) -> None:
        if len(self._entries) > self._capacity:
            raise RuntimeError(
                f"cache holds {len(self._entries)} entries, "
                f"capacity is {self._capacity}"
            )


class TypeCache:
    """Records whether names are files, directories or implicit directories.

    Each entry expires after ``ttl``. A zero ``ttl`` disables caching.
    External synchronisation is required.
    """

    def __init__(self, per_type_capacity: int, ttl: timedelta) -> None:
        self._ttl = ttl
        self._files = _LruCache(per_type_capacity)
        self._dirs = _LruCache(per_type_capacity)
        self._implicit_dirs = _LruCache(per_type_capacity)

    def check_invariants(self) -> None:
        """Raise RuntimeError if internal invariants have been violated."""
        self._files.check_invariants()
        self._dirs.check_invariants()
        self._implicit_dirs.check_invariants()

    def _note(self, cache: _LruCache, now: datetime, name: str) -> None:
        if not self._ttl:
            return
        cache.insert(name, now + self._ttl)

    @staticmethod
    def _fresh(cache: _LruCache, now: datetime, name: str) -> bool:
        expiration = cache.look_up(name)
        if expiration is None:
            return False
        if expiration < now:
            cache.erase(name)
            return False
        return True

    def note_file(self, now: datetime, name: str) -> None:
        """Record that ``name`` is a file. It may also be a directory."""
        self._note(self._files, now, name)

    def note_dir(self, now: datetime, name: str) -> None:
        """Record that ``name`` is a directory. It may also be a file."""
        self._note(self._dirs, now, name)

    def note_implicit_dir(self, now: datetime, name: str) -> None:
        """Record that ``name`` is an implicit directory."""
        self._note(self._implicit_dirs, now, name)

    def erase(self, name: str) -> None:
        """Forget everything about ``name``."""
        self._files.erase(name)
        self._dirs.erase(name)
        self._implicit_dirs.erase(name)

    def is_file(self, now: datetime, name: str) -> bool:
        """Whether ``name`` is currently believed to be a file."""
        return self._fresh(self._files, now, name)

    def is_dir(self, now: datetime, name: str) -> bool:
        """Whether ``name`` is currently believed to be a directory."""
        return self._fresh(self._dirs, now, name)

    def is_implicit_dir(self, now: datetime, name: str) -> bool:
        """Whether ``name`` is currently believed to be an implicit directory."""
        return self._fresh(self._implicit_dirs, now, name)