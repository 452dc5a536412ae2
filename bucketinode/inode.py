"""Common inode types: attributes, directory entries, generations and counts."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Optional

from .name import Name


@dataclass
class InodeAttributes:
    """Attributes reported for an inode."""

    size: int = 0
    nlink: int = 0
    mode: int = 0
    atime: Optional[datetime] = None
    mtime: Optional[datetime] = None
    ctime: Optional[datetime] = None
    uid: int = 0
    gid: int = 0


class DirentType(IntEnum):
    """Type of a directory entry, using the d_type values."""

    UNKNOWN = 0
    FIFO = 1
    CHAR = 2
    DIRECTORY = 4
    BLOCK = 6
    FILE = 8
    LINK = 10
    SOCKET = 12


@dataclass
class Dirent:
    """A directory entry."""

    name: str
    type: DirentType = DirentType.UNKNOWN
    offset: int = 0
    inode: int = 0


@dataclass(frozen=True, order=True)
class Generation:
    """Object generation and meta-generation, ordered lexicographically."""

    object: int
    metadata: int

    def compare(self, other: Generation) -> int:
        """Return -1, 0 or 1 as this is less than, equal to or above ``other``."""
        if self < other:
            return -1
        if self > other:
            return 1
        return 0


@dataclass
class LookupCount:
    """A lookup count that refuses to be misused. Not thread-safe."""

    id: int
    count: int = 0
    destroyed: bool = False

    def _check_alive(self) -> None:
        if self.destroyed:
            raise RuntimeError(f"Inode {self.id} has already been destroyed")

    def inc(self) -> None:
        """Increment the count."""
        self._check_alive()
        self.count += 1

    def dec(self, n: int) -> bool:
        """Decrease the count by ``n``; return True once it reaches zero."""
        self._check_alive()
        if n < 0:
            raise ValueError(f"n must not be negative: {n}")
        if n > self.count:
            raise RuntimeError(
                f"n is greater than lookup count: {n} vs. {self.count}"
            )
        self.count -= n
        return self.count == 0


class Inode(ABC):
    """Base of all inodes: an id, a name, a lock and a lookup count.

    Methods other than ``lock``, ``unlock``, ``id`` and ``name`` require the
    lock to be held. The inode is also a context manager holding its lock.
    """

    def __init__(self, inode_id: int, name: Name) -> None:
        self.id = inode_id
        self.name = name
        self._mu = threading.Lock()
        self._lc = LookupCount(inode_id)

    def _check_invariants(self) -> None:
        """Raise if the inode's invariants are broken. Extended by subclasses."""
        if self._lc.id != self.id:
            raise RuntimeError(
                f"Lookup count belongs to inode {self._lc.id}, not {self.id}"
            )
        if self._lc.count < 0:
            raise RuntimeError(f"Negative lookup count: {self._lc.count}")

    def lock(self) -> None:
        """Acquire the inode lock."""
        self._mu.acquire()
        self._check_invariants()

    def unlock(self) -> None:
        """Release the inode lock."""
        self._check_invariants()
        self._mu.release()

    def __enter__(self) -> Inode:
        self.lock()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unlock()

    def increment_lookup_count(self) -> None:
        """Increment the lookup count."""
        self._lc.inc()

    def decrement_lookup_count(self, n: int) -> bool:
        """Decrement the lookup count; True means ``destroy`` should be called."""
        return self._lc.dec(n)

    def destroy(self) -> None:
        """Release local resources; the lookup count refuses further use."""
        self._lc.destroyed = True

    @abstractmethod
    def attributes(self) -> InodeAttributes:
        """Return up to date attributes for this inode."""