"""The base directory whose subdirectories are the roots of buckets."""

from __future__ import annotations

import errno
import os
import threading
from dataclasses import replace
from typing import NoReturn, Optional, Protocol

from .back_object import BackObject, Bucket, GcsObject
from .inode import Dirent, DirentType, Inode, InodeAttributes
from .name import Name, new_root_name


class BucketManager(Protocol):
    """Sets up buckets by name and lists the buckets available."""

    def set_up_bucket(self, name: str) -> Bucket:
        """Return a ready bucket called ``name``; raise if it cannot be opened."""
        ...

    def list_buckets(self) -> list[str]:
        """Names of the buckets that can be mounted."""
        ...

    def shut_down(self) -> None:
        """Release resources held by the manager."""
        ...


def _unsupported() -> NoReturn:
    raise OSError(errno.ENOSYS, os.strerror(errno.ENOSYS))


class BaseDirInode(Inode):
    """A read-only directory listing buckets as its children.

    Operations that would create or delete buckets raise OSError with
    errno ENOSYS.
    """

    def __init__(
        self,
        inode_id: int,
        name: Name,
        attrs: InodeAttributes,
        bucket_manager: BucketManager,
    ) -> None:
        # The base directory is always the unnamed root, whatever is passed.
        super().__init__(inode_id, new_root_name(""))
        self._attrs = attrs
        self._bucket_manager = bucket_manager
        self._buckets: dict[str, Bucket] = {}
        self._buckets_mu = threading.Lock()

    def _look_up_or_set_up_bucket(self, name: str) -> Bucket:
        with self._buckets_mu:
            bucket = self._buckets.get(name)
            if bucket is None:
                bucket = self._bucket_manager.set_up_bucket(name)
                self._buckets[name] = bucket
            return bucket

    def attributes(self) -> InodeAttributes:
        """The configured attributes, with a link count of one."""
        return replace(self._attrs, nlink=1)

    def look_up_child(self, name: str) -> BackObject:
        """The root of the bucket called ``name``, setting it up on first use."""
        bucket = self._look_up_or_set_up_bucket(name)
        return BackObject(
            bucket=bucket,
            full_name=new_root_name(bucket.name),
            object=None,
            implicit_dir=False,
        )

    def read_descendants(self, limit: int) -> dict[Name, BackObject]:
        """Not supported on the base directory."""
        _unsupported()

    def read_objects(
        self, tok: str
    ) -> tuple[list[BackObject], list[BackObject], str]:
        """Not supported on the base directory."""
        _unsupported()

    def read_entries(self, tok: str) -> tuple[list[Dirent], str]:
        """One directory entry per bucket, with an empty continuation token."""
        entries = [
            Dirent(name=bucket_name, type=DirentType.DIRECTORY)
            for bucket_name in self._bucket_manager.list_buckets()
        ]
        return entries, ""

    def create_child_file(self, name: str) -> BackObject:
        """Not supported on the base directory."""
        _unsupported()

    def clone_to_child_file(self, name: str, src: GcsObject) -> BackObject:
        """Not supported on the base directory."""
        _unsupported()

    def create_child_symlink(self, name: str, target: str) -> BackObject:
        """Not supported on the base directory."""
        _unsupported()

    def create_child_dir(self, name: str) -> BackObject:
        """Not supported on the base directory."""
        _unsupported()

    def delete_child_file(
        self,
        name: str,
        generation: int,
        meta_generation: Optional[int],
    ) -> None:
        """Not supported on the base directory."""
        _unsupported()

    def delete_child_dir(self, name: str) -> None:
        """Not supported on the base directory."""
        _unsupported()