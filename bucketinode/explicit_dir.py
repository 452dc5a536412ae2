"""Directory inodes backed by a placeholder object of a known generation."""

from __future__ import annotations

from datetime import timedelta

from .back_object import Bucket, GcsObject
from .dir import Clock, DirInode
from .inode import Generation, InodeAttributes
from .name import Name


class ExplicitDirInode(DirInode):
    """A directory backed by a particular generation of a bucket object."""

    def __init__(
        self,
        inode_id: int,
        name: Name,
        o: GcsObject,
        attrs: InodeAttributes,
        implicit_dirs: bool,
        type_cache_ttl: timedelta,
        bucket: Bucket,
        mtime_clock: Clock,
        cache_clock: Clock,
    ) -> None:
        super().__init__(
            inode_id,
            name,
            attrs,
            implicit_dirs,
            type_cache_ttl,
            bucket,
            mtime_clock,
            cache_clock,
        )
        self._generation = Generation(o.generation, o.meta_generation)

    def source_generation(self) -> Generation:
        """The generation of the object backing this directory."""
        return self._generation