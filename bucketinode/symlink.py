"""Symlink inodes, backed by objects carrying a target in their metadata."""

from __future__ import annotations

from dataclasses import replace

from .back_object import GcsObject
from .inode import Generation, Inode, InodeAttributes
from .name import Name

SYMLINK_METADATA_KEY = "gcsfuse_symlink_target"


def is_symlink(o: GcsObject) -> bool:
    """Whether the object represents a symlink."""
    return SYMLINK_METADATA_KEY in o.metadata


class SymlinkInode(Inode):
    """An inode for a symlink. Its attributes and target never change."""

    def __init__(
        self,
        inode_id: int,
        name: Name,
        o: GcsObject,
        attrs: InodeAttributes,
    ) -> None:
        super().__init__(inode_id, name)
        self._source_generation = Generation(o.generation, o.meta_generation)
        self._attrs = InodeAttributes(
            nlink=1,
            uid=attrs.uid,
            gid=attrs.gid,
            mode=attrs.mode,
            atime=o.updated,
            ctime=o.updated,
            mtime=o.updated,
        )
        self._target = o.metadata.get(SYMLINK_METADATA_KEY, "")

    def source_generation(self) -> Generation:
        """The object generation from which this inode was made."""
        return self._source_generation

    def attributes(self) -> InodeAttributes:
        """A copy of the inode's attributes."""
        return replace(self._attrs)

    def target(self) -> str:
        """The symlink's target."""
        return self._target