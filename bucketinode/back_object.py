"""Bucket objects and the object (or implied directory) backing an inode."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol

from .name import Name


@dataclass
class GcsObject:
    """A record describing an object in a bucket."""

    name: str
    size: int = 0
    generation: int = 0
    meta_generation: int = 0
    updated: Optional[datetime] = None
    metadata: dict[str, str] = field(default_factory=dict)
    content_type: str = ""
    content_language: str = ""
    content_encoding: str = ""
    cache_control: str = ""
    content_disposition: str = ""
    storage_class: str = ""
    component_count: int = 0


@dataclass
class Listing:
    """One page of a bucket listing."""

    objects: list[GcsObject] = field(default_factory=list)
    collapsed_runs: list[str] = field(default_factory=list)
    continuation_token: str = ""


class NotFoundError(Exception):
    """The requested object or generation does not exist."""


class PreconditionError(Exception):
    """A generation or meta-generation precondition was not met."""


class Bucket(Protocol):
    """The bucket operations the inodes rely on."""

    @property
    def name(self) -> str:
        """The bucket's name."""
        ...

    def create_object(
        self,
        name: str,
        contents: bytes = b"",
        *,
        generation_precondition: Optional[int] = None,
        metadata: Optional[dict[str, str]] = None,
    ) -> GcsObject:
        """Create an object; a precondition of 0 means it must not exist."""
        ...

    def copy_object(
        self,
        src_name: str,
        dst_name: str,
        *,
        src_generation: int = 0,
        src_meta_generation_precondition: Optional[int] = None,
    ) -> GcsObject:
        """Copy an object over whatever exists at ``dst_name``."""
        ...

    def stat_object(self, name: str) -> GcsObject:
        """Return the record of an object; raise NotFoundError if missing."""
        ...

    def list_objects(
        self,
        *,
        prefix: str = "",
        delimiter: str = "",
        continuation_token: str = "",
        max_results: int = 0,
    ) -> Listing:
        """List objects under ``prefix``, one page at a time."""
        ...

    def update_object(
        self,
        name: str,
        *,
        generation: int = 0,
        meta_generation_precondition: Optional[int] = None,
        metadata: Optional[dict[str, Optional[str]]] = None,
    ) -> GcsObject:
        """Update an object's metadata; a value of None removes a key."""
        ...

    def delete_object(
        self,
        name: str,
        *,
        generation: int = 0,
        meta_generation_precondition: Optional[int] = None,
    ) -> None:
        """Delete an object; a missing object or generation is not an error."""
        ...

    def read_object(self, name: str, *, generation: int = 0) -> bytes:
        """Return the contents of an object."""
        ...


@dataclass
class BackObject:
    """The object backing an inode.

    For a file this is a bucket object. For a directory it may be an object,
    a directory implied by its descendants, or the root of a bucket.
    """

    bucket: Bucket
    full_name: Name
    object: Optional[GcsObject] = None
    implicit_dir: bool = False

    def exists(self) -> bool:
        """True if the back object exists implicitly or explicitly."""
        is_explicit = self.object is not None
        is_bucket_root_dir = (
            self.full_name.local_name() != "" and self.full_name.is_bucket_root()
        )
        return is_explicit or self.implicit_dir or is_bucket_root_dir

    def sanity_check(self) -> None:
        """Raise ValueError if the record contradicts itself."""
        if self.object is None:
            return
        if self.implicit_dir:
            raise ValueError(
                f"directory backed by {self.object.name!r} is not implicit"
            )
        if self.full_name.object_name != self.object.name:
            raise ValueError(
                f"{str(self.full_name)!r} backed by {self.object.name!r} "
                "inconsistently"
            )