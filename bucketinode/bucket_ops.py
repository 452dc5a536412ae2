"""Small bucket helpers shared by directory inodes."""

from __future__ import annotations

from typing import Optional

from .back_object import Bucket, GcsObject, NotFoundError
from .name import Name


def stat_object_may_not_exist(bucket: Bucket, name: Name) -> Optional[GcsObject]:
    """Stat the object for ``name``; return None rather than fail if missing."""
    try:
        return bucket.stat_object(name.gcs_object_name())
    except NotFoundError:
        return None


def object_name_prefix_non_empty(bucket: Bucket, prefix: str) -> bool:
    """Whether at least one object name starts with ``prefix``."""
    listing = bucket.list_objects(prefix=prefix, max_results=1)
    return len(listing.objects) != 0


def create_new_object(
    bucket: Bucket,
    name: Name,
    metadata: Optional[dict[str, str]],
) -> GcsObject:
    """Create an empty object for ``name``, failing if one already exists.

    Raises PreconditionError (from the bucket) when the object exists.
    """
    return bucket.create_object(
        name.gcs_object_name(),
        b"",
        generation_precondition=0,
        metadata=metadata,
    )