"""Directory inodes backed by object name prefixes in a bucket."""

from __future__ import annotations

import posixpath
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from .back_object import BackObject, Bucket, GcsObject
from .bucket_ops import (
    create_new_object,
    object_name_prefix_non_empty,
    stat_object_may_not_exist,
)
from .inode import Dirent, DirentType, Inode, InodeAttributes
from .name import Name, new_descendant_name, new_dir_name, new_file_name
from .symlink import SYMLINK_METADATA_KEY, is_symlink
from .type_cache import TypeCache

# Metadata key holding a file's mtime, UTC, in RFC 3339 with fractional seconds.
FILE_MTIME_METADATA_KEY = "gcsfuse_mtime"

# Tags the file/symlink of a (file, directory) pair with conflicting names.
# Unambiguous because a newline may not appear in object names.
CONFLICTING_FILE_NAME_SUFFIX = "\n"

_TYPE_CACHE_CAPACITY = 1 << 16
_STAT_WORKERS = 32

Clock = Callable[[], datetime]


def _base(path: str) -> str:
    """The last element of a slash-separated path, ignoring trailing slashes."""
    if path == "":
        return "."
    stripped = path.rstrip("/")
    if stripped == "":
        return "/"
    return posixpath.basename(stripped)


def _format_rfc3339_nano(moment: datetime) -> str:
    """Format a time in UTC with trailing zeros of the fraction dropped.

    A naive datetime is taken to be in UTC already.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    return text + "Z"


class DirInode(Inode):
    """A directory holding the objects for which its name is a prefix.

    With ``implicit_dirs`` set, child directories implied only by their own
    descendants are found too. A non-zero ``type_cache_ttl`` keeps a cache of
    which child names are files or directories, trading consistency for
    fewer round trips.
    """

    def __init__(
        self,
        inode_id: int,
        name: Name,
        attrs: InodeAttributes,
        implicit_dirs: bool,
        type_cache_ttl: timedelta,
        bucket: Bucket,
        mtime_clock: Clock,
        cache_clock: Clock,
    ) -> None:
        if not name.is_dir():
            raise ValueError(f"Unexpected name: {name}")
        super().__init__(inode_id, name)
        self._bucket = bucket
        self._mtime_clock = mtime_clock
        self._cache_clock = cache_clock
        self._implicit_dirs = implicit_dirs
        self._attrs = attrs
        self._cache = TypeCache(_TYPE_CACHE_CAPACITY // 2, type_cache_ttl)

    # Helpers

    def _check_invariants(self) -> None:
        if not self.name.is_dir():
            raise RuntimeError(f"Unexpected name: {self.name}")
        self._cache.check_invariants()

    def _look_up_child_file(self, name: str) -> BackObject:
        full_name = new_file_name(self.name, name)
        return BackObject(
            bucket=self._bucket,
            full_name=full_name,
            object=stat_object_may_not_exist(self._bucket, full_name),
        )

    def _look_up_child_dir(self, dir_name: str) -> BackObject:
        child_name = new_dir_name(self.name, dir_name)
        o = stat_object_may_not_exist(self._bucket, child_name)
        implicit = False
        if self._implicit_dirs:
            implicit = object_name_prefix_non_empty(
                self._bucket, child_name.gcs_object_name()
            )
        return BackObject(
            bucket=self._bucket,
            full_name=child_name,
            object=o,
            implicit_dir=implicit and o is None,
        )

    def _look_up_conflicting(self, name: str) -> BackObject:
        stripped = name.removesuffix(CONFLICTING_FILE_NAME_SUFFIX)
        # A marked name is accepted only if the conflicting directory exists.
        if not self._look_up_child_dir(stripped).exists():
            return BackObject(
                bucket=self._bucket, full_name=new_file_name(self.name, stripped)
            )
        return self._look_up_child_file(stripped)

    def _filter_missing_child_dirs(self, names: Iterable[str]) -> list[str]:
        """Keep only directory names whose placeholder object exists.

        With implicit directories enabled every name is kept.
        """
        names = list(names)
        if self._implicit_dirs:
            return names

        now = self._cache_clock()
        out: list[str] = []
        pending: list[str] = []
        for name in names:
            (out if self._cache.is_dir(now, name) else pending).append(name)

        found: list[str] = []
        if pending:
            def stat(child: str) -> Optional[GcsObject]:
                return stat_object_may_not_exist(
                    self._bucket, new_dir_name(self.name, child)
                )

            workers = min(_STAT_WORKERS, len(pending))
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = list(pool.map(stat, pending))
            found = [n for n, o in zip(pending, results) if o is not None]

        now = self._cache_clock()
        for name in found:
            self._cache.note_dir(now, name)
        out.extend(found)
        return out

    # Public interface

    def bucket(self) -> Bucket:
        """The bucket owning this directory."""
        return self._bucket

    def attributes(self) -> InodeAttributes:
        """The configured attributes, with a link count of one."""
        return replace(self._attrs, nlink=1)

    def look_up_child(self, name: str) -> BackObject:
        """Find the direct child called ``name``, preferring directories.

        A name ending in CONFLICTING_FILE_NAME_SUFFIX refers to the file of a
        (file, directory) pair and is found only if the directory exists.
        The result does not exist if nothing is found.
        """
        now = self._cache_clock()
        cache_says_file = self._cache.is_file(now, name)
        cache_says_dir = self._cache.is_dir(now, name)
        cache_says_implicit_dir = self._cache.is_implicit_dir(now, name)

        if name.endswith(CONFLICTING_FILE_NAME_SUFFIX):
            return self._look_up_conflicting(name)

        file_result: Optional[BackObject] = None
        if not (cache_says_dir and not cache_says_file):
            file_result = self._look_up_child_file(name)

        dir_result: Optional[BackObject] = None
        if not (cache_says_file and not cache_says_dir):
            if cache_says_implicit_dir:
                dir_result = BackObject(
                    bucket=self._bucket,
                    full_name=new_dir_name(self.name, name),
                    object=None,
                    implicit_dir=True,
                )
            else:
                dir_result = self._look_up_child_dir(name)

        file_exists = file_result is not None and file_result.exists()
        dir_exists = dir_result is not None and dir_result.exists()

        now = self._cache_clock()
        if file_exists:
            self._cache.note_file(now, name)
        if dir_exists:
            self._cache.note_dir(now, name)
            if dir_result.implicit_dir:
                self._cache.note_implicit_dir(now, name)

        if dir_exists:
            return dir_result
        if file_exists:
            return file_result
        return BackObject(bucket=self._bucket, full_name=new_file_name(self.name, name))

    def read_descendants(self, limit: int) -> dict[Name, BackObject]:
        """Up to ``limit`` objects anywhere below this directory.

        The type cache is not updated.
        """
        own_name = self.name.gcs_object_name()
        descendants: dict[Name, BackObject] = {}
        tok = ""
        while True:
            listing = self._bucket.list_objects(
                prefix=own_name,
                delimiter="",
                continuation_token=tok,
                max_results=limit + 1,
            )
            for o in listing.objects:
                if len(descendants) >= limit:
                    return descendants
                if o.name == own_name:
                    continue
                name = new_descendant_name(self.name, o.name)
                descendants[name] = BackObject(
                    bucket=self._bucket, full_name=name, object=o, implicit_dir=False
                )
            tok = listing.continuation_token
            if tok == "":
                return descendants

    def read_objects(
        self, tok: str
    ) -> tuple[list[BackObject], list[BackObject], str]:
        """Read one page of children as (files, dirs, continuation token).

        Supply an empty token first; an empty token back means the end.
        Directories are all reported as implicit.
        """
        own_name = self.name.gcs_object_name()
        listing = self._bucket.list_objects(
            prefix=own_name, delimiter="/", continuation_token=tok
        )
        now = self._cache_clock()

        files: list[BackObject] = []
        for o in listing.objects:
            if o.name == own_name:
                continue
            base = _base(o.name)
            files.append(
                BackObject(
                    bucket=self._bucket,
                    full_name=new_file_name(self.name, base),
                    object=o,
                    implicit_dir=False,
                )
            )
            self._cache.note_file(now, base)

        dir_names = self._filter_missing_child_dirs(
            _base(p) for p in listing.collapsed_runs
        )

        dirs: list[BackObject] = []
        for name in dir_names:
            dirs.append(
                BackObject(
                    bucket=self._bucket,
                    full_name=new_dir_name(self.name, name),
                    object=None,
                    implicit_dir=True,
                )
            )
            self._cache.note_dir(now, name)

        return files, dirs, listing.continuation_token

    def read_entries(self, tok: str) -> tuple[list[Dirent], str]:
        """Read one page of directory entries and a continuation token."""
        files, dirs, new_tok = self.read_objects(tok)
        entries = [
            Dirent(
                name=_base(f.full_name.local_name()),
                type=DirentType.LINK if is_symlink(f.object) else DirentType.FILE,
            )
            for f in files
        ]
        entries.extend(
            Dirent(name=_base(d.full_name.local_name()), type=DirentType.DIRECTORY)
            for d in dirs
        )
        return entries, new_tok

    def create_child_file(self, name: str) -> BackObject:
        """Create an empty child file; PreconditionError if it already exists."""
        full_name = new_file_name(self.name, name)
        metadata = {
            FILE_MTIME_METADATA_KEY: _format_rfc3339_nano(self._mtime_clock())
        }
        o = create_new_object(self._bucket, full_name, metadata)
        self._cache.note_file(self._cache_clock(), name)
        return BackObject(bucket=self._bucket, full_name=full_name, object=o)

    def clone_to_child_file(self, name: str, src: GcsObject) -> BackObject:
        """Copy ``src`` over whatever exists at the child file ``name``."""
        self._cache.erase(name)
        full_name = new_file_name(self.name, name)
        o = self._bucket.copy_object(
            src.name,
            full_name.gcs_object_name(),
            src_generation=src.generation,
            src_meta_generation_precondition=src.meta_generation,
        )
        self._cache.note_file(self._cache_clock(), name)
        return BackObject(bucket=self._bucket, full_name=full_name, object=o)

    def create_child_symlink(self, name: str, target: str) -> BackObject:
        """Create a symlink child; PreconditionError if it already exists."""
        full_name = new_file_name(self.name, name)
        o = create_new_object(
            self._bucket, full_name, {SYMLINK_METADATA_KEY: target}
        )
        self._cache.note_file(self._cache_clock(), name)
        return BackObject(bucket=self._bucket, full_name=full_name, object=o)

    def create_child_dir(self, name: str) -> BackObject:
        """Create a child directory placeholder; PreconditionError if present."""
        full_name = new_dir_name(self.name, name)
        o = create_new_object(self._bucket, full_name, None)
        self._cache.note_dir(self._cache_clock(), name)
        return BackObject(bucket=self._bucket, full_name=full_name, object=o)

    def delete_child_file(
        self,
        name: str,
        generation: int,
        meta_generation: Optional[int],
    ) -> None:
        """Delete a child file or symlink; generation zero means the latest.

        A missing object or generation is not an error.
        """
        self._cache.erase(name)
        child_name = new_file_name(self.name, name)
        self._bucket.delete_object(
            child_name.gcs_object_name(),
            generation=generation,
            meta_generation_precondition=meta_generation,
        )

    def delete_child_dir(self, name: str) -> None:
        """Delete the placeholder object of a child directory."""
        self._cache.erase(name)
        child_name = new_dir_name(self.name, name)
        self._bucket.delete_object(child_name.gcs_object_name())