# bucketinode

Building blocks for showing an object-storage bucket as a file system. Object
names such as `foo/bar/baz` become a tree of directories, files and symlinks.

## What it provides

- `bucketinode.name`: `Name` and the constructors `new_root_name`,
  `new_dir_name`, `new_file_name` and `new_descendant_name`. A name has two
  forms: the object name inside the bucket and the local path in the mount.
- `bucketinode.type_cache`: `TypeCache`, which remembers for a limited time
  whether a child name is a file, a directory or an implicit directory.
- `bucketinode.inode`: `Generation`, `LookupCount`, `InodeAttributes`,
  `Dirent`, `DirentType` and the `Inode` base class. An inode is also a
  context manager that holds its lock.
- `bucketinode.back_object`: `GcsObject`, `Listing`, the `Bucket` interface,
  `NotFoundError`, `PreconditionError` and `BackObject`, the object behind an
  inode.
- `bucketinode.symlink`: `SymlinkInode` and `is_symlink`.
- `bucketinode.bucket_ops`: `stat_object_may_not_exist`,
  `object_name_prefix_non_empty` and `create_new_object`, helpers that run
  against a bucket.
- `bucketinode.dir`: `DirInode`. It looks up children, with optional
  implicit directories and type caching. It also lists entries page by page
  and creates and deletes children.
- `bucketinode.explicit_dir`: `ExplicitDirInode`, a directory backed by a
  placeholder object of a known generation.
- `bucketinode.base_dir`: `BaseDirInode` and the `BucketManager` interface,
  for a read-only root whose subdirectories are whole buckets. Operations that
  would create or delete buckets raise `OSError` with `errno.ENOSYS`.
- `bucketinode.error_mapping`: `to_errno` and `with_error_mapping`. The
  wrapper turns every failing operation into an `OSError` carrying an `errno`
  value, and logs the original error.
- `bucketinode.debug_logging`: `with_debug_logging`, which logs every
  file-system operation and its outcome at debug level.
- `bucketinode.monitoring`: `with_monitoring`, `CounterVec`, `HistogramVec`
  and `exponential_buckets`. The wrapper counts requests and errors for each
  operation and records the latency of `look_up_inode`, `open_file` and
  `read_file`.

## Example

```python
from bucketinode.name import new_root_name, new_dir_name, new_file_name

root = new_root_name("photos")
album = new_dir_name(root, "2021")
picture = new_file_name(album, "beach.jpg")

picture.gcs_object_name()          # "2021/beach.jpg"
picture.local_name()               # "photos/2021/beach.jpg"
picture.is_direct_child_of(album)  # True
```

You supply the bucket by implementing the `Bucket` interface from
`bucketinode.back_object`. A directory inode then works against that bucket:

```python
from datetime import datetime, timedelta, timezone

from bucketinode.dir import DirInode
from bucketinode.inode import InodeAttributes

def clock():
    return datetime.now(timezone.utc)

directory = DirInode(
    2, album, InodeAttributes(mode=0o755), True,
    timedelta(seconds=1), my_bucket, clock, clock,
)

with directory:
    entries, next_page = directory.read_entries("")
    result = directory.look_up_child("beach.jpg")
    if result.exists():
        print(result.full_name.local_name())
```

## What it does not do

The package has no bucket client: every bucket is an object you provide.
It has no inode for regular files with local content, no file-system server
and no mount command. The wrappers in `error_mapping`, `debug_logging` and
`monitoring` forward calls to whatever file-system object you give them; they
do not talk to the kernel themselves.

## Running the tests

```
pip install -e ".[test]"
pytest
```