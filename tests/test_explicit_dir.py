from datetime import datetime, timedelta

import pytest

from bucketinode.back_object import GcsObject, Listing, NotFoundError
from bucketinode.explicit_dir import ExplicitDirInode
from bucketinode.inode import Generation, InodeAttributes
from bucketinode.name import new_dir_name, new_file_name, new_root_name

NOW = datetime(2015, 4, 5, 2, 15)


class _EmptyBucket:
    name = "some_bucket"

    def stat_object(self, name):
        raise NotFoundError(name)

    def list_objects(self, *, prefix="", delimiter="", continuation_token="",
                     max_results=0):
        return Listing()


def _make(name=None, generation=7, meta_generation=3):
    if name is None:
        name = new_dir_name(new_root_name(""), "foo/bar/")
    o = GcsObject(
        name=name.gcs_object_name(),
        generation=generation,
        meta_generation=meta_generation,
    )
    return ExplicitDirInode(
        17,
        name,
        o,
        InodeAttributes(uid=123, gid=456, mode=0o712),
        False,
        timedelta(seconds=1),
        _EmptyBucket(),
        lambda: NOW,
        lambda: NOW,
    )


def test_source_generation_comes_from_object():
    inode = _make(generation=7, meta_generation=3)
    assert inode.source_generation() == Generation(7, 3)


def test_id_and_name():
    inode = _make()
    assert inode.id == 17
    assert inode.name.gcs_object_name() == "foo/bar/"


def test_attributes():
    inode = _make()
    with inode:
        attrs = inode.attributes()
    assert attrs.nlink == 1
    assert attrs.uid == 123
    assert attrs.gid == 456
    assert attrs.mode == 0o712


def test_look_up_missing_child():
    inode = _make()
    with inode:
        result = inode.look_up_child("qux")
    assert result.exists() is False


def test_read_entries_empty():
    inode = _make()
    with inode:
        entries, tok = inode.read_entries("")
    assert entries == []
    assert tok == ""


def test_file_name_rejected():
    name = new_file_name(new_root_name(""), "foo")
    with pytest.raises(ValueError):
        _make(name=name)


def test_lookup_count():
    inode = _make()
    with inode:
        inode.increment_lookup_count()
        inode.increment_lookup_count()
        assert inode.decrement_lookup_count(1) is False
        assert inode.decrement_lookup_count(1) is True