from typing import Optional

import pytest

from bucketinode.back_object import (
    GcsObject,
    Listing,
    NotFoundError,
    PreconditionError,
)
from bucketinode.bucket_ops import (
    create_new_object,
    object_name_prefix_non_empty,
    stat_object_may_not_exist,
)
from bucketinode.name import new_dir_name, new_file_name, new_root_name


class FakeBucket:
    def __init__(self, name="some_bucket"):
        self.name = name
        self.objects: dict[str, GcsObject] = {}
        self.contents: dict[str, bytes] = {}
        self.next_generation = 1
        self.list_calls: list[dict] = []
        self.create_calls: list[dict] = []

    def create_object(
        self,
        name,
        contents=b"",
        *,
        generation_precondition: Optional[int] = None,
        metadata=None,
    ):
        self.create_calls.append(
            {"name": name, "generation_precondition": generation_precondition}
        )
        if generation_precondition == 0 and name in self.objects:
            raise PreconditionError(f"Precondition failed: {name!r} exists")
        o = GcsObject(
            name=name,
            size=len(contents),
            generation=self.next_generation,
            meta_generation=1,
            metadata=dict(metadata or {}),
        )
        self.next_generation += 1
        self.objects[name] = o
        self.contents[name] = contents
        return o

    def stat_object(self, name):
        try:
            return self.objects[name]
        except KeyError:
            raise NotFoundError(name) from None

    def list_objects(
        self, *, prefix="", delimiter="", continuation_token="", max_results=0
    ):
        self.list_calls.append({"prefix": prefix, "max_results": max_results})
        names = sorted(n for n in self.objects if n.startswith(prefix))
        if max_results:
            names = names[:max_results]
        return Listing(objects=[self.objects[n] for n in names])


class BrokenBucket(FakeBucket):
    def stat_object(self, name):
        raise RuntimeError("backend unavailable")


ROOT = new_root_name("")


def test_stat_missing_object_returns_none():
    bucket = FakeBucket()
    assert stat_object_may_not_exist(bucket, new_file_name(ROOT, "missing")) is None


def test_stat_existing_object_returns_record():
    bucket = FakeBucket()
    created = bucket.create_object("foo/bar", b"taco")
    name = new_file_name(new_dir_name(ROOT, "foo"), "bar")
    found = stat_object_may_not_exist(bucket, name)
    assert found == created
    assert found.name == "foo/bar"


def test_stat_propagates_other_errors():
    bucket = BrokenBucket()
    with pytest.raises(RuntimeError, match="backend unavailable"):
        stat_object_may_not_exist(bucket, new_file_name(ROOT, "x"))


def test_prefix_non_empty_detects_descendants():
    bucket = FakeBucket()
    bucket.create_object("foo/bar/asdf")
    assert object_name_prefix_non_empty(bucket, "foo/bar/") is True
    assert object_name_prefix_non_empty(bucket, "foo/") is True
    assert object_name_prefix_non_empty(bucket, "qux/") is False


def test_prefix_listing_asks_for_one_result():
    bucket = FakeBucket()
    bucket.create_object("a/1")
    bucket.create_object("a/2")
    object_name_prefix_non_empty(bucket, "a/")
    assert bucket.list_calls == [{"prefix": "a/", "max_results": 1}]


def test_create_new_object_is_empty_with_metadata():
    bucket = FakeBucket()
    name = new_file_name(new_dir_name(ROOT, "foo/bar"), "qux")
    o = create_new_object(bucket, name, {"gcsfuse_symlink_target": "taco"})
    assert o.name == "foo/bar/qux"
    assert o.size == 0
    assert o.metadata == {"gcsfuse_symlink_target": "taco"}
    assert bucket.contents["foo/bar/qux"] == b""
    assert bucket.create_calls[-1]["generation_precondition"] == 0


def test_create_new_object_without_metadata():
    bucket = FakeBucket()
    o = create_new_object(bucket, new_dir_name(ROOT, "qux"), None)
    assert o.name == "qux/"
    assert o.metadata == {}


def test_create_new_object_fails_if_exists():
    bucket = FakeBucket()
    bucket.create_object("qux", b"taco")
    with pytest.raises(PreconditionError, match="exists"):
        create_new_object(bucket, new_file_name(ROOT, "qux"), None)
    assert bucket.contents["qux"] == b"taco"