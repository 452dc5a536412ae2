import pytest

from bucketinode.back_object import BackObject, GcsObject
from bucketinode.name import new_dir_name, new_file_name, new_root_name


class _StubBucket:
    name = "some_bucket"


@pytest.fixture
def bucket():
    return _StubBucket()


def test_file(bucket):
    o = GcsObject(name="foo", size=4, generation=1, meta_generation=1)
    name = new_file_name(new_root_name(bucket.name), o.name)
    bo = BackObject(bucket, name, o, False)
    assert bo.exists()


def test_explicit_dir(bucket):
    o = GcsObject(name="bar/", generation=1, meta_generation=1)
    name = new_dir_name(new_root_name(bucket.name), o.name)
    bo = BackObject(bucket, name, o, False)
    assert bo.exists()


def test_implicit_dir(bucket):
    name = new_dir_name(new_root_name(bucket.name), "bar/")
    bo = BackObject(bucket, name, None, True)
    assert bo.exists()


def test_bucket_root_dir(bucket):
    bo = BackObject(bucket, new_root_name(bucket.name), None, False)
    assert bo.exists()


def test_nonexistent(bucket):
    name = new_dir_name(new_root_name(bucket.name), "bar/")
    bo = BackObject(bucket, name, None, False)
    assert not bo.exists()


def test_sanity_check_object_and_implicit(bucket):
    o = GcsObject(name="bar/", generation=1, meta_generation=1)
    name = new_dir_name(new_root_name(bucket.name), o.name)
    with pytest.raises(ValueError, match="not implicit"):
        BackObject(bucket, name, o, True).sanity_check()


def test_sanity_check_without_object(bucket):
    name = new_dir_name(new_root_name(bucket.name), "bar/")
    assert BackObject(bucket, name, None, True).sanity_check() is None
    assert BackObject(bucket, name, None, False).sanity_check() is None


def test_sanity_check_name_mismatch(bucket):
    o = GcsObject(name="bar/", generation=1, meta_generation=1)
    name = new_dir_name(new_root_name(bucket.name), o.name)
    o.name = "foo/"
    with pytest.raises(ValueError, match="inconsistently"):
        BackObject(bucket, name, o, False).sanity_check()


def test_sanity_check_consistent_object(bucket):
    o = GcsObject(name="bar/", generation=1, meta_generation=1)
    name = new_dir_name(new_root_name(bucket.name), o.name)
    bo = BackObject(bucket, name, o, False)
    assert bo.sanity_check() is None
    assert bo.exists()