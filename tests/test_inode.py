import pytest

from bucketinode.inode import (
    Dirent,
    DirentType,
    Generation,
    Inode,
    InodeAttributes,
    LookupCount,
)
from bucketinode.name import new_file_name, new_root_name


class _PlainInode(Inode):
    def attributes(self):
        return InodeAttributes(nlink=1)


def make_inode():
    return _PlainInode(17, new_file_name(new_root_name(""), "foo"))


def test_generation_compare_object_first():
    assert Generation(1, 9).compare(Generation(2, 0)) == -1
    assert Generation(2, 0).compare(Generation(1, 9)) == 1


def test_generation_compare_breaks_ties_on_metadata():
    assert Generation(3, 1).compare(Generation(3, 2)) == -1
    assert Generation(3, 2).compare(Generation(3, 1)) == 1
    assert Generation(3, 2).compare(Generation(3, 2)) == 0


def test_generation_ordering_matches_compare():
    gens = [Generation(2, 1), Generation(1, 5), Generation(2, 0)]
    assert sorted(gens) == [Generation(1, 5), Generation(2, 0), Generation(2, 1)]


def test_lookup_count_reaches_zero():
    lc = LookupCount(5)
    lc.inc()
    lc.inc()
    lc.inc()
    assert lc.dec(2) is False
    assert lc.dec(1) is True


def test_lookup_count_dec_too_much():
    lc = LookupCount(5)
    lc.inc()
    with pytest.raises(RuntimeError):
        lc.dec(2)


def test_lookup_count_negative():
    lc = LookupCount(5)
    with pytest.raises(ValueError):
        lc.dec(-1)


def test_lookup_count_destroyed():
    lc = LookupCount(5, destroyed=True)
    with pytest.raises(RuntimeError, match="5"):
        lc.inc()
    with pytest.raises(RuntimeError):
        lc.dec(0)


def test_inode_identity():
    node = make_inode()
    assert node.id == 17
    assert node.name.gcs_object_name() == "foo"


def test_inode_lookup_count():
    node = make_inode()
    node.increment_lookup_count()
    node.increment_lookup_count()
    node.increment_lookup_count()
    assert not node.decrement_lookup_count(2)
    assert node.decrement_lookup_count(1)


def test_inode_context_manager_holds_lock():
    node = make_inode()
    with node as held:
        assert held is node
        assert not node._mu.acquire(blocking=False)
    assert node._mu.acquire(blocking=False)
    node._mu.release()


def test_lock_and_unlock():
    node = make_inode()
    node.lock()
    assert node._mu.locked()
    node.unlock()
    assert not node._mu.locked()


def test_dirent_type_values():
    assert Dirent("x", DirentType.DIRECTORY).type == DirentType.DIRECTORY
    assert DirentType.FILE == 8