import pytest

from sixfs.bufcache import BufferCache
from sixfs.disk import MemoryDisk
from sixfs.layout import BSIZE, FsPanic


def _setup(nbuf=30):
    disk = MemoryDisk(16)
    return disk, BufferCache(disk, nbuf)


def test_bread_reads_disk_contents():
    disk, cache = _setup()
    disk.write_block(7, b"\x5a" * BSIZE)
    buf = cache.bread(1, 7)
    assert bytes(buf.data) == b"\x5a" * BSIZE
    assert buf.valid
    assert buf.refcnt == 1
    cache.brelse(buf)


def test_cached_copy_survives_release():
    disk, cache = _setup()
    buf = cache.bread(1, 3)
    buf.data[:4] = b"abcd"
    cache.brelse(buf)
    again = cache.bread(1, 3)
    assert again is buf
    assert bytes(again.data[:4]) == b"abcd"
    assert disk.read_block(3)[:4] == bytes(4)
    cache.brelse(again)


def test_bwrite_persists_and_cleans():
    disk, cache = _setup()
    buf = cache.bread(1, 5)
    buf.data[:5] = b"hello"
    cache.bwrite(buf)
    assert not buf.dirty
    assert buf.valid
    assert disk.read_block(5)[:5] == b"hello"
    cache.brelse(buf)


def test_release_without_holding_panics():
    _, cache = _setup()
    buf = cache.bread(1, 2)
    cache.brelse(buf)
    with pytest.raises(FsPanic):
        cache.brelse(buf)
    with pytest.raises(FsPanic):
        cache.bwrite(buf)


def test_no_buffers_panics():
    _, cache = _setup(nbuf=2)
    cache.bread(1, 3)
    cache.bread(1, 4)
    with pytest.raises(FsPanic, match="no buffers"):
        cache.bread(1, 5)


def test_least_recently_used_is_recycled():
    _, cache = _setup(nbuf=2)
    a = cache.bread(1, 3)
    cache.brelse(a)
    b = cache.bread(1, 4)
    cache.brelse(b)
    c = cache.bread(1, 5)
    assert c is a
    assert c.blockno == 5
    cache.brelse(c)
    assert cache.bread(1, 4) is b


def test_dirty_buffer_is_not_recycled():
    _, cache = _setup(nbuf=1)
    a = cache.bread(1, 3)
    a.dirty = True
    cache.brelse(a)
    with pytest.raises(FsPanic):
        cache.bread(1, 4)


def test_wrong_device_panics():
    _, cache = _setup()
    with pytest.raises(FsPanic):
        cache.bread(0, 5)


def test_nbuf_must_be_positive():
    with pytest.raises(ValueError):
        BufferCache(MemoryDisk(1), 0)