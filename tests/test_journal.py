import struct

import pytest

from sixfs.bufcache import BufferCache
from sixfs.disk import MemoryDisk
from sixfs.journal import Log
from sixfs.layout import BSIZE, FsPanic, Superblock

LOGSTART = 2


def _disk():
    disk = MemoryDisk(100)
    sb = Superblock(
        size=100, nblocks=50, ninodes=16, nlog=30, logstart=LOGSTART, inodestart=32, bmapstart=40
    )
    disk.write_block(1, sb.pack().ljust(BSIZE, b"\0"))
    return disk


def _header_count(disk):
    return struct.unpack_from("<i", disk.read_block(LOGSTART))[0]


def test_transaction_reaches_home_block():
    disk = _disk()
    cache = BufferCache(disk)
    log = Log(cache)
    with log.transaction():
        buf = cache.bread(1, 50)
        buf.data[:5] = b"hello"
        log.log_write(buf)
        assert buf.dirty
        cache.brelse(buf)
        assert disk.read_block(50)[:5] == bytes(5)
    assert disk.read_block(50)[:5] == b"hello"
    assert disk.read_block(LOGSTART + 1)[:5] == b"hello"
    assert _header_count(disk) == 0
    assert log.blocks == []
    assert log.outstanding == 0
    assert not buf.dirty


def test_log_absorbs_repeated_writes():
    disk = _disk()
    cache = BufferCache(disk)
    log = Log(cache)
    log.begin_op()
    for _ in range(2):
        buf = cache.bread(1, 60)
        log.log_write(buf)
        cache.brelse(buf)
    other = cache.bread(1, 61)
    log.log_write(other)
    cache.brelse(other)
    assert log.blocks == [60, 61]
    log.end_op()
    assert log.blocks == []


def test_commit_waits_for_last_operation():
    disk = _disk()
    cache = BufferCache(disk)
    log = Log(cache)
    log.begin_op()
    log.begin_op()
    buf = cache.bread(1, 70)
    buf.data[:3] = b"abc"
    log.log_write(buf)
    cache.brelse(buf)
    log.end_op()
    assert disk.read_block(70)[:3] == bytes(3)
    log.end_op()
    assert disk.read_block(70)[:3] == b"abc"


def test_log_write_outside_transaction_panics():
    disk = _disk()
    cache = BufferCache(disk)
    log = Log(cache)
    buf = cache.bread(1, 50)
    with pytest.raises(FsPanic, match="outside of trans"):
        log.log_write(buf)


def test_recovery_installs_committed_blocks():
    disk = _disk()
    disk.write_block(LOGSTART, struct.pack("<ii", 1, 70).ljust(BSIZE, b"\0"))
    disk.write_block(LOGSTART + 1, b"recovered".ljust(BSIZE, b"\0"))
    Log(BufferCache(disk))
    assert disk.read_block(70)[:9] == b"recovered"
    assert _header_count(disk) == 0


def test_oversized_header_panics():
    disk = _disk()
    with pytest.raises(FsPanic, match="too big logheader"):
        Log(BufferCache(disk), logsize=200)