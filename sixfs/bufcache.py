"""Buffer cache: cached, locked copies of disk blocks kept in most-recently-used order."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from .layout import BSIZE, FsPanic

NBUF = 30


class _SleepLock:
    """A lock that remembers which thread holds it."""

    def __init__(self):
        self._cond = threading.Condition()
        self._locked = False
        self._owner: int | None = None

    def acquire(self) -> None:
        with self._cond:
            while self._locked:
                self._cond.wait()
            self._locked = True
            self._owner = threading.get_ident()

    def release(self) -> None:
        with self._cond:
            self._locked = False
            self._owner = None
            self._cond.notify_all()

    def holding(self) -> bool:
        with self._cond:
            return self._locked and self._owner == threading.get_ident()


@dataclass(eq=False)
class Buf:
    """A cached block: valid once read from disk, dirty while it must be written back."""

    dev: int | None = None
    blockno: int | None = None
    valid: bool = False
    dirty: bool = False
    refcnt: int = 0
    data: bytearray = field(default_factory=lambda: bytearray(BSIZE))
    _lock: _SleepLock = field(default_factory=_SleepLock, repr=False)


class BufferCache:
    """A fixed pool of buffers in front of a disk."""

    def __init__(self, disk, nbuf: int = NBUF):
        if nbuf < 1:
            raise ValueError("the cache needs at least one buffer")
        self.disk = disk
        self._lock = threading.Lock()
        self._mru = [Buf() for _ in range(nbuf)]

    def _bget(self, dev: int, blockno: int) -> Buf:
        with self._lock:
            found = next(
                (b for b in self._mru if b.dev == dev and b.blockno == blockno), None
            )
            if found is not None:
                found.refcnt += 1
            else:
                # A dirty buffer with refcnt 0 is still pinned by the log.
                found = next(
                    (b for b in reversed(self._mru) if b.refcnt == 0 and not b.dirty),
                    None,
                )
                if found is None:
                    raise FsPanic("bget: no buffers")
                found.dev = dev
                found.blockno = blockno
                found.valid = False
                found.dirty = False
                found.refcnt = 1
        found._lock.acquire()
        return found

    def _iderw(self, buf: Buf) -> None:
        if not buf._lock.holding():
            raise FsPanic("iderw: buf not locked")
        if buf.valid and not buf.dirty:
            raise FsPanic("iderw: nothing to do")
        if buf.dev != self.disk.dev:
            raise FsPanic(f"iderw: request not for disk {self.disk.dev}")
        if buf.dirty:
            self.disk.write_block(buf.blockno, bytes(buf.data))
            buf.dirty = False
        else:
            buf.data[:] = self.disk.read_block(buf.blockno)
        buf.valid = True

    def bread(self, dev: int, blockno: int) -> Buf:
        """Return a locked buffer holding the contents of the block."""
        buf = self._bget(dev, blockno)
        if not buf.valid:
            self._iderw(buf)
        return buf

    def bwrite(self, buf: Buf) -> None:
        """Write a locked buffer's contents to disk."""
        if not buf._lock.holding():
            raise FsPanic("bwrite")
        buf.dirty = True
        self._iderw(buf)

    def brelse(self, buf: Buf) -> None:
        """Release a locked buffer and move it to the head of the MRU list."""
        if not buf._lock.holding():
            raise FsPanic("brelse")
        buf._lock.release()
        with self._lock:
            buf.refcnt -= 1
            if buf.refcnt == 0:
                self._mru.remove(buf)
                self._mru.insert(0, buf)