"""Write-ahead log grouping the block writes of concurrent file system operations."""

from __future__ import annotations

import struct
import threading
from contextlib import contextmanager
from typing import Iterator

from .bufcache import Buf, BufferCache
from .disk import ROOTDEV
from .layout import BSIZE, FsPanic, Superblock

LOGSIZE = 30
MAXOPBLOCKS = 10


class Log:
    """A physical redo log: a header block listing block numbers, then their copies.

    Operations bracket their writes with begin_op/end_op; the log commits when
    the last outstanding operation ends.
    """

    def __init__(
        self,
        cache: BufferCache,
        dev: int = ROOTDEV,
        logsize: int = LOGSIZE,
        maxopblocks: int = MAXOPBLOCKS,
    ):
        if 4 * (1 + logsize) >= BSIZE:
            raise FsPanic("initlog: too big logheader")
        self.cache = cache
        self.dev = dev
        self.logsize = logsize
        self.maxopblocks = maxopblocks
        self.outstanding = 0
        self.committing = False
        self.blocks: list[int] = []
        self._cond = threading.Condition()

        buf = cache.bread(dev, 1)
        sb = Superblock.unpack(buf.data)
        cache.brelse(buf)
        self.start = sb.logstart
        self.size = sb.nlog
        self._recover()

    def _install_trans(self) -> None:
        for tail, blockno in enumerate(self.blocks):
            lbuf = self.cache.bread(self.dev, self.start + tail + 1)
            dbuf = self.cache.bread(self.dev, blockno)
            dbuf.data[:] = lbuf.data
            self.cache.bwrite(dbuf)
            self.cache.brelse(lbuf)
            self.cache.brelse(dbuf)

    def _read_head(self) -> None:
        buf = self.cache.bread(self.dev, self.start)
        (n,) = struct.unpack_from("<i", buf.data)
        if not 0 <= n <= self.logsize:
            self.cache.brelse(buf)
            raise FsPanic("read_head: bad log header")
        self.blocks = list(struct.unpack_from(f"<{n}i", buf.data, 4))
        self.cache.brelse(buf)

    def _write_head(self) -> None:
        buf = self.cache.bread(self.dev, self.start)
        n = len(self.blocks)
        struct.pack_into(f"<i{n}i", buf.data, 0, n, *self.blocks)
        self.cache.bwrite(buf)
        self.cache.brelse(buf)

    def _recover(self) -> None:
        self._read_head()
        self._install_trans()
        self.blocks = []
        self._write_head()

    def _write_log(self) -> None:
        for tail, blockno in enumerate(self.blocks):
            to = self.cache.bread(self.dev, self.start + tail + 1)
            src = self.cache.bread(self.dev, blockno)
            to.data[:] = src.data
            self.cache.bwrite(to)
            self.cache.brelse(src)
            self.cache.brelse(to)

    def _commit(self) -> None:
        if self.blocks:
            self._write_log()
            self._write_head()  # the real commit point
            self._install_trans()
            self.blocks = []
            self._write_head()

    def begin_op(self) -> None:
        """Start an operation, waiting while a commit runs or the log might fill."""
        with self._cond:
            while (
                self.committing
                or len(self.blocks) + (self.outstanding + 1) * self.maxopblocks
                > self.logsize
            ):
                self._cond.wait()
            self.outstanding += 1

    def end_op(self) -> None:
        """End an operation; commit if it was the last one outstanding."""
        with self._cond:
            self.outstanding -= 1
            if self.committing:
                raise FsPanic("log.committing")
            do_commit = self.outstanding == 0
            if do_commit:
                self.committing = True
            else:
                self._cond.notify_all()
        if do_commit:
            try:
                self._commit()
            finally:
                with self._cond:
                    self.committing = False
                    self._cond.notify_all()

    def log_write(self, buf: Buf) -> None:
        """Record a modified buffer in the log and pin it in the cache."""
        if len(self.blocks) >= self.logsize or len(self.blocks) >= self.size - 1:
            raise FsPanic("too big a transaction")
        if self.outstanding < 1:
            raise FsPanic("log_write outside of trans")
        with self._cond:
            if buf.blockno not in self.blocks:
                self.blocks.append(buf.blockno)
            buf.dirty = True

    @contextmanager
    def transaction(self) -> Iterator["Log"]:
        """Bracket a block of work with begin_op and end_op."""
        self.begin_op()
        try:
            yield self
        finally:
            self.end_op()