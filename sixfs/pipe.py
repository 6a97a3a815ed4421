"""A bounded in-memory pipe between a writer and a reader."""

from __future__ import annotations

import threading

PIPESIZE = 512


class Pipe:
    """A ring buffer of PIPESIZE bytes with blocking reads and writes."""

    def __init__(self):
        self._cond = threading.Condition()
        self._data = bytearray(PIPESIZE)
        self.nread = 0
        self.nwrite = 0
        self.readopen = True
        self.writeopen = True

    def write(self, data) -> int:
        """Write all of data, waiting while the pipe is full."""
        data = bytes(data)
        with self._cond:
            for b in data:
                while self.nwrite == self.nread + PIPESIZE:
                    if not self.readopen:
                        raise BrokenPipeError("read end of pipe is closed")
                    self._cond.notify_all()
                    self._cond.wait()
                self._data[self.nwrite % PIPESIZE] = b
                self.nwrite += 1
            self._cond.notify_all()
        return len(data)

    def read(self, n: int) -> bytes:
        """Read up to n bytes, waiting while empty and a writer remains."""
        with self._cond:
            while self.nread == self.nwrite and self.writeopen:
                self._cond.wait()
            out = bytearray()
            while len(out) < n and self.nread != self.nwrite:
                out.append(self._data[self.nread % PIPESIZE])
                self.nread += 1
            self._cond.notify_all()
        return bytes(out)

    def close(self, writable: bool) -> None:
        """Close the write end if writable is true, else the read end."""
        with self._cond:
            if writable:
                self.writeopen = False
            else:
                self.readopen = False
            self._cond.notify_all()