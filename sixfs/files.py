"""Open files: a table of reference-counted handles on pipes and inodes."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum

from .fs import FsError, Stat
from .journal import MAXOPBLOCKS
from .layout import BSIZE, FsPanic

NFILE = 100


class FileType(Enum):
    NONE = 0
    PIPE = 1
    INODE = 2


@dataclass(eq=False)
class File:
    """An open file: what it refers to, its access mode and its offset."""

    type: FileType = FileType.NONE
    ref: int = 0
    readable: bool = False
    writable: bool = False
    pipe: object = None
    ip: object = None
    off: int = 0


class FileTable:
    """A fixed pool of open-file structures shared by everyone."""

    def __init__(self, fs=None, nfile: int = NFILE):
        self.fs = fs
        self._lock = threading.Lock()
        self._files = [File() for _ in range(nfile)]

    def alloc(self) -> File:
        """Take a free file structure, with one reference."""
        with self._lock:
            for f in self._files:
                if f.ref == 0:
                    f.ref = 1
                    return f
        raise FsError("file table full")

    def dup(self, f: File) -> File:
        """Take another reference to f."""
        with self._lock:
            if f.ref < 1:
                raise FsPanic("filedup")
            f.ref += 1
        return f

    def close(self, f: File) -> None:
        """Drop a reference; release the pipe end or inode on the last one."""
        with self._lock:
            if f.ref < 1:
                raise FsPanic("fileclose")
            f.ref -= 1
            if f.ref > 0:
                return
            kind, pipe, ip, writable = f.type, f.pipe, f.ip, f.writable
            f.type = FileType.NONE
            f.pipe = None
            f.ip = None
            f.off = 0
        if kind is FileType.PIPE:
            pipe.close(writable)
        elif kind is FileType.INODE:
            with self.fs.log.transaction():
                self.fs.iput(ip)

    def stat(self, f: File) -> Stat:
        """Metadata of the inode behind f."""
        if f.type is not FileType.INODE:
            raise FsError("not an inode")
        self.fs.ilock(f.ip)
        try:
            return self.fs.stati(f.ip)
        finally:
            self.fs.iunlock(f.ip)

    def read(self, f: File, n: int) -> bytes:
        """Read up to n bytes from f at its offset."""
        if not f.readable:
            raise FsError("file not open for reading")
        if f.type is FileType.PIPE:
            return f.pipe.read(n)
        if f.type is FileType.INODE:
            self.fs.ilock(f.ip)
            try:
                data = self.fs.readi(f.ip, f.off, n)
                f.off += len(data)
            finally:
                self.fs.iunlock(f.ip)
            return data
        raise FsPanic("fileread")

    def write(self, f: File, data) -> int:
        """Write data to f at its offset; returns the number of bytes written."""
        if not f.writable:
            raise FsError("file not open for writing")
        data = bytes(data)
        if f.type is FileType.PIPE:
            return f.pipe.write(data)
        if f.type is FileType.INODE:
            # Keep each transaction within the log: inode, indirect block,
            # allocation blocks and two blocks of slop for unaligned writes.
            limit = ((MAXOPBLOCKS - 1 - 1 - 2) // 2) * BSIZE
            i = 0
            while i < len(data):
                chunk = data[i : i + limit]
                with self.fs.log.transaction():
                    self.fs.ilock(f.ip)
                    try:
                        r = self.fs.writei(f.ip, chunk, f.off)
                        f.off += r
                    finally:
                        self.fs.iunlock(f.ip)
                if r != len(chunk):
                    raise FsPanic("short filewrite")
                i += r
            return len(data)
        raise FsPanic("filewrite")