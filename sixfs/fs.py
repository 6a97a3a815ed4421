"""Inodes, directories and path names on top of the buffer cache and the log."""

from __future__ import annotations

import struct
import threading
from dataclasses import dataclass, field

from .bufcache import Buf, BufferCache, _SleepLock
from .disk import ROOTDEV
from .journal import Log
from .layout import (
    BPB,
    BSIZE,
    DINODE_SIZE,
    DIRENT_SIZE,
    DIRSIZ,
    IPB,
    MAXFILE,
    NDIRECT,
    NINDIRECT,
    ROOTINO,
    Dirent,
    DiskInode,
    FsPanic,
    InodeType,
    Superblock,
    bitmap_block,
    inode_block,
)

NINODE = 50
NDEV = 10


class FsError(OSError):
    """A file system request that cannot be carried out."""


@dataclass(frozen=True)
class Stat:
    """Metadata about an inode."""

    dev: int
    ino: int
    type: int
    nlink: int
    size: int


def _empty_addrs() -> list[int]:
    return [0] * (NDIRECT + 1)


@dataclass(eq=False)
class Inode:
    """The in-memory copy of an inode.

    dev, inum and ref belong to the inode cache; the rest is only valid
    while the inode is locked and ``valid`` is set.
    """

    dev: int = 0
    inum: int = 0
    ref: int = 0
    valid: bool = False
    type: int = 0
    major: int = 0
    minor: int = 0
    nlink: int = 0
    size: int = 0
    addrs: list[int] = field(default_factory=_empty_addrs)
    _lock: _SleepLock = field(default_factory=_SleepLock, repr=False)


def skipelem(path: str) -> tuple[str, str] | None:
    """Split off the first path element.

    Returns the element (cut to DIRSIZ characters) and the rest of the path
    without leading slashes, or None when no element is left.
    """
    path = path.lstrip("/")
    if not path:
        return None
    elem, _, rest = path.partition("/")
    return elem[:DIRSIZ], rest.lstrip("/")


def namecmp(s: str, t: str) -> int:
    """Compare two directory entry names over at most DIRSIZ characters."""
    a = s[:DIRSIZ].split("\0", 1)[0]
    b = t[:DIRSIZ].split("\0", 1)[0]
    return (a > b) - (a < b)


def _dinode_offset(inum: int) -> int:
    return (inum % IPB) * DINODE_SIZE


class FileSystem:
    """Block allocation, an inode cache, file contents, directories and paths."""

    def __init__(
        self,
        cache: BufferCache,
        log: Log,
        dev: int = ROOTDEV,
        devsw=None,
        ninode: int = NINODE,
    ):
        if ninode < 1:
            raise ValueError("the inode cache needs at least one entry")
        self.cache = cache
        self.log = log
        self.dev = dev
        self.devsw = dict(devsw or {})
        self._icache_lock = threading.Lock()
        self._inodes = [Inode() for _ in range(ninode)]
        bp = cache.bread(dev, 1)
        self.sb = Superblock.unpack(bp.data)
        cache.brelse(bp)

    # Blocks.

    def _bzero(self, dev: int, bno: int) -> None:
        bp = self.cache.bread(dev, bno)
        bp.data[:] = bytes(BSIZE)
        self.log.log_write(bp)
        self.cache.brelse(bp)

    def _balloc(self, dev: int) -> int:
        for b in range(0, self.sb.size, BPB):
            bp = self.cache.bread(dev, bitmap_block(b, self.sb))
            for bi in range(min(BPB, self.sb.size - b)):
                m = 1 << (bi % 8)
                if not bp.data[bi // 8] & m:
                    bp.data[bi // 8] |= m
                    self.log.log_write(bp)
                    self.cache.brelse(bp)
                    self._bzero(dev, b + bi)
                    return b + bi
            self.cache.brelse(bp)
        raise FsPanic("balloc: out of blocks")

    def _bfree(self, dev: int, b: int) -> None:
        bp = self.cache.bread(dev, bitmap_block(b, self.sb))
        bi = b % BPB
        m = 1 << (bi % 8)
        if not bp.data[bi // 8] & m:
            self.cache.brelse(bp)
            raise FsPanic("freeing free block")
        bp.data[bi // 8] &= ~m & 0xFF
        self.log.log_write(bp)
        self.cache.brelse(bp)

    # Inodes.

    def ialloc(self, dev: int, type) -> Inode:
        """Allocate a free on-disk inode of the given type; returned unlocked."""
        for inum in range(1, self.sb.ninodes):
            bp = self.cache.bread(dev, inode_block(inum, self.sb))
            off = _dinode_offset(inum)
            dip = DiskInode.unpack(bp.data[off : off + DINODE_SIZE])
            if dip.type == 0:
                bp.data[off : off + DINODE_SIZE] = DiskInode(type=int(type)).pack()
                self.log.log_write(bp)
                self.cache.brelse(bp)
                return self._iget(dev, inum)
            self.cache.brelse(bp)
        raise FsPanic("ialloc: no inodes")

    def iupdate(self, ip: Inode) -> None:
        """Write a locked inode's fields back to disk."""
        bp = self.cache.bread(ip.dev, inode_block(ip.inum, self.sb))
        off = _dinode_offset(ip.inum)
        dip = DiskInode(ip.type, ip.major, ip.minor, ip.nlink, ip.size, list(ip.addrs))
        bp.data[off : off + DINODE_SIZE] = dip.pack()
        self.log.log_write(bp)
        self.cache.brelse(bp)

    def _iget(self, dev: int, inum: int) -> Inode:
        with self._icache_lock:
            empty = None
            for ip in self._inodes:
                if ip.ref > 0 and ip.dev == dev and ip.inum == inum:
                    ip.ref += 1
                    return ip
                if empty is None and ip.ref == 0:
                    empty = ip
            if empty is None:
                raise FsPanic("iget: no inodes")
            empty.dev = dev
            empty.inum = inum
            empty.ref = 1
            empty.valid = False
            return empty

    def idup(self, ip: Inode) -> Inode:
        """Take another reference to ip."""
        with self._icache_lock:
            ip.ref += 1
        return ip

    def ilock(self, ip: Inode) -> None:
        """Lock ip, reading it from disk if needed."""
        if ip is None or ip.ref < 1:
            raise FsPanic("ilock")
        ip._lock.acquire()
        if not ip.valid:
            bp = self.cache.bread(ip.dev, inode_block(ip.inum, self.sb))
            off = _dinode_offset(ip.inum)
            dip = DiskInode.unpack(bp.data[off : off + DINODE_SIZE])
            self.cache.brelse(bp)
            ip.type = dip.type
            ip.major = dip.major
            ip.minor = dip.minor
            ip.nlink = dip.nlink
            ip.size = dip.size
            ip.addrs = list(dip.addrs)
            ip.valid = True
            if ip.type == 0:
                ip._lock.release()
                raise FsPanic("ilock: no type")

    def iunlock(self, ip: Inode) -> None:
        """Unlock ip."""
        if ip is None or not ip._lock.holding() or ip.ref < 1:
            raise FsPanic("iunlock")
        ip._lock.release()

    def iput(self, ip: Inode) -> None:
        """Drop a reference; free the inode on disk if it was the last and unlinked.

        Must run inside a transaction.
        """
        ip._lock.acquire()
        try:
            if ip.valid and ip.nlink == 0:
                with self._icache_lock:
                    r = ip.ref
                if r == 1:
                    self._itrunc(ip)
                    ip.type = 0
                    self.iupdate(ip)
                    ip.valid = False
        finally:
            ip._lock.release()
        with self._icache_lock:
            ip.ref -= 1

    def iunlockput(self, ip: Inode) -> None:
        self.iunlock(ip)
        self.iput(ip)

    # Inode content.

    def _bmap(self, ip: Inode, bn: int) -> int:
        if bn < NDIRECT:
            if ip.addrs[bn] == 0:
                ip.addrs[bn] = self._balloc(ip.dev)
            return ip.addrs[bn]
        bn -= NDIRECT
        if bn < NINDIRECT:
            if ip.addrs[NDIRECT] == 0:
                ip.addrs[NDIRECT] = self._balloc(ip.dev)
            bp: Buf = self.cache.bread(ip.dev, ip.addrs[NDIRECT])
            try:
                (addr,) = struct.unpack_from("<I", bp.data, bn * 4)
                if addr == 0:
                    addr = self._balloc(ip.dev)
                    struct.pack_into("<I", bp.data, bn * 4, addr)
                    self.log.log_write(bp)
            finally:
                self.cache.brelse(bp)
            return addr
        raise FsPanic("bmap: out of range")

    def _itrunc(self, ip: Inode) -> None:
        for i in range(NDIRECT):
            if ip.addrs[i]:
                self._bfree(ip.dev, ip.addrs[i])
                ip.addrs[i] = 0
        if ip.addrs[NDIRECT]:
            bp = self.cache.bread(ip.dev, ip.addrs[NDIRECT])
            addrs = struct.unpack_from(f"<{NINDIRECT}I", bp.data)
            self.cache.brelse(bp)
            for a in addrs:
                if a:
                    self._bfree(ip.dev, a)
            self._bfree(ip.dev, ip.addrs[NDIRECT])
            ip.addrs[NDIRECT] = 0
        ip.size = 0
        self.iupdate(ip)

    def stati(self, ip: Inode) -> Stat:
        """Metadata of a locked inode."""
        return Stat(ip.dev, ip.inum, ip.type, ip.nlink, ip.size)

    def _device(self, ip: Inode):
        device = self.devsw.get(ip.major) if 0 <= ip.major < NDEV else None
        if device is None:
            raise FsError(f"no device with major number {ip.major}")
        return device

    def readi(self, ip: Inode, off: int, n: int) -> bytes:
        """Read up to n bytes at off from a locked inode."""
        if ip.type == InodeType.DEV:
            device = self._device(ip)
            if not hasattr(device, "read"):
                raise FsError(f"device {ip.major} cannot be read")
            return device.read(n)
        if off < 0 or n < 0 or off > ip.size:
            raise FsError(f"read at offset {off} beyond size {ip.size}")
        n = min(n, ip.size - off)
        out = bytearray()
        while len(out) < n:
            pos = off + len(out)
            bp = self.cache.bread(ip.dev, self._bmap(ip, pos // BSIZE))
            start = pos % BSIZE
            m = min(n - len(out), BSIZE - start)
            out += bp.data[start : start + m]
            self.cache.brelse(bp)
        return bytes(out)

    def writei(self, ip: Inode, data, off: int) -> int:
        """Write data at off into a locked inode; returns the number of bytes written."""
        if ip.type == InodeType.DEV:
            device = self._device(ip)
            if not hasattr(device, "write"):
                raise FsError(f"device {ip.major} cannot be written")
            return device.write(bytes(data))
        n = len(data)
        if off < 0 or off > ip.size:
            raise FsError(f"write at offset {off} beyond size {ip.size}")
        if off + n > MAXFILE * BSIZE:
            raise FsError("write beyond the largest file size")
        view = memoryview(bytes(data))
        tot = 0
        while tot < n:
            pos = off + tot
            bp = self.cache.bread(ip.dev, self._bmap(ip, pos // BSIZE))
            start = pos % BSIZE
            m = min(n - tot, BSIZE - start)
            bp.data[start : start + m] = view[tot : tot + m]
            self.log.log_write(bp)
            self.cache.brelse(bp)
            tot += m
        end = off + n
        if n > 0 and end > ip.size:
            ip.size = end
            self.iupdate(ip)
        return n

    # Directories.

    def _read_dirent(self, dp: Inode, off: int, what: str) -> Dirent:
        try:
            raw = self.readi(dp, off, DIRENT_SIZE)
        except FsError:
            raw = b""
        if len(raw) != DIRENT_SIZE:
            raise FsPanic(f"{what} read")
        return Dirent.unpack(raw)

    def dirlookup(self, dp: Inode, name: str) -> tuple[Inode, int] | None:
        """Find name in a locked directory; returns its inode and entry offset."""
        if dp.type != InodeType.DIR:
            raise FsPanic("dirlookup not DIR")
        for off in range(0, dp.size, DIRENT_SIZE):
            de = self._read_dirent(dp, off, "dirlookup")
            if de.inum == 0:
                continue
            if namecmp(name, de.name) == 0:
                return self._iget(dp.dev, de.inum), off
        return None

    def dirlink(self, dp: Inode, name: str, inum: int) -> None:
        """Add the entry (name, inum) to a locked directory."""
        found = self.dirlookup(dp, name)
        if found is not None:
            self.iput(found[0])
            raise FileExistsError(f"{name!r} already exists")
        off = -(-dp.size // DIRENT_SIZE) * DIRENT_SIZE
        for candidate in range(0, dp.size, DIRENT_SIZE):
            if self._read_dirent(dp, candidate, "dirlink").inum == 0:
                off = candidate
                break
        try:
            written = self.writei(dp, Dirent(inum, name[:DIRSIZ]).pack(), off)
        except FsError:
            written = -1
        if written != DIRENT_SIZE:
            raise FsPanic("dirlink")

    # Paths.

    def _namex(self, path: str, parent: bool, cwd: Inode | None):
        if path.startswith("/"):
            ip = self._iget(self.dev, ROOTINO)
        else:
            if cwd is None:
                raise ValueError("a relative path needs a working directory")
            ip = self.idup(cwd)
        name = ""
        while (elem := skipelem(path)) is not None:
            name, path = elem
            self.ilock(ip)
            if ip.type != InodeType.DIR:
                self.iunlockput(ip)
                return None
            if parent and path == "":
                self.iunlock(ip)
                return ip, name
            found = self.dirlookup(ip, name)
            self.iunlockput(ip)
            if found is None:
                return None
            ip = found[0]
        if parent:
            self.iput(ip)
            return None
        return ip, name

    def namei(self, path: str, cwd: Inode | None = None) -> Inode | None:
        """Look up the inode for path; must run inside a transaction."""
        result = self._namex(path, False, cwd)
        return None if result is None else result[0]

    def nameiparent(
        self, path: str, cwd: Inode | None = None
    ) -> tuple[Inode, str] | None:
        """Look up the parent directory of path and the final element's name."""
        return self._namex(path, True, cwd)