"""Build an initial file system image holding a root directory and some files."""

from __future__ import annotations

import struct
import sys
from pathlib import Path

from .disk import MemoryDisk
from .journal import LOGSIZE
from .layout import (
    BPB,
    BSIZE,
    DINODE_SIZE,
    IPB,
    MAXFILE,
    NDIRECT,
    NINDIRECT,
    ROOTINO,
    Dirent,
    DiskInode,
    InodeType,
    Superblock,
    inode_block,
)

FSSIZE = 1000
NINODES = 200

_INDIRECT = struct.Struct(f"<{NINDIRECT}I")


class ImageBuilder:
    """Lays out a fresh image: boot block, superblock, log, inodes, bitmap, data.

    The root directory with "." and ".." exists as soon as the builder is made.
    """

    def __init__(self, size: int = FSSIZE, ninodes: int = NINODES,
                 nlog: int = LOGSIZE, out=None):
        self.out = out
        nbitmap = size // BPB + 1
        ninodeblocks = ninodes // IPB + 1
        self.nmeta = 2 + nlog + ninodeblocks + nbitmap
        if self.nmeta >= size:
            raise ValueError(f"an image of {size} blocks has no room for data")
        nblocks = size - self.nmeta
        self.sb = Superblock(
            size=size,
            nblocks=nblocks,
            ninodes=ninodes,
            nlog=nlog,
            logstart=2,
            inodestart=2 + nlog,
            bmapstart=2 + nlog + ninodeblocks,
        )
        self._say(
            f"nmeta {self.nmeta} (boot, super, log blocks {nlog} inode blocks "
            f"{ninodeblocks}, bitmap blocks {nbitmap}) blocks {nblocks} total {size}"
        )
        self.disk = MemoryDisk(size)
        self.freeinode = 1
        self.freeblock = self.nmeta

        block = bytearray(BSIZE)
        packed = self.sb.pack()
        block[: len(packed)] = packed
        self.disk.write_block(1, bytes(block))

        self.rootino = self.ialloc(InodeType.DIR)
        if self.rootino != ROOTINO:
            raise RuntimeError("the root directory did not get the root inode")
        self.iappend(self.rootino, Dirent(self.rootino, ".").pack())
        self.iappend(self.rootino, Dirent(self.rootino, "..").pack())

    def _say(self, message: str) -> None:
        if self.out is not None:
            self.out.write(message + "\n")

    def _next_block(self) -> int:
        if self.freeblock >= self.sb.size:
            raise ValueError("the image is full")
        blockno = self.freeblock
        self.freeblock += 1
        return blockno

    def _rinode(self, inum: int) -> DiskInode:
        block = self.disk.read_block(inode_block(inum, self.sb))
        off = (inum % IPB) * DINODE_SIZE
        return DiskInode.unpack(block[off : off + DINODE_SIZE])

    def _winode(self, inum: int, din: DiskInode) -> None:
        bn = inode_block(inum, self.sb)
        block = bytearray(self.disk.read_block(bn))
        off = (inum % IPB) * DINODE_SIZE
        block[off : off + DINODE_SIZE] = din.pack()
        self.disk.write_block(bn, bytes(block))

    def ialloc(self, type) -> int:
        """Allocate the next inode with the given type and one link."""
        inum = self.freeinode
        if inum >= self.sb.ninodes:
            raise ValueError("out of inodes")
        self.freeinode += 1
        self._winode(inum, DiskInode(type=int(type), nlink=1, size=0))
        return inum

    def iappend(self, inum: int, data) -> None:
        """Append data to the contents of inode inum."""
        payload = memoryview(bytes(data))
        din = self._rinode(inum)
        off = din.size
        if off + len(payload) > MAXFILE * BSIZE:
            raise ValueError("file too large")
        pos = 0
        while pos < len(payload):
            fbn = off // BSIZE
            if fbn < NDIRECT:
                if din.addrs[fbn] == 0:
                    din.addrs[fbn] = self._next_block()
                x = din.addrs[fbn]
            else:
                if din.addrs[NDIRECT] == 0:
                    din.addrs[NDIRECT] = self._next_block()
                indirect = list(_INDIRECT.unpack(self.disk.read_block(din.addrs[NDIRECT])))
                if indirect[fbn - NDIRECT] == 0:
                    indirect[fbn - NDIRECT] = self._next_block()
                    self.disk.write_block(din.addrs[NDIRECT], _INDIRECT.pack(*indirect))
                x = indirect[fbn - NDIRECT]
            n1 = min(len(payload) - pos, (fbn + 1) * BSIZE - off)
            block = bytearray(self.disk.read_block(x))
            start = off - fbn * BSIZE
            block[start : start + n1] = payload[pos : pos + n1]
            self.disk.write_block(x, bytes(block))
            pos += n1
            off += n1
        din.size = off
        self._winode(inum, din)

    def add_file(self, name: str, data) -> int:
        """Add a file to the root directory; a leading '_' is dropped from the name."""
        if "/" in name:
            raise ValueError(f"file name must not contain '/': {name!r}")
        if name.startswith("_"):
            name = name[1:]
        inum = self.ialloc(InodeType.FILE)
        self.iappend(self.rootino, Dirent(inum, name).pack())
        self.iappend(inum, data)
        return inum

    def _balloc(self, used: int) -> None:
        self._say(f"balloc: first {used} blocks have been allocated")
        if used >= BPB:
            raise ValueError("too many blocks for one bitmap block")
        bitmap = bytearray(BSIZE)
        for i in range(used):
            bitmap[i // 8] |= 1 << (i % 8)
        self._say(f"balloc: write bitmap block at sector {self.sb.bmapstart}")
        self.disk.write_block(self.sb.bmapstart, bytes(bitmap))

    def finish(self) -> bytes:
        """Round the root directory's size up, write the free map, return the image."""
        din = self._rinode(self.rootino)
        din.size = (din.size // BSIZE + 1) * BSIZE
        self._winode(self.rootino, din)
        self._balloc(self.freeblock)
        return self.disk.to_bytes()


def main(argv=None) -> int:
    """mkfs fs.img files..."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        sys.stderr.write("Usage: mkfs fs.img files...\n")
        return 1
    image_path, inputs = args[0], args[1:]
    try:
        image_file = open(image_path, "wb")
    except OSError as exc:
        sys.stderr.write(f"{image_path}: {exc.strerror}\n")
        return 1
    with image_file:
        builder = ImageBuilder(out=sys.stdout)
        for path in inputs:
            try:
                data = Path(path).read_bytes()
            except OSError as exc:
                sys.stderr.write(f"{path}: {exc.strerror}\n")
                return 1
            try:
                builder.add_file(path, data)
            except ValueError as exc:
                sys.stderr.write(f"mkfs: {exc}\n")
                return 1
        image_file.write(builder.finish())
    return 0


if __name__ == "__main__":
    sys.exit(main())