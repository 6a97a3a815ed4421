"""A disk held in memory, addressed by block number."""

from __future__ import annotations

from .layout import BSIZE, FsPanic

ROOTDEV = 1


class MemoryDisk:
    """A fixed number of BSIZE blocks kept in a bytearray."""

    def __init__(self, nblocks: int, dev: int = ROOTDEV):
        if nblocks < 0:
            raise ValueError("block count must not be negative")
        self.dev = dev
        self._data = bytearray(nblocks * BSIZE)

    @property
    def nblocks(self) -> int:
        return len(self._data) // BSIZE

    @classmethod
    def from_image(cls, image) -> "MemoryDisk":
        """Build a disk from an image; a trailing partial block is dropped."""
        disk = cls(len(image) // BSIZE)
        disk._data[:] = bytes(image[: disk.nblocks * BSIZE])
        return disk

    def _offset(self, blockno: int) -> int:
        if not 0 <= blockno < self.nblocks:
            raise FsPanic("iderw: block out of range")
        return blockno * BSIZE

    def read_block(self, blockno: int) -> bytes:
        off = self._offset(blockno)
        return bytes(self._data[off : off + BSIZE])

    def write_block(self, blockno: int, data) -> None:
        if len(data) != BSIZE:
            raise ValueError(f"a block is {BSIZE} bytes, got {len(data)}")
        off = self._offset(blockno)
        self._data[off : off + BSIZE] = data

    def to_bytes(self) -> bytes:
        return bytes(self._data)