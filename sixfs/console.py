"""Console: line-edited keyboard input and character output."""

from __future__ import annotations

import threading

BACKSPACE = 0x100
INPUT_BUF = 128


def _ctrl(ch: str) -> int:
    return ord(ch) - ord("@")


_CTRL_P = _ctrl("P")
_CTRL_U = _ctrl("U")
_CTRL_H = _ctrl("H")
_CTRL_D = _ctrl("D")
_NL = ord("\n")


def _codes(chars):
    if isinstance(chars, str):
        return [ord(c) for c in chars]
    return list(chars)


class Console:
    """Collects typed characters into lines and echoes everything to ``output``.

    ``procdump`` is called (without the console lock) when ^P is typed.
    """

    def __init__(self, procdump=None):
        self.output = bytearray()
        self._procdump = procdump
        self._cond = threading.Condition()
        self._buf = [0] * INPUT_BUF
        self.r = 0  # read index
        self.w = 0  # write index
        self.e = 0  # edit index

    def putc(self, c: int) -> None:
        """Emit one character; BACKSPACE erases the previous one."""
        if c == BACKSPACE:
            self.output += b"\b \b"
        else:
            self.output.append(c & 0xFF)

    def interrupt(self, chars) -> None:
        """Handle typed characters: editing keys, line completion and ^P."""
        dump = False
        with self._cond:
            for c in _codes(chars):
                if c == _CTRL_P:
                    dump = True
                elif c == _CTRL_U:
                    while self.e != self.w and self._buf[(self.e - 1) % INPUT_BUF] != _NL:
                        self.e -= 1
                        self.putc(BACKSPACE)
                elif c in (_CTRL_H, 0x7F):
                    if self.e != self.w:
                        self.e -= 1
                        self.putc(BACKSPACE)
                elif c != 0 and self.e - self.r < INPUT_BUF:
                    if c == ord("\r"):
                        c = _NL
                    self._buf[self.e % INPUT_BUF] = c & 0xFF
                    self.e += 1
                    self.putc(c)
                    if c == _NL or c == _CTRL_D or self.e == self.r + INPUT_BUF:
                        self.w = self.e
                        self._cond.notify_all()
        if dump and self._procdump is not None:
            self._procdump()

    def read(self, n: int) -> bytes:
        """Read up to n bytes of completed input, stopping after a newline.

        ^D ends the read; if data came before it, it is kept so that the next
        read returns nothing.
        """
        target = n
        out = bytearray()
        with self._cond:
            while n > 0:
                while self.r == self.w:
                    self._cond.wait()
                c = self._buf[self.r % INPUT_BUF]
                self.r += 1
                if c == _CTRL_D:
                    if n < target:
                        self.r -= 1
                    break
                out.append(c)
                n -= 1
                if c == _NL:
                    break
        return bytes(out)

    def write(self, data) -> int:
        """Emit every byte of data."""
        data = bytes(data)
        with self._cond:
            for b in data:
                self.putc(b)
        return len(data)