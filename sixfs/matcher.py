"""A small grep: patterns with ^ . * and $."""

from __future__ import annotations

import io
import sys
from typing import Iterator

BUFSIZE = 1024


def _matchhere(re: str, i: int, text: str, j: int) -> bool:
    if i == len(re):
        return True
    if i + 1 < len(re) and re[i + 1] == "*":
        return _matchstar(re[i], re, i + 2, text, j)
    if re[i] == "$" and i + 1 == len(re):
        return j == len(text)
    if j < len(text) and (re[i] == "." or re[i] == text[j]):
        return _matchhere(re, i + 1, text, j + 1)
    return False


def _matchstar(c: str, re: str, i: int, text: str, j: int) -> bool:
    # A star matches zero or more instances of c.
    while True:
        if _matchhere(re, i, text, j):
            return True
        if j < len(text) and (text[j] == c or c == "."):
            j += 1
        else:
            return False


def match(pattern: str, text: str) -> bool:
    """Whether pattern matches anywhere in text."""
    if pattern.startswith("^"):
        return _matchhere(pattern, 1, text, 0)
    return any(_matchhere(pattern, 0, text, j) for j in range(len(text) + 1))


def grep_lines(pattern: str, data) -> Iterator[bytes]:
    """Yield the newline-terminated lines of data that match pattern.

    data is bytes or a binary stream. Input is read through a buffer of
    BUFSIZE bytes: an unterminated last line is dropped, and so is a stretch
    that fills the buffer without a newline.
    """
    stream = io.BytesIO(bytes(data)) if isinstance(data, (bytes, bytearray)) else data
    buf = b""
    while chunk := stream.read(BUFSIZE - len(buf) - 1):
        buf += chunk
        *lines, rest = buf.split(b"\n")
        for line in lines:
            if match(pattern, line.decode("latin-1")):
                yield line + b"\n"
        buf = rest if lines else b""


def main(argv=None) -> int:
    """grep pattern [file ...]"""
    args = sys.argv[1:] if argv is None else list(argv)
    out = sys.stdout.buffer
    if not args:
        sys.stderr.write("usage: grep pattern [file ...]\n")
        return 1
    pattern, paths = args[0], args[1:]
    if not paths:
        out.writelines(grep_lines(pattern, sys.stdin.buffer))
        out.flush()
        return 0
    for path in paths:
        try:
            stream = open(path, "rb")
        except OSError:
            out.write(f"grep: cannot open {path}\n".encode())
            out.flush()
            return 1
        with stream:
            out.writelines(grep_lines(pattern, stream))
    out.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())