"""Small user programs: echo, cat and ls."""

from __future__ import annotations

from .layout import DIRENT_SIZE, DIRSIZ, Dirent, InodeType

_CHUNK = 512
_PATHBUF = 512


def echo(args) -> str:
    """The arguments separated by spaces and ended by a newline."""
    args = list(args)
    return " ".join(args) + "\n" if args else ""


def cat(streams, out) -> None:
    """Copy each binary stream to out, in order."""
    for stream in streams:
        while chunk := stream.read(_CHUNK):
            if out.write(chunk) != len(chunk):
                raise OSError("cat: write error")


def fmtname(path: str) -> str:
    """The last element of path, blank-padded to DIRSIZ characters."""
    name = path.rsplit("/", 1)[-1]
    if len(name) >= DIRSIZ:
        return name
    return name.ljust(DIRSIZ)


def _stat(fs, path, cwd):
    with fs.log.transaction():
        ip = fs.namei(path, cwd)
        if ip is None:
            return None, b""
        fs.ilock(ip)
        try:
            st = fs.stati(ip)
            content = fs.readi(ip, 0, ip.size) if st.type == InodeType.DIR else b""
        finally:
            fs.iunlockput(ip)
    return st, content


def _line(path, st) -> str:
    return f"{fmtname(path)} {st.type} {st.ino} {st.size}"


def ls(fs, path: str, cwd=None) -> list[str]:
    """List a file, or every entry of a directory, as 'name type inode size' lines."""
    st, content = _stat(fs, path, cwd)
    if st is None:
        raise FileNotFoundError(f"ls: cannot open {path}")
    if st.type == InodeType.FILE:
        return [_line(path, st)]
    if st.type != InodeType.DIR:
        return []
    if len(path) + 1 + DIRSIZ + 1 > _PATHBUF:
        raise ValueError("ls: path too long")
    lines = []
    for off in range(0, len(content) - DIRENT_SIZE + 1, DIRENT_SIZE):
        de = Dirent.unpack(content[off : off + DIRENT_SIZE])
        if de.inum == 0:
            continue
        child = f"{path}/{de.name}"
        child_st, _ = _stat(fs, child, cwd)
        if child_st is None:
            lines.append(f"ls: cannot stat {child}")
            continue
        lines.append(_line(child, child_st))
    return lines