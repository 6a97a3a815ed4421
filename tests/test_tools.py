import io

import pytest

from sixfs.bufcache import BufferCache
from sixfs.disk import MemoryDisk
from sixfs.fs import FileSystem
from sixfs.journal import Log
from sixfs.layout import DIRSIZ, ROOTINO, InodeType
from sixfs.mkfs import ImageBuilder
from sixfs.tools import cat, echo, fmtname, ls


@pytest.fixture
def fs():
    builder = ImageBuilder()
    builder.add_file("README", b"read me\n")
    builder.add_file("_cat", b"binary")
    cache = BufferCache(MemoryDisk.from_image(builder.finish()))
    return FileSystem(cache, Log(cache))


def test_echo():
    assert echo(["a", "b"]) == "a b\n"
    assert echo(["one"]) == "one\n"
    assert echo([]) == ""


def test_cat_concatenates():
    big = bytes(i % 256 for i in range(1500))
    out = io.BytesIO()
    cat([io.BytesIO(b"first "), io.BytesIO(big), io.BytesIO(b"")], out)
    assert out.getvalue() == b"first " + big


def test_fmtname_pads_short_names():
    name = fmtname("dir/sub/file")
    assert len(name) == DIRSIZ
    assert name.rstrip() == "file"


def test_fmtname_long_name_unchanged():
    long = "a" * (DIRSIZ + 2)
    assert fmtname("/x/" + long) == long


def test_ls_root(fs):
    lines = ls(fs, "/")
    by_name = {line.split()[0]: line.split()[1:] for line in lines}
    assert set(by_name) == {".", "..", "README", "cat"}
    assert by_name["."] == [str(int(InodeType.DIR)), str(ROOTINO), by_name["."][2]]
    assert by_name["README"][0] == str(int(InodeType.FILE))
    assert by_name["README"][2] == str(len(b"read me\n"))


def test_ls_file(fs):
    [line] = ls(fs, "/cat")
    fields = line.split()
    assert fields[0] == "cat"
    assert fields[3] == str(len(b"binary"))


def test_ls_missing(fs):
    with pytest.raises(FileNotFoundError):
        ls(fs, "/nothing")


def test_ls_path_too_long(fs):
    with pytest.raises(ValueError):
        ls(fs, "/" * 600)