import threading

import pytest

from sixfs.pipe import PIPESIZE, Pipe


def test_write_then_read():
    p = Pipe()
    assert p.write(b"hello") == 5
    assert p.read(3) == b"hel"
    assert p.read(10) == b"lo"


def test_read_after_writer_closed_returns_empty():
    p = Pipe()
    p.write(b"x")
    p.close(True)
    assert p.read(5) == b"x"
    assert p.read(5) == b""


def test_write_to_full_pipe_without_reader_fails():
    p = Pipe()
    p.close(False)
    assert p.write(bytes(PIPESIZE)) == PIPESIZE
    with pytest.raises(BrokenPipeError):
        p.write(b"y")


def test_large_write_blocks_until_read():
    p = Pipe()
    data = bytes(i % 256 for i in range(PIPESIZE * 3 + 7))
    got = bytearray()

    def reader():
        while chunk := p.read(100):
            got.extend(chunk)

    t = threading.Thread(target=reader)
    t.start()
    assert p.write(data) == len(data)
    p.close(True)
    t.join(timeout=10)
    assert not t.is_alive()
    assert bytes(got) == data


def test_read_waits_for_writer():
    p = Pipe()
    result = []
    t = threading.Thread(target=lambda: result.append(p.read(10)))
    t.start()
    assert p.write(b"later") == 5
    t.join(timeout=10)
    assert not t.is_alive()
    assert result == [b"later"]
    p.close(True)
    assert p.read(10) == b""