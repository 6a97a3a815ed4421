import threading

from sixfs.console import BACKSPACE, INPUT_BUF, Console


def test_line_is_echoed_and_read():
    con = Console()
    con.interrupt("hello\n")
    assert bytes(con.output) == b"hello\n"
    assert con.read(100) == b"hello\n"


def test_carriage_return_becomes_newline():
    con = Console()
    con.interrupt("hi\r")
    assert con.read(10) == b"hi\n"


def test_backspace_edits_line():
    con = Console()
    con.interrupt("ab\x08c\n")
    assert con.read(10) == b"ac\n"
    assert b"\b \b" in con.output


def test_delete_key_and_empty_backspace():
    con = Console()
    con.interrupt("\x7fx\x7fy\n")
    assert con.read(10) == b"y\n"


def test_kill_line():
    con = Console()
    con.interrupt("abc\x15d\n")
    assert con.read(10) == b"d\n"


def test_ctrl_d_gives_end_of_file_after_data():
    con = Console()
    con.interrupt("ab\x04")
    assert con.read(10) == b"ab"
    assert con.read(10) == b""


def test_partial_read_keeps_rest():
    con = Console()
    con.interrupt("hello\n")
    assert con.read(2) == b"he"
    assert con.read(10) == b"llo\n"


def test_full_buffer_completes_line():
    con = Console()
    con.interrupt("a" * (INPUT_BUF + 20))
    assert con.read(INPUT_BUF) == b"a" * INPUT_BUF
    assert con.e == INPUT_BUF


def test_procdump_called():
    calls = []
    con = Console(procdump=lambda: calls.append(True))
    con.interrupt("\x10")
    assert calls == [True]
    assert con.output == bytearray()


def test_write_and_putc_backspace():
    con = Console()
    assert con.write(b"ok") == 2
    con.putc(BACKSPACE)
    assert bytes(con.output) == b"ok\b \b"


def test_read_waits_for_line():
    con = Console()
    result = []
    t = threading.Thread(target=lambda: result.append(con.read(20)))
    t.start()
    con.interrupt([ord("x"), ord("\n")])
    t.join(timeout=10)
    assert not t.is_alive()
    assert bytes(con.output) == b"x\n"
    assert result == [b"x\n"]