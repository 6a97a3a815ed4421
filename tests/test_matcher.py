import io
import sys

import pytest

from sixfs.matcher import BUFSIZE, grep_lines, main, match


@pytest.mark.parametrize(
    "pattern, text, expected",
    [
        ("abc", "xxabcxx", True),
        ("abc", "xxabxx", False),
        ("^ab", "abc", True),
        ("^ab", "cab", False),
        ("a.c", "zabcz", True),
        ("c$", "abc", True),
        ("c$", "abcd", False),
        ("ab*c", "ac", True),
        ("ab*c", "abbbbc", True),
        ("^a.*z$", "a123z", True),
        ("^a.*z$", "a123zq", False),
        ("", "", True),
        ("x*", "", True),
        ("^", "anything", True),
    ],
)
def test_match(pattern, text, expected):
    assert match(pattern, text) is expected


def test_grep_lines_selects_matching_lines():
    data = b"apple\nbanana\ncherry\napricot\n"
    assert list(grep_lines("^ap", data)) == [b"apple\n", b"apricot\n"]


def test_grep_lines_drops_unterminated_last_line():
    assert list(grep_lines("a", b"a1\na2")) == [b"a1\n"]


def test_grep_lines_from_stream():
    stream = io.BytesIO(b"one\ntwo\nthree\n")
    assert list(grep_lines("t", stream)) == [b"two\n", b"three\n"]


def test_grep_lines_overlong_line_is_cut():
    data = b"x" * (2 * BUFSIZE) + b"\nfoo\n"
    lines = list(grep_lines("x", data))
    assert all(line.endswith(b"\n") for line in lines)
    assert all(len(line) < 2 * BUFSIZE for line in lines)
    assert list(grep_lines("foo", data)) == [b"foo\n"]


def test_grep_lines_spanning_reads():
    lines = [b"line %d match\n" % i if i % 3 == 0 else b"line %d\n" % i for i in range(300)]
    data = b"".join(lines)
    assert list(grep_lines("match", data)) == [l for l in lines if b"match" in l]


def test_main_files(tmp_path, capsysbinary):
    path = tmp_path / "input.txt"
    path.write_bytes(b"red\ngreen\nblue\n")
    assert main(["e", str(path)]) == 0
    assert capsysbinary.readouterr().out == b"red\ngreen\nblue\n"
    assert main(["^g", str(path)]) == 0
    assert capsysbinary.readouterr().out == b"green\n"


def test_main_cannot_open(tmp_path, capsysbinary):
    missing = tmp_path / "missing"
    assert main(["x", str(missing)]) == 1
    assert capsysbinary.readouterr().out == f"grep: cannot open {missing}\n".encode()


def test_main_usage(capsysbinary):
    assert main([]) == 1
    assert b"usage: grep pattern" in capsysbinary.readouterr().err


def test_main_stdin(monkeypatch, capsysbinary):
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(b"aa\nbb\n")))
    assert main(["b"]) == 0
    assert capsysbinary.readouterr().out == b"bb\n"