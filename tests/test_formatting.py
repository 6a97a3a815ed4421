import pytest

from sixfs.formatting import cformat, format_message
from sixfs.layout import FsPanic


def test_decimal_signed():
    assert format_message("%d apples", -5) == "-5 apples"
    assert cformat("%d", 42) == "42"


def test_hex_case_differs():
    assert format_message("%x", 255) == "FF"
    assert cformat("%x", 255) == "ff"
    assert format_message("%p", 255) == format_message("%x", 255)


def test_hex_is_unsigned_32_bit():
    assert cformat("%x", -1) == "ffffffff"


def test_most_negative_decimal():
    assert format_message("%d", -(2**31)) == "-2147483648"


def test_strings_and_null():
    assert format_message("%s/%s", "a", "b") == "a/b"
    assert cformat("%s", None) == "(null)"


def test_char_only_in_user_printf():
    assert format_message("%c", 65) == "A"
    assert cformat("%c", 65) == "%c"


def test_percent_and_unknown():
    assert format_message("100%%") == "100%"
    assert cformat("%q") == "%q"


def test_trailing_percent_dropped():
    assert format_message("abc%") == "abc"
    assert cformat("abc%") == "abc"


def test_missing_argument():
    with pytest.raises(TypeError):
        format_message("%d")


def test_null_console_format_panics():
    with pytest.raises(FsPanic, match="null fmt"):
        cformat(None)