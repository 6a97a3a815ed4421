"""The small printf dialects: %d, %x, %p, %s and, for user programs, %c."""

from __future__ import annotations

from .layout import FsPanic

_UPPER = "0123456789ABCDEF"
_LOWER = "0123456789abcdef"
_MASK = 0xFFFFFFFF


def _int_text(value: int, base: int, signed: bool, digits: str) -> str:
    x = value & _MASK
    negative = signed and bool(x & 0x80000000)
    if negative:
        x = (-x) & _MASK
    out = []
    while True:
        out.append(digits[x % base])
        x //= base
        if x == 0:
            break
    if negative:
        out.append("-")
    return "".join(reversed(out))


def _format(fmt: str, args: tuple, digits: str, with_char: bool) -> str:
    fmt = fmt.split("\0", 1)[0]
    remaining = iter(args)

    def next_arg():
        try:
            return next(remaining)
        except StopIteration:
            raise TypeError("not enough arguments for format string") from None

    out = []
    chars = iter(fmt)
    for c in chars:
        if c != "%":
            out.append(c)
            continue
        c = next(chars, None)
        if c is None:
            break
        if c == "d":
            out.append(_int_text(next_arg(), 10, True, digits))
        elif c in "xp":
            out.append(_int_text(next_arg(), 16, False, digits))
        elif c == "s":
            s = next_arg()
            out.append("(null)" if s is None else str(s))
        elif c == "c" and with_char:
            out.append(chr(next_arg() & 0xFF))
        elif c == "%":
            out.append("%")
        else:
            # Unknown sequences are printed to draw attention.
            out.append("%" + c)
    return "".join(out)


def format_message(fmt: str, *args) -> str:
    """Format as user programs do: upper-case hex and %c supported."""
    return _format(fmt, args, _UPPER, True)


def cformat(fmt: str, *args) -> str:
    """Format as the console does: lower-case hex, no %c."""
    if fmt is None:
        raise FsPanic("null fmt")
    return _format(fmt, args, _LOWER, False)