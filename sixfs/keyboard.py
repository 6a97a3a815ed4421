"""PC keyboard scan-code decoding."""

from __future__ import annotations

SHIFT = 1 << 0
CTL = 1 << 1
ALT = 1 << 2
CAPSLOCK = 1 << 3
NUMLOCK = 1 << 4
SCROLLLOCK = 1 << 5
E0ESC = 1 << 6

KEY_HOME = 0xE0
KEY_END = 0xE1
KEY_UP = 0xE2
KEY_DN = 0xE3
KEY_LF = 0xE4
KEY_RT = 0xE5
KEY_PGUP = 0xE6
KEY_PGDN = 0xE7
KEY_INS = 0xE8
KEY_DEL = 0xE9


def _ctl(ch: str) -> int:
    return (ord(ch) - ord("@")) & 0xFF


_SPECIAL = {
    0xC8: KEY_UP,
    0xD0: KEY_DN,
    0xC9: KEY_PGUP,
    0xD1: KEY_PGDN,
    0xCB: KEY_LF,
    0xCD: KEY_RT,
    0x97: KEY_HOME,
    0xCF: KEY_END,
    0xD2: KEY_INS,
    0xD3: KEY_DEL,
}


def _table(prefix, extras: dict[int, int]) -> tuple[int, ...]:
    table = [0] * 256
    for i, c in enumerate(prefix):
        table[i] = ord(c) if isinstance(c, str) else c
    for code, value in {**extras, **_SPECIAL}.items():
        table[code] = value
    return tuple(table)


_KEYPAD = (
    "\0 \0\0\0\0\0\0"
    "\0\0\0\0\0\0\0" "7"
    "89-456+1"
    "230.\0\0\0\0"
)

_NORMALMAP = _table(
    "\0\x1b123456"
    "7890-=\b\t"
    "qwertyui"
    "op[]\n\0as"
    "dfghjkl;"
    "'`\0\\zxcv"
    "bnm,./\0*" + _KEYPAD,
    {0x9C: ord("\n"), 0xB5: ord("/")},
)

_SHIFTMAP = _table(
    "\0\x1b!@#$%^"
    "&*()_+\b\t"
    "QWERTYUI"
    "OP{}\n\0AS"
    "DFGHJKL:"
    '"~\0|ZXCV'
    "BNM<>?\0*" + _KEYPAD,
    {0x9C: ord("\n"), 0xB5: ord("/")},
)

_CTLMAP = _table(
    [0] * 16
    + [_ctl(c) for c in "QWERTYUI"]
    + [_ctl("O"), _ctl("P"), 0, 0, ord("\r"), 0, _ctl("A"), _ctl("S")]
    + [_ctl(c) for c in "DFGHJKL"] + [0]
    + [0, 0, 0, _ctl("\\"), _ctl("Z"), _ctl("X"), _ctl("C"), _ctl("V")]
    + [_ctl("B"), _ctl("N"), _ctl("M"), 0, 0, _ctl("/"), 0, 0],
    {0x9C: ord("\r"), 0xB5: _ctl("/")},
)

_SHIFTCODE = {0x1D: CTL, 0x2A: SHIFT, 0x36: SHIFT, 0x38: ALT, 0x9D: CTL, 0xB8: ALT}
_TOGGLECODE = {0x3A: CAPSLOCK, 0x45: NUMLOCK, 0x46: SCROLLLOCK}
_CHARCODE = (_NORMALMAP, _SHIFTMAP, _CTLMAP, _CTLMAP)


class KeyboardDecoder:
    """Turns a stream of scan codes into characters, tracking modifier state."""

    def __init__(self):
        self.shift = 0

    def feed(self, scancode: int) -> int:
        """Decode one scan code; returns the character, or 0 when there is none."""
        if not 0 <= scancode <= 0xFF:
            raise ValueError(f"scan code out of range: {scancode}")
        data = scancode
        if data == 0xE0:
            self.shift |= E0ESC
            return 0
        if data & 0x80:
            # Key released.
            if not self.shift & E0ESC:
                data &= 0x7F
            self.shift &= ~(_SHIFTCODE.get(data, 0) | E0ESC)
            return 0
        if self.shift & E0ESC:
            data |= 0x80
            self.shift &= ~E0ESC

        self.shift |= _SHIFTCODE.get(data, 0)
        self.shift ^= _TOGGLECODE.get(data, 0)
        c = _CHARCODE[self.shift & (CTL | SHIFT)][data]
        if self.shift & CAPSLOCK:
            if ord("a") <= c <= ord("z"):
                c -= ord("a") - ord("A")
            elif ord("A") <= c <= ord("Z"):
                c += ord("a") - ord("A")
        return c