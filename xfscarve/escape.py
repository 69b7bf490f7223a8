"""JSON string escaping with UTF-8 validation."""

from __future__ import annotations

from enum import Enum

UTF8_ACCEPT = 0
UTF8_REJECT = 1

_UTF8D = (
    # byte classes 00..FF
    *([0] * 128),
    *([1] * 16), *([9] * 16),
    *([7] * 32),
    8, 8, *([2] * 30),
    0xA, *([0x3] * 12), 0x4, 0x3, 0x3,
    0xB, 0x6, 0x6, 0x6, 0x5, *([0x8] * 11),
    # state transitions
    0x0, 0x1, 0x2, 0x3, 0x5, 0x8, 0x7, 0x1, 0x1, 0x1, 0x4, 0x6, 0x1, 0x1, 0x1, 0x1,
    1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 0, 1, 1, 1, 1, 1, 0, 1, 0, 1, 1, 1, 1, 1, 1,
    1, 2, 1, 1, 1, 1, 1, 2, 1, 2, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 2, 1, 1, 1, 1, 1, 1, 1, 1,
    1, 2, 1, 1, 1, 1, 1, 1, 1, 2, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 3, 1, 3, 1, 1, 1, 1, 1, 1,
    1, 3, 1, 1, 1, 1, 1, 3, 1, 3, 1, 1, 1, 1, 1, 1, 1, 3, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1,
)

_SIMPLE_ESCAPES = {
    0x08: b"\\b",
    0x09: b"\\t",
    0x0A: b"\\n",
    0x0C: b"\\f",
    0x0D: b"\\r",
    0x22: b'\\"',
    0x5C: b"\\\\",
}

_REPLACEMENT_ASCII = b"\\ufffd"
_REPLACEMENT_UTF8 = b"\xef\xbf\xbd"


class ErrorHandler(Enum):
    """How invalid UTF-8 in a string is treated."""

    STRICT = "strict"
    REPLACE = "replace"
    IGNORE = "ignore"


class JsonTypeError(TypeError):
    """Raised when a value cannot be serialized; carries a numeric error id."""

    def __init__(self, id_: int, message: str) -> None:
        super().__init__(message)
        self.id = id_
        self.message = message


def decode_utf8(state: int, codepoint: int, byte: int) -> tuple[int, int]:
    """Advance the UTF-8 decoding automaton by one byte.

    Returns the new state and the code point built so far; the code point
    is complete when the state is ``UTF8_ACCEPT`` and the input was
    rejected when it is ``UTF8_REJECT``.
    """
    if not 0 <= byte <= 0xFF:
        raise ValueError(f"not a byte: {byte}")
    kind = _UTF8D[byte]
    if state != UTF8_ACCEPT:
        codepoint = (byte & 0x3F) | ((codepoint << 6) & 0xFFFFFFFF)
    else:
        codepoint = (0xFF >> kind) & byte
    state = _UTF8D[256 + state * 16 + kind]
    return state, codepoint


def hex_byte(byte: int) -> str:
    """Two upper-case hexadecimal digits for *byte*."""
    return f"{byte & 0xFF:02X}"


def _escape_codepoint(codepoint: int) -> bytes:
    if codepoint <= 0xFFFF:
        return f"\\u{codepoint:04x}".encode("ascii")
    high = 0xD7C0 + (codepoint >> 10)
    low = 0xDC00 + (codepoint & 0x3FF)
    return f"\\u{high:04x}\\u{low:04x}".encode("ascii")


def escape_string(
    s: str | bytes,
    ensure_ascii: bool = False,
    error_handler: ErrorHandler = ErrorHandler.STRICT,
) -> str:
    """Escape *s* for use inside a JSON string literal (without quotes).

    Control characters, quotes and backslashes are escaped; with
    *ensure_ascii* every non-ASCII character becomes a ``\\uXXXX``
    sequence. Invalid UTF-8 is handled according to *error_handler*.
    """
    data = s.encode("utf-8", "surrogatepass") if isinstance(s, str) else bytes(s)
    error_handler = ErrorHandler(error_handler)
    out = bytearray()
    last_accept = 0
    undumped = 0
    state = UTF8_ACCEPT
    codepoint = 0
    i = 0
    while i < len(data):
        byte = data[i]
        state, codepoint = decode_utf8(state, codepoint, byte)
        if state == UTF8_ACCEPT:
            escaped = _SIMPLE_ESCAPES.get(codepoint)
            if escaped is not None:
                out += escaped
            elif codepoint <= 0x1F or (ensure_ascii and codepoint >= 0x7F):
                out += _escape_codepoint(codepoint)
            else:
                out.append(byte)
            last_accept = len(out)
            undumped = 0
        elif state == UTF8_REJECT:
            if error_handler is ErrorHandler.STRICT:
                raise JsonTypeError(
                    316, f"invalid UTF-8 byte at index {i}: 0x{hex_byte(byte)}"
                )
            if undumped > 0:
                i -= 1
            del out[last_accept:]
            if error_handler is ErrorHandler.REPLACE:
                out += _REPLACEMENT_ASCII if ensure_ascii else _REPLACEMENT_UTF8
                last_accept = len(out)
            undumped = 0
            state = UTF8_ACCEPT
        else:
            if not ensure_ascii:
                out.append(byte)
            undumped += 1
        i += 1

    if state != UTF8_ACCEPT:
        if error_handler is ErrorHandler.STRICT:
            raise JsonTypeError(
                316, f"incomplete UTF-8 string; last byte: 0x{hex_byte(data[-1])}"
            )
        del out[last_accept:]
        if error_handler is ErrorHandler.REPLACE:
            out += _REPLACEMENT_ASCII if ensure_ascii else _REPLACEMENT_UTF8

    return out.decode("utf-8")