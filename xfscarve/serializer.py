"""JSON serialization of Python values to an output adapter."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .escape import ErrorHandler, escape_string
from .output import OutputAdapter, StringOutput, output_adapter

_MIN_DECIMAL_EXP = -4
_MAX_DECIMAL_EXP = 15


@dataclass(frozen=True)
class Binary:
    """A byte string with an optional numeric subtype."""

    data: bytes
    subtype: int | None = None


def count_digits(x: int) -> int:
    """Number of decimal digits of the non-negative integer *x*."""
    if x < 0:
        raise ValueError(f"expected a non-negative integer, got {x}")
    n_digits = 1
    while True:
        if x < 10:
            return n_digits
        if x < 100:
            return n_digits + 1
        if x < 1000:
            return n_digits + 2
        if x < 10000:
            return n_digits + 3
        x //= 10000
        n_digits += 4


def _shortest_digits(value: float) -> tuple[str, int]:
    """Shortest round-trip decimal digits of a positive float and their exponent."""
    mantissa, _, exp_text = repr(value).partition("e")
    exponent = int(exp_text) if exp_text else 0
    int_part, _, frac_part = mantissa.partition(".")
    digits = (int_part + frac_part).lstrip("0")
    exponent -= len(frac_part)
    stripped = digits.rstrip("0")
    exponent += len(digits) - len(stripped)
    return stripped, exponent


def _format_float(x: float) -> str:
    if not math.isfinite(x):
        return "null"
    if x == 0:
        return "-0.0" if math.copysign(1.0, x) < 0 else "0.0"
    sign = "-" if x < 0 else ""
    digits, exponent = _shortest_digits(abs(x))
    k = len(digits)
    n = k + exponent
    if k <= n <= _MAX_DECIMAL_EXP:
        body = digits + "0" * (n - k) + ".0"
    elif 0 < n <= _MAX_DECIMAL_EXP:
        body = f"{digits[:n]}.{digits[n:]}"
    elif _MIN_DECIMAL_EXP < n <= 0:
        body = "0." + "0" * (-n) + digits
    else:
        mant = digits if k == 1 else f"{digits[0]}.{digits[1:]}"
        e = n - 1
        body = f"{mant}e{'-' if e < 0 else '+'}{abs(e):02d}"
    return sign + body


class Serializer:
    """Writes JSON text for Python values to an output adapter."""

    def __init__(
        self,
        output: Any = None,
        indent_char: str = " ",
        error_handler: ErrorHandler = ErrorHandler.STRICT,
    ) -> None:
        self.output: OutputAdapter = output_adapter(output)
        self.indent_char = indent_char
        self.error_handler = ErrorHandler(error_handler)

    def _write(self, text: str) -> None:
        self.output.write_characters(text)

    def _write_string(self, s: str | bytes, ensure_ascii: bool) -> None:
        self._write('"')
        self._write(escape_string(s, ensure_ascii, self.error_handler))
        self._write('"')

    def dump(
        self,
        value: Any,
        pretty_print: bool = False,
        ensure_ascii: bool = False,
        indent_step: int = 0,
        current_indent: int = 0,
    ) -> None:
        """Serialize *value*; nested containers are indented when *pretty_print*."""
        if value is None:
            self._write("null")
        elif isinstance(value, bool):
            self._write("true" if value else "false")
        elif isinstance(value, int):
            self._write(str(value))
        elif isinstance(value, float):
            self._write(_format_float(value))
        elif isinstance(value, (str, bytes, bytearray)):
            self._write_string(value, ensure_ascii)
        elif isinstance(value, Binary):
            self._dump_binary(value, pretty_print, indent_step, current_indent)
        elif isinstance(value, Mapping):
            self._dump_object(value, pretty_print, ensure_ascii, indent_step, current_indent)
        elif isinstance(value, (list, tuple)):
            self._dump_array(value, pretty_print, ensure_ascii, indent_step, current_indent)
        else:
            raise TypeError(f"cannot serialize {type(value).__name__}")

    def _dump_object(
        self,
        obj: Mapping,
        pretty_print: bool,
        ensure_ascii: bool,
        indent_step: int,
        current_indent: int,
    ) -> None:
        if not obj:
            self._write("{}")
            return
        for key in obj:
            if not isinstance(key, (str, bytes, bytearray)):
                raise TypeError(f"object keys must be strings, not {type(key).__name__}")
        if pretty_print:
            new_indent = current_indent + indent_step
            inner = self.indent_char * new_indent
            self._write("{\n")
            for position, (key, item) in enumerate(obj.items()):
                if position:
                    self._write(",\n")
                self._write(inner)
                self._write_string(key, ensure_ascii)
                self._write(": ")
                self.dump(item, True, ensure_ascii, indent_step, new_indent)
            self._write("\n")
            self._write(self.indent_char * current_indent)
            self._write("}")
        else:
            self._write("{")
            for position, (key, item) in enumerate(obj.items()):
                if position:
                    self._write(",")
                self._write_string(key, ensure_ascii)
                self._write(":")
                self.dump(item, False, ensure_ascii, indent_step, current_indent)
            self._write("}")

    def _dump_array(
        self,
        items: list | tuple,
        pretty_print: bool,
        ensure_ascii: bool,
        indent_step: int,
        current_indent: int,
    ) -> None:
        if not items:
            self._write("[]")
            return
        if pretty_print:
            new_indent = current_indent + indent_step
            inner = self.indent_char * new_indent
            self._write("[\n")
            for position, item in enumerate(items):
                if position:
                    self._write(",\n")
                self._write(inner)
                self.dump(item, True, ensure_ascii, indent_step, new_indent)
            self._write("\n")
            self._write(self.indent_char * current_indent)
            self._write("]")
        else:
            self._write("[")
            for position, item in enumerate(items):
                if position:
                    self._write(",")
                self.dump(item, False, ensure_ascii, indent_step, current_indent)
            self._write("]")

    def _dump_binary(
        self, binary: Binary, pretty_print: bool, indent_step: int, current_indent: int
    ) -> None:
        subtype = "null" if binary.subtype is None else str(binary.subtype)
        if pretty_print:
            inner = self.indent_char * (current_indent + indent_step)
            self._write("{\n")
            self._write(inner)
            self._write('"bytes": [')
            self._write(", ".join(str(b) for b in binary.data))
            self._write("],\n")
            self._write(inner)
            self._write('"subtype": ')
            self._write(subtype)
            self._write("\n")
            self._write(self.indent_char * current_indent)
            self._write("}")
        else:
            self._write('{"bytes":[')
            self._write(",".join(str(b) for b in binary.data))
            self._write('],"subtype":')
            self._write(subtype)
            self._write("}")


def dumps(
    value: Any,
    indent: int = -1,
    indent_char: str = " ",
    ensure_ascii: bool = False,
    error_handler: ErrorHandler = ErrorHandler.STRICT,
) -> str:
    """Serialize *value* to a JSON string; a non-negative *indent* pretty-prints."""
    output = StringOutput()
    serializer = Serializer(output, indent_char, error_handler)
    if indent >= 0:
        serializer.dump(value, True, ensure_ascii, indent)
    else:
        serializer.dump(value, False, ensure_ascii, 0)
    return output.getvalue()