"""Output sinks that receive characters one at a time or in runs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import MutableSequence
from typing import Any


class OutputAdapter(ABC):
    """Destination for serialized output."""

    @abstractmethod
    def write_character(self, c: Any) -> None:
        """Write a single character."""

    @abstractmethod
    def write_characters(self, data: Any) -> None:
        """Write a run of characters."""


class BufferOutput(OutputAdapter):
    """Appends to a mutable sequence such as a list or a bytearray."""

    def __init__(self, buffer: MutableSequence) -> None:
        self.buffer = buffer

    def write_character(self, c: Any) -> None:
        self.buffer.append(c)

    def write_characters(self, data: Any) -> None:
        self.buffer.extend(data)


class StreamOutput(OutputAdapter):
    """Writes to any object with a ``write`` method."""

    def __init__(self, stream: Any) -> None:
        self.stream = stream

    def write_character(self, c: Any) -> None:
        self.stream.write(c)

    def write_characters(self, data: Any) -> None:
        self.stream.write(data)


class StringOutput(OutputAdapter):
    """Collects text in memory."""

    def __init__(self) -> None:
        self._parts: list[str] = []

    def write_character(self, c: str) -> None:
        if len(c) != 1:
            raise ValueError(f"expected a single character, got {c!r}")
        self._parts.append(c)

    def write_characters(self, data: str) -> None:
        self._parts.append(data)

    def getvalue(self) -> str:
        """Everything written so far."""
        return "".join(self._parts)


def output_adapter(target: Any = None) -> OutputAdapter:
    """Choose an adapter for *target*.

    None gives a new :class:`StringOutput`; a list or bytearray a
    :class:`BufferOutput`; anything with ``write`` a :class:`StreamOutput`.
    An adapter is returned unchanged.
    """
    if target is None:
        return StringOutput()
    if isinstance(target, OutputAdapter):
        return target
    if isinstance(target, MutableSequence):
        return BufferOutput(target)
    if callable(getattr(target, "write", None)):
        return StreamOutput(target)
    raise TypeError(f"cannot write output to {type(target).__name__}")