"""Minimal parser combinators over a string and a character offset.

A Parser is a function ``(text, offset) -> Success | Failure``. Failures carry
the offset where they happened; ``optional`` and ``many`` only back off when
the inner parser failed without consuming input, so a line whose prefix
matched but whose body is broken is reported rather than silently skipped.

When ``optional`` or ``many`` backs off, the Success remembers what was
expected at its end offset. If the next parser in a ``sequence`` fails at that
same offset, the expectations are merged (``'a' | 'b' | end of input``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T
    offset: int
    # Alternatives that failed at offset without consuming input
    expected: tuple[str, ...] = field(default=(), compare=False)


@dataclass(frozen=True)
class Failure:
    offset: int
    expected: str


Result = Union[Success[T], Failure]


class Parser(Generic[T]):
    """Wraps a parse function with composition helpers."""

    def __init__(self, fn: Callable[[str, int], "Result[T]"], name: str = "parser"):
        self._fn = fn
        self.name = name

    def __call__(self, text: str, offset: int = 0) -> "Result[T]":
        return self._fn(text, offset)

    def __repr__(self) -> str:
        return f"Parser({self.name})"

    def map(self, fn: Callable[[T], U]) -> "Parser[U]":
        def run(text: str, offset: int) -> Result[U]:
            result = self(text, offset)
            if isinstance(result, Failure):
                return result
            return Success(fn(result.value), result.offset, result.expected)

        return Parser(run, f"{self.name}.map")

    def then(self, other: "Parser[U]") -> "Parser[U]":
        """Run self, discard its value, then run other."""
        return sequence(self, other).map(lambda values: values[1])

    def skip(self, other: "Parser[Any]") -> "Parser[T]":
        """Run self, then other, keeping the value of self."""
        return sequence(self, other).map(lambda values: values[0])


def literal(expected: str, description: str | None = None) -> Parser[str]:
    """Match an exact string. Fails at the start offset, consuming nothing."""

    def run(text: str, offset: int) -> Result[str]:
        if text.startswith(expected, offset):
            return Success(expected, offset + len(expected))
        return Failure(offset, description or repr(expected))

    return Parser(run, f"literal({expected!r})")


def take_until(terminator: str, description: str) -> Parser[str]:
    """Take a non-empty run of characters on the current line up to terminator.

    The terminator itself is not consumed.
    """

    def run(text: str, offset: int) -> Result[str]:
        line_end = _line_end(text, offset)
        index = text.find(terminator, offset, line_end)
        if index == -1:
            return Failure(line_end, repr(terminator))
        if index == offset:
            return Failure(offset, description)
        return Success(text[offset:index], index)

    return Parser(run, f"take_until({terminator!r})")


def rest_of_line(description: str) -> Parser[str]:
    """Take the remaining non-empty content of the current line."""

    def run(text: str, offset: int) -> Result[str]:
        line_end = _line_end(text, offset)
        if line_end == offset:
            return Failure(offset, description)
        return Success(text[offset:line_end], line_end)

    return Parser(run, f"rest_of_line({description})")


def end_of_input() -> Parser[None]:
    def run(text: str, offset: int) -> Result[None]:
        if offset == len(text):
            return Success(None, offset)
        return Failure(offset, "end of input")

    return Parser(run, "end_of_input")


def sequence(*parsers: Parser[Any]) -> Parser[tuple[Any, ...]]:
    """Run parsers left to right, collecting their values into a tuple."""

    def run(text: str, offset: int) -> Result[tuple[Any, ...]]:
        values = []
        hints: tuple[str, ...] = ()
        for parser in parsers:
            result = parser(text, offset)
            if isinstance(result, Failure):
                if hints and result.offset == offset:
                    return Failure(offset, _merge(*hints, result.expected))
                return result
            values.append(result.value)
            hints = result.expected if result.offset != offset else hints + result.expected
            offset = result.offset
        return Success(tuple(values), offset, hints)

    return Parser(run, "sequence")


def optional(parser: Parser[T]) -> Parser[T | None]:
    """Try parser; yield None if it fails without consuming input."""

    def run(text: str, offset: int) -> Result[T | None]:
        result = parser(text, offset)
        if isinstance(result, Failure) and result.offset == offset:
            return Success(None, offset, (result.expected,))
        return result

    return Parser(run, f"optional({parser.name})")


def many(parser: Parser[T]) -> Parser[list[T]]:
    """Apply parser zero or more times."""

    def run(text: str, offset: int) -> Result[list[T]]:
        values: list[T] = []
        while True:
            result = parser(text, offset)
            if isinstance(result, Failure):
                if result.offset == offset:
                    return Success(values, offset, (result.expected,))
                return result
            if result.offset == offset:
                # Guard against parsers that succeed without consuming input
                return Success(values, offset)
            values.append(result.value)
            offset = result.offset

    return Parser(run, f"many({parser.name})")


def _merge(*expected: str) -> str:
    return " | ".join(dict.fromkeys(expected))


def _line_end(text: str, offset: int) -> int:
    index = text.find("\n", offset)
    return len(text) if index == -1 else index
