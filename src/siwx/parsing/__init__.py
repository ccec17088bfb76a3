"""Parser for canonical SIWx message text."""

from siwx.parsing.grammar import RawFields, parse

__all__ = ["RawFields", "parse"]
