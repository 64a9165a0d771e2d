"""Insertion-ordered mapping from characters to glyph indexes."""

from __future__ import annotations

from typing import Iterator, Optional


class CharacterToGlyphIndex:
    """Characters in the order they were added, with their glyph indexes.

    Setting a character again appends a new entry; lookups then see the
    most recent one.
    """

    def __init__(self) -> None:
        self._positions: dict[str, int] = {}
        self._keys: list[str] = []
        self._values: list[int] = []

    def set(self, char: str, glyph: int) -> None:
        """Record ``glyph`` as the glyph index of ``char``."""
        self._positions[char] = len(self._keys)
        self._keys.append(char)
        self._values.append(glyph)

    def index(self, char: str) -> int:
        """Position of ``char`` among the recorded entries; KeyError if absent."""
        return self._positions[char]

    def value(self, char: str) -> int:
        """Glyph index of ``char``; KeyError if absent."""
        return self._values[self._positions[char]]

    def get(self, char: str, default: Optional[int] = None) -> Optional[int]:
        """Glyph index of ``char``, or ``default`` if absent."""
        position = self._positions.get(char)
        return default if position is None else self._values[position]

    def keys(self) -> list[str]:
        """All recorded characters in insertion order."""
        return list(self._keys)

    def values(self) -> list[int]:
        """All recorded glyph indexes in insertion order."""
        return list(self._values)

    def __contains__(self, char: object) -> bool:
        return char in self._positions

    def __len__(self) -> int:
        return len(self._positions)

    def __iter__(self) -> Iterator[str]:
        return iter(self._positions)