"""Low-level TrueType reading primitives and shared font table types."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Mapping, Optional


class FontFormatError(ValueError):
    """Raised when font data is malformed or uses an unsupported feature."""


class TableNotFoundError(FontFormatError):
    """Raised when a required table is missing from the font directory."""

    def __init__(self, tag: str) -> None:
        super().__init__(f"table not found: {tag!r}")
        self.tag = tag


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if value < 0.0:
        return int(value - 0.5)
    return int(value + 0.5)


@dataclass
class TableDirectoryEntry:
    """One entry of the TrueType table directory."""

    checksum: int = 0
    offset: int = 0
    length: int = 0

    def padded_length(self) -> int:
        """Length rounded up to a multiple of four bytes."""
        return (self.length + 3) & ~3


class KernValue(dict):
    """Kerning adjustments keyed by the right-hand glyph index."""

    def value_by_right(self, right: int) -> Optional[int]:
        """Return the adjustment for ``right``, or None if there is none."""
        return self.get(right)


@dataclass
class KernTable:
    """Contents of a ``kern`` table: left glyph index -> KernValue."""

    version: int = 0
    n_tables: int = 0
    kerning: dict[int, KernValue] = field(default_factory=dict)


@dataclass
class CmapFormat12GroupingTable:
    """A sequential map group from a format 12 ``cmap`` subtable."""

    start_char_code: int
    end_char_code: int
    glyph_id: int


class FontReader:
    """Big-endian cursor over an in-memory font file."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    @property
    def data(self) -> bytes:
        return self._data

    def read(self, length: int) -> bytes:
        """Read exactly ``length`` bytes."""
        if length < 0:
            raise ValueError("length must not be negative")
        if length > 0 and self._pos >= len(self._data):
            raise FontFormatError("unexpected end of font data")
        chunk = self._data[self._pos:self._pos + length]
        self._pos += len(chunk)
        if len(chunk) != length:
            raise FontFormatError("file out of length")
        return chunk

    def read_ushort(self) -> int:
        return struct.unpack(">H", self.read(2))[0]

    def read_short(self) -> int:
        return struct.unpack(">h", self.read(2))[0]

    def read_ulong(self) -> int:
        return struct.unpack(">I", self.read(4))[0]

    def skip(self, length: int) -> None:
        self.seek(self._pos + length)

    def seek(self, offset: int) -> None:
        if offset < 0:
            raise FontFormatError("negative position")
        self._pos = offset

    def tell(self) -> int:
        return self._pos

    def seek_table(self, tables: Mapping[str, TableDirectoryEntry], tag: str) -> None:
        """Move to the start of table ``tag``."""
        try:
            entry = tables[tag]
        except KeyError:
            raise TableNotFoundError(tag) from None
        self.seek(entry.offset)


def parse_cmap_format12(
    reader: FontReader, tables: Mapping[str, TableDirectoryEntry]
) -> list[CmapFormat12GroupingTable]:
    """Read the (3, 10) format 12 cmap subtable; empty list if absent."""
    reader.seek_table(tables, "cmap")
    reader.skip(2)  # version
    num_tables = reader.read_ushort()
    records = [
        (reader.read_ushort(), reader.read_ushort(), reader.read_ulong())
        for _ in range(num_tables)
    ]
    offset = next(
        (off for platform_id, encoding_id, off in records
         if platform_id == 3 and encoding_id == 10),
        None,
    )
    if offset is None:
        return []

    reader.seek(tables["cmap"].offset + offset)
    if reader.read_ushort() != 12:
        raise FontFormatError("format != 12")
    if reader.read_ushort() != 0:
        raise FontFormatError("reserved != 0")
    reader.skip(4)  # length
    reader.skip(4)  # language
    n_groups = reader.read_ulong()
    return [
        CmapFormat12GroupingTable(
            reader.read_ulong(), reader.read_ulong(), reader.read_ulong()
        )
        for _ in range(n_groups)
    ]


def parse_kern(
    reader: FontReader, tables: Mapping[str, TableDirectoryEntry]
) -> Optional[KernTable]:
    """Read the ``kern`` table, or return None when the font has none."""
    try:
        reader.seek_table(tables, "kern")
    except TableNotFoundError:
        return None

    kern = KernTable()
    kern.version = reader.read_ushort()
    kern.n_tables = reader.read_ushort()
    for _ in range(kern.n_tables):
        kern.kerning = _parse_kern_subtable(reader)
    return kern


def _parse_kern_subtable(reader: FontReader) -> dict[int, KernValue]:
    reader.skip(2 + 2)  # version, length
    coverage = reader.read_ushort()
    fmt = coverage & 0xF0
    if fmt != 0:
        raise FontFormatError(f"not support kerning format {fmt}")
    return _parse_kern_format0(reader)


def _parse_kern_format0(reader: FontReader) -> dict[int, KernValue]:
    n_pairs = reader.read_ushort()
    reader.skip(2 + 2 + 2)  # searchRange, entrySelector, rangeShift
    kerning: dict[int, KernValue] = {}
    for _ in range(n_pairs):
        left = reader.read_ushort()
        right = reader.read_ushort()
        value = reader.read_short()
        kerning.setdefault(left, KernValue())[right] = value
    return kerning