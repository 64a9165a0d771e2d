"""TrueType font parser that extracts the metrics needed to embed a font."""

from __future__ import annotations

import os
from typing import BinaryIO, Optional

from .fontcore import (
    CmapFormat12GroupingTable,
    FontFormatError,
    FontReader,
    KernTable,
    TableDirectoryEntry,
    parse_cmap_format12,
    parse_kern,
)

SYMBOLIC = 1 << 2
NONSYMBOLIC = 1 << 5

_TRUETYPE_VERSION = b"\x00\x01\x00\x00"
_HEAD_MAGIC = 0x5F0F3CF5


class TTFParser:
    """Reads the tables of a TrueType font that PDF embedding relies on."""

    def __init__(self, use_kerning: bool = False) -> None:
        self.use_kerning = use_kerning
        self._reset()

    def _reset(self) -> None:
        self.tables: dict[str, TableDirectoryEntry] = {}
        # head
        self.units_per_em = 0
        self.x_min = 0
        self.y_min = 0
        self.x_max = 0
        self.y_max = 0
        self.index_to_loc_format = 0
        # hhea
        self.number_of_h_metrics = 0
        self.hhea_ascender = 0
        self.hhea_descender = 0
        # maxp, hmtx, cmap, name
        self.num_glyphs = 0
        self.widths: list[int] = []
        self.chars: dict[int, int] = {}
        self.post_script_name = ""
        # OS/2
        self.os2_version = 0
        self.embeddable = False
        self.bold = False
        self.typo_ascender = 0
        self.typo_descender = 0
        self.typo_line_gap = 0
        self.win_ascent = 0
        self.win_descent = 0
        self.cap_height = 0
        self.sx_height = 0
        # post
        self.italic_angle = 0
        self.underline_position = 0
        self.underline_thickness = 0
        self.is_fixed_pitch = False
        # loca and cmap format 4 segments
        self.is_short_index = False
        self.loca_table: list[int] = []
        self.seg_count = 0
        self.start_count: list[int] = []
        self.end_count: list[int] = []
        self.id_range_offset: list[int] = []
        self.id_delta: list[int] = []
        self.glyph_id_array: list[int] = []
        self.symbol = False
        # cmap format 12
        self.grouping_tables: list[CmapFormat12GroupingTable] = []
        self.font_data = b""
        self.kern: Optional[KernTable] = None

    # -- entry points -------------------------------------------------------

    def parse(self, path: str | os.PathLike) -> None:
        """Parse the font file at ``path``."""
        with open(path, "rb") as handle:
            self.parse_font_data(handle.read())

    def parse_reader(self, stream: BinaryIO) -> None:
        """Parse a font read in full from ``stream``."""
        self.parse_font_data(stream.read())

    def parse_font_data(self, data: bytes) -> None:
        """Parse a font held in memory."""
        data = bytes(data)
        self._reset()
        reader = FontReader(data)

        if reader.read(4) != _TRUETYPE_VERSION:
            raise FontFormatError("Unrecognized file (font) format")
        num_tables = reader.read_ushort()
        reader.skip(3 * 2)  # searchRange, entrySelector, rangeShift
        for _ in range(num_tables):
            tag = reader.read(4).decode("latin-1")
            checksum = reader.read_ulong()
            offset = reader.read_ulong()
            length = reader.read_ulong()
            self.tables[tag] = TableDirectoryEntry(checksum, offset, length)

        self._parse_head(reader)
        self._parse_hhea(reader)
        self._parse_maxp(reader)
        self._parse_hmtx(reader)
        self._parse_cmap(reader)
        self._parse_name(reader)
        self._parse_os2(reader)
        self._parse_post(reader)
        self._parse_loca(reader)
        if self.use_kerning:
            self.kern = parse_kern(reader, self.tables)

        self.font_data = data

    # -- derived metrics ----------------------------------------------------

    def x_height(self) -> int:
        """Height of lower-case letters in design units."""
        if self.os2_version >= 2 and self.sx_height != 0:
            return self.sx_height
        return int(0.66 * self.hhea_ascender)

    def ascender(self) -> int:
        """Ascender used for the font descriptor."""
        if self.typo_ascender == 0:
            return self.hhea_ascender
        return self.win_ascent

    def descender(self) -> int:
        """Descender used for the font descriptor."""
        if self.typo_descender == 0:
            return self.hhea_descender
        descender = self.win_descent
        if self.hhea_descender < 0:
            descender = -descender
        return descender

    def flag(self) -> int:
        """PDF font descriptor flags."""
        return SYMBOLIC if self.symbol else NONSYMBOLIC

    # -- table parsers ------------------------------------------------------

    def _parse_head(self, reader: FontReader) -> None:
        reader.seek_table(self.tables, "head")
        reader.skip(3 * 4)  # version, fontRevision, checkSumAdjustment
        if reader.read_ulong() != _HEAD_MAGIC:
            raise FontFormatError("Incorrect magic number")
        reader.skip(2)  # flags
        self.units_per_em = reader.read_ushort()
        reader.skip(2 * 8)  # created, modified
        self.x_min = reader.read_short()
        self.y_min = reader.read_short()
        self.x_max = reader.read_short()
        self.y_max = reader.read_short()
        reader.skip(2 * 3)  # macStyle, lowestRecPPEM, fontDirectionHint
        self.index_to_loc_format = reader.read_short()

    def _parse_hhea(self, reader: FontReader) -> None:
        reader.seek_table(self.tables, "hhea")
        reader.skip(4)  # version
        self.hhea_ascender = reader.read_short()
        self.hhea_descender = reader.read_short()
        reader.skip(13 * 2)
        self.number_of_h_metrics = reader.read_ushort()

    def _parse_maxp(self, reader: FontReader) -> None:
        reader.seek_table(self.tables, "maxp")
        reader.skip(4)  # version
        self.num_glyphs = reader.read_ushort()

    def _parse_hmtx(self, reader: FontReader) -> None:
        reader.seek_table(self.tables, "hmtx")
        widths = []
        for _ in range(self.number_of_h_metrics):
            widths.append(reader.read_ushort())
            reader.skip(2)  # left side bearing
        if self.number_of_h_metrics < self.num_glyphs:
            if not widths:
                raise FontFormatError("hmtx table has no metrics")
            widths.extend([widths[-1]] * (self.num_glyphs - len(widths)))
        self.widths = widths

    def _parse_cmap(self, reader: FontReader) -> None:
        reader.seek_table(self.tables, "cmap")
        reader.skip(2)  # version
        num_tables = reader.read_ushort()
        offset31 = 0
        for _ in range(num_tables):
            platform_id = reader.read_ushort()
            encoding_id = reader.read_ushort()
            offset = reader.read_ulong()
            self.symbol = False
            if platform_id == 3 and encoding_id == 1:
                offset31 = offset
        if offset31 == 0:
            raise FontFormatError("No Unicode encoding found")

        reader.seek(self.tables["cmap"].offset + offset31)
        if reader.read_ushort() != 4:
            raise FontFormatError("Unexpected subtable format")
        length = reader.read_ushort()
        reader.skip(2)  # language
        seg_count = reader.read_ushort() // 2
        self.seg_count = seg_count
        reader.skip(3 * 2)  # searchRange, entrySelector, rangeShift

        glyph_bytes = length - (16 + 8 * seg_count)
        if glyph_bytes < 0:
            raise FontFormatError("cmap subtable length too small")
        glyph_count = glyph_bytes // 2

        self.end_count = [reader.read_ushort() for _ in range(seg_count)]
        reader.skip(2)  # reservedPad
        self.start_count = [reader.read_ushort() for _ in range(seg_count)]
        self.id_delta = [reader.read_ushort() for _ in range(seg_count)]
        range_offset_start = reader.tell()
        self.id_range_offset = [reader.read_ushort() for _ in range(seg_count)]
        self.glyph_id_array = [reader.read_ushort() for _ in range(glyph_count)]

        chars: dict[int, int] = {}
        segments = zip(self.start_count, self.end_count, self.id_delta, self.id_range_offset)
        for i, (first, last, delta, range_offset) in enumerate(segments):
            if range_offset > 0:
                reader.seek(range_offset_start + 2 * i + range_offset)
            for code in range(first, last + 1):
                if code == 0xFFFF:
                    break
                if range_offset > 0:
                    gid = reader.read_ushort()
                    if gid > 0:
                        gid += delta
                else:
                    gid = code + delta
                if gid >= 65536:
                    gid -= 65536
                if gid > 0:
                    chars[code] = gid
        self.chars = chars

        self.grouping_tables = parse_cmap_format12(reader, self.tables)

    def _parse_name(self, reader: FontReader) -> None:
        reader.seek_table(self.tables, "name")
        table_offset = reader.tell()
        self.post_script_name = ""
        reader.skip(2)  # format
        count = reader.read_ushort()
        string_offset = reader.read_ushort()
        for _ in range(count):
            reader.skip(3 * 2)  # platformID, encodingID, languageID
            name_id = reader.read_ushort()
            length = reader.read_ushort()
            offset = reader.read_ushort()
            if name_id == 6:
                reader.seek(table_offset + string_offset + offset)
                raw = reader.read(length).replace(b"\x00", b"")
                self.post_script_name = raw.decode("latin-1").replace("0", "")
                break
        if not self.post_script_name:
            raise FontFormatError("PostScript name not found")

    def _parse_os2(self, reader: FontReader) -> None:
        reader.seek_table(self.tables, "OS/2")
        version = reader.read_ushort()
        self.os2_version = version
        reader.skip(3 * 2)  # xAvgCharWidth, usWeightClass, usWidthClass
        fs_type = reader.read_ushort()
        self.embeddable = fs_type != 2 and (fs_type & 0x200) == 0
        reader.skip(11 * 2 + 10 + 4 * 4 + 4)
        fs_selection = reader.read_ushort()
        self.bold = (fs_selection & 32) != 0
        reader.skip(2 * 2)  # usFirstCharIndex, usLastCharIndex
        self.typo_ascender = reader.read_short()
        self.typo_descender = reader.read_short()
        self.typo_line_gap = reader.read_short()
        self.win_ascent = reader.read_ushort()
        self.win_descent = reader.read_ushort()
        if version >= 2:
            reader.skip(2 * 4)  # ulCodePageRange1, ulCodePageRange2
            self.sx_height = reader.read_short()
            self.cap_height = reader.read_short()
        else:
            self.cap_height = self.hhea_ascender

    def _parse_post(self, reader: FontReader) -> None:
        reader.seek_table(self.tables, "post")
        reader.skip(4)  # version
        self.italic_angle = reader.read_short()
        reader.skip(2)  # fractional part of italicAngle
        self.underline_position = reader.read_short()
        self.underline_thickness = reader.read_short()
        self.is_fixed_pitch = reader.read_ulong() != 0

    def _parse_loca(self, reader: FontReader) -> None:
        self.is_short_index = self.index_to_loc_format == 0
        reader.seek_table(self.tables, "loca")
        length = self.tables["loca"].length
        if self.is_short_index:
            self.loca_table = [reader.read_ushort() * 2 for _ in range(length // 2)]
        else:
            self.loca_table = [reader.read_ulong() for _ in range(length // 4)]