"""Subset TrueType font object: character to glyph lookup and Type0 output."""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import BinaryIO, Callable, Optional

from .fontcore import KernValue
from .glyphmap import CharacterToGlyphIndex
from .textutil import embedded_font_subset_name
from .ttfparser import TTFParser

FuncKernOverride = Callable[[str, str, int, int, int], int]
"""Custom kerning: (left char, right char, left glyph, right glyph, value) -> value."""


class CharNotFoundError(LookupError):
    """The character has not been added to the subset."""


class GlyphNotFoundError(LookupError):
    """The font has no glyph for the character."""


def default_glyph_substitute(char: str) -> str:
    """Replacement for characters the font lacks: a space."""
    return "\u0020"


@dataclass
class TtfOption:
    """Options for loading a TrueType font."""

    use_kerning: bool = False
    style: int = 0
    on_glyph_not_found: Optional[Callable[[str], None]] = None
    on_glyph_not_found_substitute: Optional[Callable[[str], str]] = default_glyph_substitute


class SubsetFont:
    """A TrueType font of which only the used characters get embedded."""

    def __init__(self, family: str = "", option: Optional[TtfOption] = None) -> None:
        self.parser = TTFParser()
        self.family = family
        self.character_to_glyph_index = CharacterToGlyphIndex()
        self.count_of_font = 0
        self.index_obj_cid_font = 0
        self.index_obj_unicode_map = 0
        self.kern_override: Optional[FuncKernOverride] = None
        self.ttf_option = TtfOption()
        self.set_ttf_option(option or TtfOption())

    def set_ttf_option(self, option: TtfOption) -> None:
        """Set loading options; call before loading the font."""
        if option.on_glyph_not_found_substitute is None:
            option = dataclasses.replace(
                option, on_glyph_not_found_substitute=default_glyph_substitute
            )
        self.ttf_option = option

    # -- loading -------------------------------------------------------------

    def load_path(self, path: str | os.PathLike) -> None:
        self.parser.use_kerning = self.ttf_option.use_kerning
        self.parser.parse(path)

    def load_reader(self, stream: BinaryIO) -> None:
        self.parser.use_kerning = self.ttf_option.use_kerning
        self.parser.parse_reader(stream)

    def load_data(self, data: bytes) -> None:
        self.parser.use_kerning = self.ttf_option.use_kerning
        self.parser.parse_font_data(data)

    # -- characters ----------------------------------------------------------

    def add_chars(self, text: str) -> str:
        """Add the characters of ``text``; returns the text as it will be drawn.

        Characters the font lacks are replaced by the substitute option.
        """
        drawn = []
        mapping = self.character_to_glyph_index
        for char in text:
            if char in mapping:
                drawn.append(char)
                continue
            try:
                glyph = self.char_code_to_glyph_index(char)
            except GlyphNotFoundError:
                if self.ttf_option.on_glyph_not_found is not None:
                    self.ttf_option.on_glyph_not_found(char)
                exists, replacement, glyph = self._replace_missing(char)
                if not exists:
                    mapping.set(replacement, glyph)
                drawn.append(replacement)
                continue
            mapping.set(char, glyph)
            drawn.append(char)
        return "".join(drawn)

    def _replace_missing(self, char: str) -> tuple[bool, str, int]:
        substitute = self.ttf_option.on_glyph_not_found_substitute
        if substitute is None:
            return False, char, 0
        replacement = substitute(char)
        if replacement in self.character_to_glyph_index:
            return True, replacement, 0
        try:
            return False, replacement, self.char_code_to_glyph_index(replacement)
        except (GlyphNotFoundError, IndexError):
            return False, replacement, 0

    def char_index(self, char: str) -> int:
        """Glyph index of an added character."""
        glyph = self.character_to_glyph_index.get(char)
        if glyph is None:
            raise CharNotFoundError(char)
        return glyph

    def char_width(self, char: str) -> int:
        """Width of an added character in 1/1000 em."""
        return self.glyph_index_to_pdf_width(self.char_index(char))

    def char_code_to_glyph_index(self, char: str) -> int:
        """Glyph index of ``char`` from the font's cmap."""
        if ord(char) <= 0xFFFF:
            return self._glyph_index_format4(char)
        return self._glyph_index_format12(char)

    def _glyph_index_format12(self, char: str) -> int:
        value = ord(char)
        for group in self.parser.grouping_tables:
            if group.start_char_code <= value <= group.end_char_code:
                return value - group.start_char_code + group.glyph_id
        raise GlyphNotFoundError(char)

    def _glyph_index_format4(self, char: str) -> int:
        p = self.parser
        value = ord(char)
        seg = next(
            (i for i, end in enumerate(p.end_count[:p.seg_count]) if value <= end), None
        )
        if seg is None or value < p.start_count[seg]:
            raise GlyphNotFoundError(char)
        if p.id_range_offset[seg] == 0:
            return (value + p.id_delta[seg]) & 0xFFFF
        idx = p.id_range_offset[seg] // 2 + (value - p.start_count[seg]) - (p.seg_count - seg)
        if not 0 <= idx < len(p.glyph_id_array):
            raise GlyphNotFoundError(char)
        glyph = p.glyph_id_array[idx]
        if glyph == 0:
            return 0
        return (glyph + p.id_delta[seg]) & 0xFFFF

    def glyph_index_to_pdf_width(self, glyph_index: int) -> int:
        """Advance width of a glyph in 1/1000 em."""
        n_metrics = self.parser.number_of_h_metrics
        units_per_em = self.parser.units_per_em
        if glyph_index >= n_metrics:
            glyph_index = n_metrics - 1
        width = self.parser.widths[glyph_index]
        if units_per_em == 1000:
            return width
        return width * 1000 // units_per_em

    def kern_value_by_left(self, left: int) -> Optional[KernValue]:
        """Kerning pairs starting at glyph ``left``, when kerning is in use."""
        if not self.ttf_option.use_kerning or self.parser.kern is None:
            return None
        return self.parser.kern.kerning.get(left)

    # -- metrics -------------------------------------------------------------

    @property
    def underline_thickness(self) -> int:
        return self.parser.underline_thickness

    @property
    def underline_position(self) -> int:
        return self.parser.underline_position

    @property
    def ascender(self) -> int:
        return self.parser.ascender()

    @property
    def descender(self) -> int:
        return self.parser.descender()

    def _scaled(self, value: int, font_size: float) -> float:
        return (float(value) / float(self.parser.units_per_em)) * font_size

    def underline_thickness_px(self, font_size: float) -> float:
        return self._scaled(self.parser.underline_thickness, font_size)

    def underline_position_px(self, font_size: float) -> float:
        return self._scaled(self.parser.underline_position, font_size)

    def ascender_px(self, font_size: float) -> float:
        return self._scaled(self.parser.ascender(), font_size)

    def descender_px(self, font_size: float) -> float:
        return self._scaled(self.parser.descender(), font_size)

    # -- output --------------------------------------------------------------

    def write(self, stream: BinaryIO, obj_id: int) -> None:
        """Write the Type0 font dictionary."""
        content = (
            "<<\n"
            f"/BaseFont /{embedded_font_subset_name(self.family)}\n"
            f"/DescendantFonts [{self.index_obj_cid_font + 1} 0 R]\n"
            "/Encoding /Identity-H\n"
            "/Subtype /Type0\n"
            f"/ToUnicode {self.index_obj_unicode_map + 1} 0 R\n"
            "/Type /Font\n"
            ">>\n"
        )
        stream.write(content.encode("utf-8"))