"""Text measurement and small byte-reading helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True)
class FontDescItem:
    """A (key, value) pair of a font descriptor."""

    key: str
    val: str


def string_width(text: str, font_size: float, widths: Mapping[int, int]) -> float:
    """Width of ``text`` at ``font_size`` from per-byte widths in 1/1000 em.

    The text is measured byte by byte in its UTF-8 form; bytes with no
    width entry count as zero.
    """
    total = sum(widths.get(byte, 0) for byte in text.encode("utf-8"))
    return float(total) * (float(font_size) / 1000.0)


def embedded_font_subset_name(name: str) -> str:
    """Name used for an embedded font subset: spaces and slashes become '+'."""
    return name.replace(" ", "+").replace("/", "+")


def _two_bytes(data: bytes, offset: int) -> bytes:
    if offset < 0:
        raise ValueError("offset must not be negative")
    chunk = bytes(data[offset:offset + 2])
    if len(chunk) != 2:
        raise ValueError(f"need 2 bytes at offset {offset}, data has {len(data)}")
    return chunk


def read_short(data: bytes, offset: int) -> int:
    """Signed big-endian 16-bit integer at ``offset``."""
    return int.from_bytes(_two_bytes(data, offset), "big", signed=True)


def read_ushort(data: bytes, offset: int) -> int:
    """Unsigned big-endian 16-bit integer at ``offset``."""
    return int.from_bytes(_two_bytes(data, offset), "big", signed=False)


def to_byte(chars: str) -> int:
    """First byte of the UTF-8 encoding of ``chars``."""
    encoded = chars.encode("utf-8")
    if not encoded:
        raise ValueError("empty string has no first byte")
    return encoded[0]