import struct

import pytest

from pdfcraft.fontcore import (
    CmapFormat12GroupingTable,
    FontFormatError,
    FontReader,
    KernValue,
    TableDirectoryEntry,
    TableNotFoundError,
    parse_cmap_format12,
    parse_kern,
    round_half_away,
)

PREFIX = b"\x00" * 8


def _tables(tag, blob):
    return {tag: TableDirectoryEntry(checksum=0, offset=len(PREFIX), length=len(blob))}


def _kern_blob(pairs, coverage=1, subtables=1):
    body = struct.pack(">HHH", len(pairs), 0, 0)
    body = struct.pack(">H", len(pairs)) + struct.pack(">HHH", 0, 0, 0)
    body += b"".join(struct.pack(">HHh", l, r, v) for l, r, v in pairs)
    sub = struct.pack(">HHH", 0, 6 + len(body), coverage) + body
    return struct.pack(">HH", 0, subtables) + sub * subtables


def _cmap12_blob(groups, platform=3, encoding=10, fmt=12, reserved=0):
    header = struct.pack(">HH", 0, 1) + struct.pack(">HHI", platform, encoding, 12)
    sub = struct.pack(">HHIII", fmt, reserved, 16 + 12 * len(groups), 0, len(groups))
    sub += b"".join(struct.pack(">III", *g) for g in groups)
    return header + sub


@pytest.mark.parametrize("length", range(0, 20))
def test_padded_length_is_next_multiple_of_four(length):
    padded = TableDirectoryEntry(length=length).padded_length()
    assert padded % 4 == 0
    assert 0 <= padded - length < 4


def test_padded_length_pinned():
    assert TableDirectoryEntry(length=5).padded_length() == 8
    assert TableDirectoryEntry(length=4).padded_length() == 4


@pytest.mark.parametrize("n", range(-5, 6))
def test_round_half_away_halves(n):
    if n >= 0:
        assert round_half_away(n + 0.5) == n + 1
    else:
        assert round_half_away(n - 0.5) == n - 1


@pytest.mark.parametrize("value", [0.1, 0.49, 1.5, 2.5, 7.2, 10.7])
def test_round_half_away_symmetric(value):
    assert round_half_away(-value) == -round_half_away(value)


def test_round_half_away_integers_unchanged():
    assert [round_half_away(float(v)) for v in range(-3, 4)] == list(range(-3, 4))


def test_reader_reads_big_endian_values():
    data = struct.pack(">HhI", 0x1234, -2, 0xDEADBEEF)
    reader = FontReader(data)
    assert reader.read_ushort() == 0x1234
    assert reader.read_short() == -2
    assert reader.read_ulong() == 0xDEADBEEF
    assert reader.tell() == len(data)


def test_reader_skip_and_seek():
    data = bytes(range(10))
    reader = FontReader(data)
    reader.skip(3)
    assert reader.read(2) == data[3:5]
    reader.seek(8)
    assert reader.read(2) == data[8:10]


def test_reader_read_past_end_raises():
    reader = FontReader(b"\x01\x02\x03")
    with pytest.raises(FontFormatError):
        reader.read_ulong()


def test_reader_read_at_end_raises():
    reader = FontReader(b"\x01\x02")
    reader.read(2)
    with pytest.raises(FontFormatError):
        reader.read(1)


def test_reader_negative_seek_raises():
    reader = FontReader(b"\x00" * 4)
    with pytest.raises(FontFormatError):
        reader.skip(-1)


def test_seek_table_moves_to_offset():
    blob = struct.pack(">H", 0xABCD)
    reader = FontReader(PREFIX + blob)
    reader.seek_table(_tables("head", blob), "head")
    assert reader.read_ushort() == 0xABCD


def test_seek_table_missing():
    reader = FontReader(b"\x00" * 4)
    with pytest.raises(TableNotFoundError) as info:
        reader.seek_table({}, "glyf")
    assert info.value.tag == "glyf"


def test_kern_value_by_right():
    kv = KernValue({4: -30})
    assert kv.value_by_right(4) == -30
    assert kv.value_by_right(5) is None


def test_parse_kern_format0():
    pairs = [(1, 2, -50), (1, 3, 20), (7, 2, -5)]
    blob = _kern_blob(pairs)
    kern = parse_kern(FontReader(PREFIX + blob), _tables("kern", blob))
    assert kern.n_tables == 1
    assert kern.version == 0
    assert kern.kerning[1].value_by_right(2) == -50
    assert kern.kerning[1].value_by_right(3) == 20
    assert kern.kerning[7] == {2: -5}
    assert set(kern.kerning) == {1, 7}


def test_parse_kern_missing_table_returns_none():
    assert parse_kern(FontReader(b"\x00" * 4), {}) is None


def test_parse_kern_unsupported_format():
    blob = _kern_blob([(1, 2, 3)], coverage=0x10)
    with pytest.raises(FontFormatError):
        parse_kern(FontReader(PREFIX + blob), _tables("kern", blob))


def test_parse_kern_keeps_last_subtable():
    blob = _kern_blob([(1, 2, -9)], subtables=2)
    kern = parse_kern(FontReader(PREFIX + blob), _tables("kern", blob))
    assert kern.n_tables == 2
    assert kern.kerning == {1: {2: -9}}


def test_parse_cmap_format12_groups():
    groups = [(0x10000, 0x10010, 5), (0x1F600, 0x1F64F, 100)]
    blob = _cmap12_blob(groups)
    result = parse_cmap_format12(FontReader(PREFIX + blob), _tables("cmap", blob))
    assert result == [CmapFormat12GroupingTable(*g) for g in groups]


def test_parse_cmap_format12_absent():
    blob = _cmap12_blob([(1, 2, 3)], encoding=1)
    assert parse_cmap_format12(FontReader(PREFIX + blob), _tables("cmap", blob)) == []


def test_parse_cmap_format12_wrong_format():
    blob = _cmap12_blob([(1, 2, 3)], fmt=4)
    with pytest.raises(FontFormatError):
        parse_cmap_format12(FontReader(PREFIX + blob), _tables("cmap", blob))


def test_parse_cmap_format12_bad_reserved():
    blob = _cmap12_blob([(1, 2, 3)], reserved=1)
    with pytest.raises(FontFormatError):
        parse_cmap_format12(FontReader(PREFIX + blob), _tables("cmap", blob))


def test_parse_cmap_format12_missing_table():
    with pytest.raises(TableNotFoundError):
        parse_cmap_format12(FontReader(b"\x00" * 4), {})