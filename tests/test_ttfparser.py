import io
import struct

import pytest

from pdfcraft.fontcore import FontFormatError, TableNotFoundError
from pdfcraft.ttfparser import TTFParser

HEAD_MAGIC = 0x5F0F3CF5


def _pack_font(tables):
    tags = sorted(tables)
    header = struct.pack(">IHHHH", 0x00010000, len(tags), 0, 0, 0)
    start = 12 + 16 * len(tags)
    directory = b""
    body = b""
    for tag in tags:
        data = tables[tag]
        directory += tag.encode("latin-1") + struct.pack(">III", 0, start + len(body), len(data))
        body += data + b"\x00" * (-len(data) % 4)
    return header + directory + body


def _format4_subtable(fmt=4):
    segments = [(65, 67, (1 - 65) & 0xFFFF, 0), (97, 97, 0, 4), (0xFFFF, 0xFFFF, 1, 0)]
    glyph_ids = [4]
    seg_count = len(segments)
    length = 16 + 8 * seg_count + 2 * len(glyph_ids)
    sub = struct.pack(">7H", fmt, length, 0, seg_count * 2, 0, 0, 0)
    sub += struct.pack(f">{seg_count}H", *(s[1] for s in segments))
    sub += struct.pack(">H", 0)
    sub += struct.pack(f">{seg_count}H", *(s[0] for s in segments))
    sub += struct.pack(f">{seg_count}H", *(s[2] for s in segments))
    sub += struct.pack(f">{seg_count}H", *(s[3] for s in segments))
    sub += struct.pack(f">{len(glyph_ids)}H", *glyph_ids)
    return sub


def _format12_subtable(groups):
    sub = struct.pack(">HHIII", 12, 0, 16 + 12 * len(groups), 0, len(groups))
    for group in groups:
        sub += struct.pack(">III", *group)
    return sub


def _cmap_table(encoding=(3, 1), fmt=4, groups=None):
    subtables = [(encoding, _format4_subtable(fmt))]
    if groups is not None:
        subtables.append(((3, 10), _format12_subtable(groups)))
    header = struct.pack(">HH", 0, len(subtables))
    offset = 4 + 8 * len(subtables)
    records = b""
    body = b""
    for (platform_id, encoding_id), sub in subtables:
        records += struct.pack(">HHI", platform_id, encoding_id, offset + len(body))
        body += sub
    return header + records + body


def _name_table(ps_name):
    strings = [("Test Family".encode("utf-16-be"), 1)]
    if ps_name is not None:
        strings.append((ps_name.encode("utf-16-be"), 6))
    records = b""
    storage = b""
    for raw, name_id in strings:
        records += struct.pack(">6H", 3, 1, 0x409, name_id, len(raw), len(storage))
        storage += raw
    return struct.pack(">HHH", 0, len(strings), 6 + 12 * len(strings)) + records + storage


def _kern_table(pairs):
    sub = struct.pack(">7H", 0, 14 + 6 * len(pairs), 1, len(pairs), 0, 0, 0)
    for left, right, value in pairs:
        sub += struct.pack(">HHh", left, right, value)
    return struct.pack(">HH", 0, 1) + sub


def make_font(
    *,
    units_per_em=1000,
    bbox=(-50, -200, 950, 900),
    loc_format=0,
    hhea_ascender=800,
    hhea_descender=-200,
    advance_widths=(500, 600),
    num_glyphs=5,
    os2_version=0,
    fs_type=0,
    fs_selection=0,
    typo_ascender=0,
    typo_descender=0,
    win_ascent=900,
    win_descent=250,
    sx_height=0,
    os2_cap_height=0,
    italic_angle=0,
    underline_position=-100,
    underline_thickness=50,
    fixed_pitch=0,
    ps_name="Test-Font",
    glyph_offsets=(0, 0, 10, 20, 30, 40),
    cmap=None,
    kern_pairs=None,
    drop=(),
    magic=HEAD_MAGIC,
):
    head = struct.pack(
        ">IIIIHHqqhhhhHHhhh",
        0x10000, 0, 0, magic, 0, units_per_em, 0, 0, *bbox, 0, 0, 0, loc_format, 0,
    )
    hhea = struct.pack(
        ">Ihh13hH", 0x10000, hhea_ascender, hhea_descender, *([0] * 13), len(advance_widths)
    )
    maxp = struct.pack(">IH", 0x5000, num_glyphs)
    hmtx = b"".join(struct.pack(">Hh", w, 0) for w in advance_widths)
    os2 = struct.pack(">HhHHH", os2_version, 0, 400, 5, fs_type) + b"\x00" * 52
    os2 += struct.pack(
        ">HHHhhhHH", fs_selection, 0x20, 0xFFFF, typo_ascender, typo_descender, 0,
        win_ascent, win_descent,
    )
    if os2_version >= 2:
        os2 += struct.pack(">IIhh", 0, 0, sx_height, os2_cap_height)
    post = struct.pack(
        ">IhHhhI", 0x30000, italic_angle, 0, underline_position, underline_thickness, fixed_pitch
    )
    if loc_format == 0:
        loca = struct.pack(f">{len(glyph_offsets)}H", *(o // 2 for o in glyph_offsets))
    else:
        loca = struct.pack(f">{len(glyph_offsets)}I", *glyph_offsets)
    tables = {
        "head": head,
        "hhea": hhea,
        "maxp": maxp,
        "hmtx": hmtx,
        "cmap": cmap if cmap is not None else _cmap_table(),
        "name": _name_table(ps_name),
        "OS/2": os2,
        "post": post,
        "loca": loca,
        "glyf": b"\x01" * glyph_offsets[-1],
    }
    if kern_pairs is not None:
        tables["kern"] = _kern_table(kern_pairs)
    for tag in drop:
        del tables[tag]
    return _pack_font(tables)


def parsed(**kwargs):
    use_kerning = kwargs.pop("use_kerning", False)
    parser = TTFParser(use_kerning=use_kerning)
    parser.parse_font_data(make_font(**kwargs))
    return parser


def test_head_metrics():
    parser = parsed(units_per_em=2048, bbox=(-10, -20, 30, 40))
    assert parser.units_per_em == 2048
    assert (parser.x_min, parser.y_min, parser.x_max, parser.y_max) == (-10, -20, 30, 40)


def test_table_directory_is_read():
    parser = parsed()
    assert set(parser.tables) == {
        "head", "hhea", "maxp", "hmtx", "cmap", "name", "OS/2", "post", "loca", "glyf"
    }
    assert parser.tables["glyf"].length == 40


def test_widths_padded_with_last_advance():
    parser = parsed(advance_widths=(500, 600), num_glyphs=5)
    assert parser.number_of_h_metrics == 2
    assert parser.num_glyphs == 5
    assert parser.widths == [500, 600, 600, 600, 600]


def test_widths_not_padded_when_complete():
    parser = parsed(advance_widths=(1, 2, 3, 4, 5), num_glyphs=5)
    assert parser.widths == [1, 2, 3, 4, 5]


def test_cmap_format4_delta_and_range_offset():
    parser = parsed()
    assert parser.chars == {65: 1, 66: 2, 67: 3, 97: 4}
    assert parser.seg_count == 3
    assert parser.start_count == [65, 97, 0xFFFF]
    assert parser.end_count == [67, 97, 0xFFFF]
    assert parser.glyph_id_array == [4]
    assert parser.id_range_offset == [0, 4, 0]


def test_cmap_format12_groups():
    parser = parsed(cmap=_cmap_table(groups=[(0x1F600, 0x1F601, 2)]))
    assert len(parser.grouping_tables) == 1
    group = parser.grouping_tables[0]
    assert (group.start_char_code, group.end_char_code, group.glyph_id) == (0x1F600, 0x1F601, 2)


def test_cmap_without_format12_has_no_groups():
    assert parsed().grouping_tables == []


def test_missing_unicode_cmap_raises():
    with pytest.raises(FontFormatError, match="No Unicode encoding found"):
        parsed(cmap=_cmap_table(encoding=(1, 0)))


def test_unexpected_cmap_format_raises():
    with pytest.raises(FontFormatError, match="Unexpected subtable format"):
        parsed(cmap=_cmap_table(fmt=6))


def test_postscript_name():
    assert parsed(ps_name="Test-Font").post_script_name == "Test-Font"


def test_postscript_name_drops_zero_digits():
    assert parsed(ps_name="Font0Sans").post_script_name == "FontSans"


def test_missing_postscript_name_raises():
    with pytest.raises(FontFormatError, match="PostScript name not found"):
        parsed(ps_name=None)


@pytest.mark.parametrize("fs_type, expected", [(0, True), (2, False), (0x200, False), (8, True)])
def test_embeddable(fs_type, expected):
    assert parsed(fs_type=fs_type).embeddable is expected


def test_bold_flag():
    assert parsed(fs_selection=32).bold is True
    assert parsed(fs_selection=0).bold is False


def test_cap_height_from_hhea_for_old_os2():
    parser = parsed(os2_version=0, hhea_ascender=777)
    assert parser.cap_height == 777


def test_cap_height_and_x_height_from_os2_v2():
    parser = parsed(os2_version=2, sx_height=480, os2_cap_height=700)
    assert parser.cap_height == 700
    assert parser.x_height() == 480


def test_x_height_falls_back_to_ascender():
    parser = parsed(os2_version=0, hhea_ascender=800)
    assert parser.x_height() == 528


def test_ascender_and_descender_without_typo_values():
    parser = parsed(hhea_ascender=810, hhea_descender=-190)
    assert parser.ascender() == 810
    assert parser.descender() == -190


def test_ascender_and_descender_with_typo_values():
    parser = parsed(typo_ascender=750, typo_descender=-250, win_ascent=950, win_descent=260)
    assert parser.ascender() == 950
    assert parser.descender() == -260


def test_descender_positive_when_hhea_not_negative():
    parser = parsed(typo_descender=-250, hhea_descender=0, win_descent=260)
    assert parser.descender() == 260


def test_flag_is_nonsymbolic():
    assert parsed().flag() == 1 << 5


def test_post_table():
    parser = parsed(italic_angle=-12, underline_position=-75, underline_thickness=40, fixed_pitch=1)
    assert parser.italic_angle == -12
    assert parser.underline_position == -75
    assert parser.underline_thickness == 40
    assert parser.is_fixed_pitch is True


def test_short_loca():
    offsets = (0, 0, 10, 20, 30, 40)
    parser = parsed(loc_format=0, glyph_offsets=offsets)
    assert parser.is_short_index is True
    assert parser.loca_table == list(offsets)


def test_long_loca():
    offsets = (0, 3, 11, 20, 31, 40)
    parser = parsed(loc_format=1, glyph_offsets=offsets)
    assert parser.is_short_index is False
    assert parser.loca_table == list(offsets)


def test_kerning_parsed_when_enabled():
    parser = parsed(kern_pairs=[(1, 2, -40), (1, 3, 15), (2, 1, -5)], use_kerning=True)
    assert parser.kern is not None
    assert parser.kern.n_tables == 1
    assert parser.kern.kerning[1].value_by_right(2) == -40
    assert parser.kern.kerning[1].value_by_right(3) == 15
    assert parser.kern.kerning[2].value_by_right(1) == -5


def test_kerning_ignored_when_disabled():
    parser = parsed(kern_pairs=[(1, 2, -40)], use_kerning=False)
    assert parser.kern is None


def test_kerning_absent_table_gives_none():
    parser = parsed(use_kerning=True)
    assert parser.kern is None


def test_bad_version_raises():
    data = bytearray(make_font())
    data[0:4] = b"OTTO"
    with pytest.raises(FontFormatError, match="Unrecognized"):
        TTFParser().parse_font_data(bytes(data))


def test_bad_magic_raises():
    with pytest.raises(FontFormatError, match="magic"):
        parsed(magic=0x12345678)


def test_missing_table_raises():
    with pytest.raises(TableNotFoundError):
        parsed(drop=("post",))


def test_empty_data_raises():
    with pytest.raises(FontFormatError):
        TTFParser().parse_font_data(b"")


def test_font_data_kept():
    data = make_font()
    parser = TTFParser()
    parser.parse_font_data(data)
    assert parser.font_data == data


def test_parse_path_and_reader_agree(tmp_path):
    data = make_font()
    path = tmp_path / "font.ttf"
    path.write_bytes(data)
    from_path = TTFParser()
    from_path.parse(path)
    from_reader = TTFParser()
    from_reader.parse_reader(io.BytesIO(data))
    assert from_path.chars == from_reader.chars
    assert from_path.widths == from_reader.widths
    assert from_path.font_data == data


def test_reparse_resets_state():
    parser = TTFParser()
    parser.parse_font_data(make_font(advance_widths=(500, 600)))
    parser.parse_font_data(make_font(advance_widths=(700, 800)))
    assert parser.widths == [700, 800, 800, 800, 800]