# pdfcraft

pdfcraft provides low-level pieces for building PDF files. Objects that
belong in a PDF write their own syntax to a binary stream. The package uses
only the standard library.

## Modules

- `pdfcraft.fontcore` contains the low-level TrueType reading tools.
  `FontReader` is a big-endian cursor over font bytes. `TableDirectoryEntry`,
  `KernTable`/`KernValue` and `CmapFormat12GroupingTable` hold table data.
  `parse_cmap_format12` and `parse_kern` read those tables. `round_half_away`
  rounds halves away from zero. Bad data raises `FontFormatError`. A missing
  table raises `TableNotFoundError`.
- `pdfcraft.ttfparser` provides `TTFParser`. It reads the head, hhea, maxp,
  hmtx, cmap (formats 4 and 12), name, OS/2, post and loca tables. It also
  reads kern when you pass `use_kerning=True`. It exposes metrics such as
  `units_per_em`, `widths`, `chars` and `post_script_name`. It also provides
  the derived `ascender()`, `descender()`, `x_height()` and `flag()`.
- `pdfcraft.glyphmap` provides `CharacterToGlyphIndex`, an insertion-ordered
  map from characters to glyph indexes.
- `pdfcraft.subset` provides `SubsetFont`, `TtfOption` and
  `default_glyph_substitute`. It maps text to glyphs, measures widths, looks
  up kerning pairs and writes a Type0 font dictionary.
- `pdfcraft.textutil` contains text helpers:
  - `string_width` measures text with per-byte widths.
  - `embedded_font_subset_name` builds the name of an embedded font subset.
  - `read_short`, `read_ushort` and `to_byte` read values from bytes.
  - `FontDescItem` holds a font descriptor entry.
- `pdfcraft.imageparse` reads images:
  - `parse_image` and `parse_image_path` read JPEG and PNG data into an
    `ImageInfo`.
  - `write_image_props`, `write_mask_image_props` and
    `write_base_image_props` write the image XObject dictionary entries.
  - Also provided are `compress`, `is_colspace_indexed`, `have_smask` and
    `image_rect_to_wh`.
- `pdfcraft.outlines` builds the bookmark tree with `OutlinesObj`,
  `OutlineObj`, `OutlineNode`, `parse_outline_nodes` and `encode_title`.
- `pdfcraft.transparency` handles transparency:
  - `new_transparency` checks an alpha value and a blend mode.
  - `BlendMode` lists the PDF blend modes and `parse_blend_mode` reads one
    by name.
  - `TransparencyMap` is a thread-safe cache of `Transparency` values.

## Images

```python
from pdfcraft.imageparse import parse_image_path, have_smask

info = parse_image_path("logo.png")
print(info.w, info.h, info.colspace)
print(have_smask(info))  # True when the PNG carried an alpha channel
```

PNG support has these limits:

- Only PNGs with 8 or fewer bits per component are accepted.
- PNGs must not be interlaced.
- Any other PNG raises `ImageFormatError`.

For grey-plus-alpha and RGBA PNGs, the alpha channel is split out into
`info.smask`. Both parts are then recompressed.

JPEG data is kept as it is, with the `DCTDecode` filter. Grey, RGB and CMYK
JPEGs are supported.

## Fonts

```python
from pdfcraft.subset import SubsetFont

font = SubsetFont(family="DejaVuSans")
font.load_path("DejaVuSans.ttf")
text = font.add_chars("Hello, world")
width = font.char_width("H")      # in 1/1000 em
glyph = font.char_index("H")
```

`add_chars` returns the text as it will be drawn. Characters that are not in
the font are replaced with the character that the option's substitute
function returns, a space by default. `char_index` and `char_width` raise
`CharNotFoundError` for characters that were never added.

## Outlines

```python
import io
from pdfcraft.outlines import OutlinesObj

objects = []

def add_obj(obj):
    objects.append(obj)
    return len(objects) - 1

outlines = OutlinesObj(add_obj, index=1)
outlines.add_outline(3, "Chapter 1")
buf = io.BytesIO()
outlines.write(buf, 1)
```

## Transparency

```python
from pdfcraft.transparency import TransparencyMap, new_transparency

states = TransparencyMap()
state = new_transparency(0.5, "/Multiply")
states.save(state)
assert states.find(state) == state
```

An alpha outside 0.0–1.0 raises `ValueError`. An unknown blend mode also
raises `ValueError`.

## What pdfcraft does not do

pdfcraft does not assemble a whole document. It has no:

- page tree
- catalog
- cross-reference table
- trailer

It does not embed a subset font as a font file stream. It writes no font
descriptor and no ToUnicode CMap. It does not write image XObjects or soft
masks as finished objects. `imageparse` only writes their dictionary
entries. It does no encryption or password protection.