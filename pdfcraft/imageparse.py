"""Reading JPEG and PNG images into the form a PDF image XObject needs."""

from __future__ import annotations

import os
import struct
import zlib
from dataclasses import dataclass
from typing import BinaryIO

DEVICE_GRAY = "DeviceGray"

_PNG_MAGIC = b"\x89PNG\r\n\x1a\n"
_PNG_IHDR = b"IHDR"
_JPEG_SOI = b"\xff\xd8"

_JPEG_SUPPORTED_SOF = (0xC0, 0xC1, 0xC2)
_JPEG_OTHER_SOF = (0xC3, 0xC5, 0xC6, 0xC7, 0xC9, 0xCA, 0xCB, 0xCD, 0xCE, 0xCF)


class ImageFormatError(ValueError):
    """The image data is malformed or uses a feature that is not supported."""


@dataclass
class ImageInfo:
    """Everything needed to write an image as a PDF XObject."""

    w: int = 0
    h: int = 0
    format_name: str = ""
    colspace: str = ""
    bits_per_component: str = ""
    filter: str = ""
    decode_parms: str = ""
    trns: bytes = b""
    smask: bytes = b""
    smask_obj_id: int = 0
    pal: bytes = b""
    device_rgb_obj_id: int = 0
    data: bytes = b""


class _Cursor:
    """Big-endian reader over image bytes."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def read(self, length: int) -> bytes:
        if length < 0:
            raise ImageFormatError("negative read length")
        chunk = self._data[self._pos:self._pos + length]
        if len(chunk) != length:
            raise ImageFormatError("unexpected end of image data")
        self._pos += length
        return chunk

    def read_byte(self) -> int:
        return self.read(1)[0]

    def read_ushort(self) -> int:
        return struct.unpack(">H", self.read(2))[0]

    def read_uint(self) -> int:
        return struct.unpack(">I", self.read(4))[0]

    def skip(self, length: int) -> None:
        self._pos += length


def _write(stream: BinaryIO, text: str) -> None:
    stream.write(text.encode("latin-1"))


def is_colspace_indexed(info: ImageInfo) -> bool:
    """Whether the image uses a palette."""
    return info.colspace == "Indexed"


def have_smask(info: ImageInfo) -> bool:
    """Whether the image carries a soft mask (alpha channel)."""
    return bool(info.smask)


def write_base_image_props(stream: BinaryIO, info: ImageInfo, color_space: str) -> None:
    """Write the dictionary entries every image XObject has."""
    content = (
        "<<\n"
        "\t/Type /XObject\n"
        "\t/Subtype /Image\n"
        f"\t/Width {info.w}\n"
        f"\t/Height {info.h}\n"
    )
    if is_colspace_indexed(info):
        size = len(info.pal) // 3 - 1
        content += (
            f"\t/ColorSpace [/Indexed /DeviceRGB {size} {info.device_rgb_obj_id + 1} 0 R]\n"
        )
    else:
        content += f"\t/ColorSpace /{color_space}\n"
        if info.colspace == "DeviceCMYK":
            content += "\t/Decode [1 0 1 0 1 0 1 0]\n"
    content += f"\t/BitsPerComponent {info.bits_per_component}\n"
    if info.filter.strip():
        content += f"\t/Filter /{info.filter}\n"
    _write(stream, content)


def write_mask_image_props(stream: BinaryIO, info: ImageInfo) -> None:
    """Write the dictionary entries of the soft mask image of ``info``."""
    write_base_image_props(stream, info, DEVICE_GRAY)
    _write(
        stream,
        "\t/DecodeParms <<\n"
        "\t\t/Predictor 15\n"
        "\t\t/Colors 1\n"
        "\t\t/BitsPerComponent 8\n"
        f"\t\t/Columns {info.w}\n"
        "\t>>\n",
    )


def write_image_props(stream: BinaryIO, info: ImageInfo, splitted_mask: bool) -> None:
    """Write the dictionary entries of the image itself."""
    write_base_image_props(stream, info, info.colspace)
    if info.decode_parms.strip():
        _write(stream, f"\t/DecodeParms <<{info.decode_parms}>>\n")
    if splitted_mask:
        return
    if info.trns:
        content = "\t/Mask ["
        for value in info.trns:
            content += f"\t\t{value} \t\t{value} "
        content += "\t]\n"
        _write(stream, content)
    if have_smask(info):
        _write(stream, f"\t/SMask {info.smask_obj_id + 1} 0 R\n")


def compress(data: bytes) -> bytes:
    """Deflate ``data`` with zlib at its fastest level."""
    return zlib.compress(bytes(data), 1)


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def image_rect_to_wh(width: int, height: int) -> tuple[float, float]:
    """Size in points of an image of ``width`` x ``height`` pixels."""
    k = 1
    w = -128
    h = -128
    if w < 0:
        w = _trunc_div(_trunc_div(-width * 72, w), k)
    if h < 0:
        h = _trunc_div(_trunc_div(-height * 72, h), k)
    if w == 0:
        w = _trunc_div(h * width, height)
    if h == 0:
        h = _trunc_div(w * height, width)
    return float(w), float(h)


def parse_image_path(path: str | os.PathLike) -> ImageInfo:
    """Parse the image file at ``path``."""
    with open(path, "rb") as handle:
        return parse_image(handle.read())


def parse_image(data: bytes) -> ImageInfo:
    """Parse JPEG or PNG image data."""
    data = bytes(data)
    if data.startswith(_PNG_MAGIC):
        info = ImageInfo(format_name="png")
        _parse_png(data, info)
        return info
    if data.startswith(_JPEG_SOI):
        info = ImageInfo(format_name="jpeg")
        _parse_jpeg(data, info)
        return info
    raise ImageFormatError("image: unknown format")


def _jpeg_config(data: bytes) -> tuple[int, int, int]:
    cur = _Cursor(data)
    cur.skip(2)  # SOI
    while True:
        if cur.read_byte() != 0xFF:
            raise ImageFormatError("missing JPEG marker")
        marker = cur.read_byte()
        while marker == 0xFF:
            marker = cur.read_byte()
        if marker in (0x01, 0xD8) or 0xD0 <= marker <= 0xD7:
            continue
        if marker == 0xD9:
            raise ImageFormatError("missing JPEG frame header")
        seg_len = cur.read_ushort()
        if seg_len < 2:
            raise ImageFormatError("short JPEG segment length")
        if marker in _JPEG_SUPPORTED_SOF:
            body = cur.read(seg_len - 2)
            if len(body) < 6:
                raise ImageFormatError("short JPEG frame header")
            precision, height, width, components = struct.unpack(">BHHB", body[:6])
            if precision != 8:
                raise ImageFormatError("unsupported JPEG precision")
            return width, height, components
        if marker in _JPEG_OTHER_SOF:
            raise ImageFormatError("unsupported JPEG process")
        cur.skip(seg_len - 2)


def _parse_jpeg(data: bytes, info: ImageInfo) -> None:
    width, height, components = _jpeg_config(data)
    colspaces = {1: "DeviceGray", 3: "DeviceRGB", 4: "DeviceCMYK"}
    try:
        info.colspace = colspaces[components]
    except KeyError:
        raise ImageFormatError("color model not support") from None
    info.bits_per_component = "8"
    info.filter = "DCTDecode"
    info.h = height
    info.w = width
    info.data = data


def _parse_png(data: bytes, info: ImageInfo) -> None:
    cur = _Cursor(data)
    if cur.read(8) != _PNG_MAGIC:
        raise ImageFormatError("Not a PNG file")
    cur.skip(4)  # IHDR length
    if cur.read(4) != _PNG_IHDR:
        raise ImageFormatError("Incorrect PNG file")
    width = cur.read_uint()
    height = cur.read_uint()
    bpc = cur.read_byte()
    if bpc > 8:
        raise ImageFormatError("16-bit depth not supported")
    ct = cur.read_byte()
    if ct in (0, 4):
        colspace = "DeviceGray"
    elif ct in (2, 6):
        colspace = "DeviceRGB"
    elif ct == 3:
        colspace = "Indexed"
    else:
        raise ImageFormatError("Unknown color type")
    if cur.read_byte() != 0:
        raise ImageFormatError("Unknown compression method")
    if cur.read_byte() != 0:
        raise ImageFormatError("Unknown filter method")
    if cur.read_byte() != 0:
        raise ImageFormatError("Interlacing not supported")
    cur.skip(4)  # CRC

    pal = b""
    trns = b""
    idat: list[bytes] = []
    while True:
        n = cur.read_uint()
        typ = cur.read(4)
        if typ == b"PLTE":
            pal = cur.read(n)
            cur.skip(4)
        elif typ == b"tRNS":
            t = cur.read(n)
            trns = _png_transparency(ct, t)
            cur.skip(4)
        elif typ == b"IDAT":
            idat.append(cur.read(n))
            cur.skip(4)
        elif typ == b"IEND":
            break
        else:
            cur.skip(n + 4)
        if n <= 0:
            break
    stream = b"".join(idat)

    info.trns = trns
    info.pal = pal
    if colspace == "Indexed" and not pal.strip():
        raise ImageFormatError("Missing palette")

    info.w = width
    info.h = height
    info.colspace = colspace
    info.bits_per_component = str(bpc)
    info.filter = "FlateDecode"
    colors = 3 if colspace == "DeviceRGB" else 1
    info.decode_parms = (
        f"/Predictor 15 /Colors  {colors} /BitsPerComponent {info.bits_per_component} "
        f"/Columns {width}"
    )

    if ct >= 4:
        color, alpha = _split_alpha(stream, ct, width, height)
        info.smask = compress(alpha)
        info.data = compress(color)
    else:
        info.data = stream


def _png_transparency(ct: int, t: bytes) -> bytes:
    if ct == 0:
        if len(t) < 2:
            raise ImageFormatError("invalid tRNS chunk")
        return bytes([t[1]])
    if ct == 2:
        if len(t) < 6:
            raise ImageFormatError("invalid tRNS chunk")
        return bytes([t[1], t[3], t[5]])
    pos = t.find(b"\x00")
    return bytes([pos]) if pos >= 0 else b""


def _split_alpha(stream: bytes, ct: int, width: int, height: int) -> tuple[bytes, bytes]:
    try:
        raw = zlib.decompress(stream)
    except zlib.error as exc:
        raise ImageFormatError(f"invalid PNG image data: {exc}") from None
    pixel_size = 2 if ct == 4 else 4
    length = pixel_size * width
    if len(raw) < height * (1 + length):
        raise ImageFormatError("PNG image data too short")

    color = bytearray()
    alpha = bytearray()
    for row in range(height):
        pos = (1 + length) * row
        filter_type = raw[pos]
        line = raw[pos + 1:pos + length + 1]
        color.append(filter_type)
        alpha.append(filter_type)
        if ct == 4:
            color += line[0::2]
            alpha += line[1::2]
        else:
            for j in range(0, len(line), 4):
                color += line[j:j + 3]
            alpha += line[3::4]
    return bytes(color), bytes(alpha)