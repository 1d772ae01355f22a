"""Helpers for building GIF byte streams in tests."""

import struct
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

Color = Tuple[int, int, int]

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)
RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)


def lzw_encode(indices: Iterable[int], min_code_size: int) -> List[int]:
    """Reference LZW encoder producing a code list (clear first, end last).

    The table is cleared when the next free code would reach 4095.
    """
    clear_code = 1 << min_code_size
    end_code = clear_code + 1

    def fresh():
        return {(i,): i for i in range(clear_code)}

    table = fresh()
    next_code = end_code + 1
    codes = [clear_code]
    w: Tuple[int, ...] = ()

    for k in indices:
        wk = w + (int(k),)
        if wk in table:
            w = wk
            continue
        codes.append(table[w])
        if next_code >= 4095:
            codes.append(clear_code)
            table = fresh()
            next_code = end_code + 1
        else:
            table[wk] = next_code
            next_code += 1
        w = (int(k),)

    if w:
        codes.append(table[w])
    codes.append(end_code)
    return codes


def pack_bits(pairs: Iterable[Tuple[int, int]]) -> bytes:
    """Pack (code, width) pairs least-significant bit first."""
    out = bytearray()
    buffer = 0
    count = 0
    for code, width in pairs:
        buffer |= code << count
        count += width
        while count >= 8:
            out.append(buffer & 0xFF)
            buffer >>= 8
            count -= 8
    if count:
        out.append(buffer & 0xFF)
    return bytes(out)


def code_widths(codes: Sequence[int], min_code_size: int) -> List[Tuple[int, int]]:
    """Attach the width a GIF decoder expects to each code."""
    clear_code = 1 << min_code_size
    end_code = clear_code + 1
    width = min_code_size + 1
    table_size = clear_code + 2
    has_previous = False

    pairs = []
    for code in codes:
        pairs.append((code, width))
        if code == clear_code:
            width = min_code_size + 1
            table_size = clear_code + 2
            has_previous = False
            continue
        if code == end_code:
            continue
        if has_previous and table_size < 4096:
            table_size += 1
        has_previous = True
        if table_size >= (1 << width) and width < 12:
            width += 1
    return pairs


def compress(indices: Iterable[int], min_code_size: int) -> bytes:
    """LZW-compress palette indices into packed GIF image data."""
    return pack_bits(code_widths(lzw_encode(indices, min_code_size), min_code_size))


def sub_blocks(data: bytes) -> bytes:
    """Split data into 255-byte sub-blocks plus a terminator."""
    out = bytearray()
    for i in range(0, len(data), 255):
        chunk = data[i:i + 255]
        out.append(len(chunk))
        out.extend(chunk)
    out.append(0)
    return bytes(out)


def interlace_rows(rows: np.ndarray) -> np.ndarray:
    """Put display rows into four-pass storage order."""
    height = len(rows)
    order = []
    for start, step in ((0, 8), (4, 8), (2, 4), (1, 2)):
        order.extend(range(start, height, step))
    return rows[order]


def _table_exponent(size: int) -> int:
    exponent = 0
    while (2 << exponent) < size:
        exponent += 1
    return exponent


def _palette_bytes(palette: Sequence[Color]) -> Tuple[int, bytes]:
    exponent = _table_exponent(len(palette))
    table = bytearray()
    for r, g, b in palette:
        table.extend((r, g, b))
    table.extend(b"\x00" * ((2 << exponent) * 3 - len(table)))
    return exponent, bytes(table)


class GifBuilder:
    """Assemble a GIF stream block by block."""

    def __init__(self, width: int, height: int, palette: Optional[Sequence[Color]] = None,
                 background_index: int = 0, version: bytes = b"89a", color_resolution: int = 8,
                 aspect_ratio: int = 0):
        self.width = width
        self.height = height
        self.palette = palette
        packed = (color_resolution - 1) << 4
        table = b""
        if palette:
            exponent, table = _palette_bytes(palette)
            packed |= 0x80 | exponent
        self.parts = [
            b"GIF" + version,
            struct.pack("<HHBBB", width, height, packed, background_index, aspect_ratio),
            table,
        ]

    def add_raw(self, data: bytes) -> "GifBuilder":
        self.parts.append(data)
        return self

    def add_control(self, disposal: int = 0, delay: int = 0, transparent_index: Optional[int] = None,
                    user_input: bool = False) -> "GifBuilder":
        packed = (disposal & 0x07) << 2
        if user_input:
            packed |= 0x02
        if transparent_index is not None:
            packed |= 0x01
        self.parts.append(
            b"\x21\xF9\x04" + struct.pack("<BHB", packed, delay, transparent_index or 0) + b"\x00")
        return self

    def add_application(self, identifier: bytes, auth_code: bytes, payload: Sequence[bytes]) -> "GifBuilder":
        body = b"".join(bytes([len(p)]) + p for p in payload)
        self.parts.append(b"\x21\xFF\x0B" + identifier + auth_code + body + b"\x00")
        return self

    def add_loop(self, count: int) -> "GifBuilder":
        return self.add_application(b"NETSCAPE", b"2.0", [b"\x01" + struct.pack("<H", count)])

    def add_comment(self, text: bytes) -> "GifBuilder":
        self.parts.append(b"\x21\xFE" + sub_blocks(text))
        return self

    def add_plain_text(self, text: bytes, left: int = 0, top: int = 0) -> "GifBuilder":
        header = struct.pack("<HHHHBBBB", left, top, 8 * len(text), 8, 8, 8, 1, 0)
        self.parts.append(b"\x21\x01\x0C" + header + sub_blocks(text))
        return self

    def add_image(self, indices, x: int = 0, y: int = 0, palette: Optional[Sequence[Color]] = None,
                  interlace: bool = False, min_code_size: Optional[int] = None,
                  data: Optional[bytes] = None) -> "GifBuilder":
        """Add an image block from a 2-D array of palette indices.

        ``data`` replaces the compressed payload when given.
        """
        rows = np.asarray(indices, dtype=np.uint8)
        if rows.ndim == 1:
            rows = rows.reshape(1, -1)
        height, width = rows.shape

        packed = 0
        table = b""
        if palette:
            exponent, table = _palette_bytes(palette)
            packed |= 0x80 | exponent
        if interlace:
            packed |= 0x40
            rows = interlace_rows(rows)

        if min_code_size is None:
            colors = len(palette or self.palette or [BLACK, WHITE])
            min_code_size = max(2, (colors - 1).bit_length())
        if data is None:
            data = compress(rows.reshape(-1).tolist(), min_code_size)

        self.parts.append(
            b"\x2C" + struct.pack("<HHHHB", x, y, width, height, packed) + table
            + bytes([min_code_size]) + sub_blocks(data))
        return self

    def build(self, trailer: bool = True) -> bytes:
        return b"".join(self.parts) + (b"\x3B" if trailer else b"")
