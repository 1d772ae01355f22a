"""GIF-variant LZW decompression."""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from gif_frame_decoder.config import DecoderConfig
from gif_frame_decoder.core.bit_reader import BitReader
from gif_frame_decoder.core.errors import MalformedStreamError

logger = logging.getLogger(__name__)

MAX_CODE_WIDTH = 12
MAX_DICTIONARY_SIZE = 1 << MAX_CODE_WIDTH


@dataclass
class DecodedIndices:
    """Palette indices for one image block.

    ``pixels`` always holds ``width * height`` entries; only the first
    ``count`` of them came from the compressed stream.
    """
    pixels: np.ndarray
    count: int

    @property
    def truncated(self) -> bool:
        return self.count < len(self.pixels)


class LzwDecompressor:
    """Decode GIF image data into palette indices.

    The code table is a list of byte strings indexed by code. Each new entry
    is an existing entry plus one byte, so the table only ever grows until
    a clear code (or a full table) resets it.
    """

    def __init__(self, config: Optional[DecoderConfig] = None):
        self.config = config or DecoderConfig()

    @staticmethod
    def _initial_table(minimum_code_size: int) -> List[bytes]:
        clear_code = 1 << minimum_code_size
        table = [bytes((i,)) for i in range(clear_code)]
        # Slots for the clear and end codes keep codes aligned with indices.
        table.append(b"")
        table.append(b"")
        return table

    def decode(self, data: bytes, minimum_code_size: int, expected_pixel_count: int) -> DecodedIndices:
        """Decompress ``data`` into exactly ``expected_pixel_count`` indices.

        Args:
            data: Concatenated image data sub-blocks (without length bytes).
            minimum_code_size: LZW minimum code size from the image block.
            expected_pixel_count: Image width times height.

        Returns:
            DecodedIndices whose ``count`` tells how many indices were
            actually produced; the rest are zero.
        """
        if not 1 <= minimum_code_size < MAX_CODE_WIDTH:
            raise MalformedStreamError(f"Invalid LZW minimum code size: {minimum_code_size}")

        output = bytearray(expected_pixel_count)
        if expected_pixel_count == 0:
            return DecodedIndices(np.frombuffer(output, dtype=np.uint8), 0)

        reader = BitReader(data)
        clear_code = 1 << minimum_code_size
        end_code = clear_code + 1
        initial_width = minimum_code_size + 1

        table = self._initial_table(minimum_code_size)
        width = initial_width
        bit_pos = 0
        produced = 0
        previous: Optional[bytes] = None
        skipped = 0
        early_resets = 0

        while reader.remaining(bit_pos) >= width:
            code = reader.read(bit_pos, width)
            bit_pos += width

            if code == clear_code:
                table = self._initial_table(minimum_code_size)
                width = initial_width
                previous = None
                continue
            if code == end_code:
                break

            if code < len(table):
                entry = table[code]
            elif code == len(table) and previous is not None:
                entry = previous + previous[:1]
            else:
                if self.config.strict_codes:
                    raise MalformedStreamError(
                        f"LZW code {code} out of range (table size {len(table)}) at bit {bit_pos - width}")
                skipped += 1
                continue

            n = min(len(entry), expected_pixel_count - produced)
            output[produced:produced + n] = entry[:n]
            produced += n
            if produced >= expected_pixel_count:
                break

            if previous is not None and len(table) < MAX_DICTIONARY_SIZE:
                table.append(previous + entry[:1])
            previous = entry

            if len(table) >= (1 << width) and width < MAX_CODE_WIDTH:
                width += 1
            elif width == MAX_CODE_WIDTH and len(table) >= MAX_DICTIONARY_SIZE and self.config.early_reset:
                # Some encoders start over without sending a clear code.
                if reader.read(bit_pos, width) != clear_code:
                    table = self._initial_table(minimum_code_size)
                    width = initial_width
                    early_resets += 1

        if skipped:
            logger.debug(f"Skipped {skipped} out-of-range LZW codes")
        if early_resets:
            logger.debug(f"Reset a full LZW table {early_resets} times without a clear code")
        if produced < expected_pixel_count:
            logger.debug(f"LZW stream produced {produced} of {expected_pixel_count} pixels")

        return DecodedIndices(np.frombuffer(output, dtype=np.uint8), produced)


def decode(data: bytes, minimum_code_size: int, expected_pixel_count: int,
           config: Optional[DecoderConfig] = None) -> DecodedIndices:
    """Module-level shortcut for :meth:`LzwDecompressor.decode`."""
    return LzwDecompressor(config).decode(data, minimum_code_size, expected_pixel_count)
