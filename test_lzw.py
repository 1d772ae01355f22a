"""Tests for LZW decompression."""

import numpy as np
import pytest

from gif_builder import code_widths, compress, lzw_encode, pack_bits
from gif_frame_decoder.config import DecoderConfig
from gif_frame_decoder.core.errors import MalformedStreamError
from gif_frame_decoder.core.lzw import LzwDecompressor, decode


def _pattern(n, colors):
    return [(i * 7 + i // 13) % colors for i in range(n)]


@pytest.mark.parametrize("min_code_size,colors,n", [
    (2, 4, 100),
    (3, 8, 1000),
    (4, 16, 5000),
    (8, 256, 3000),
])
def test_round_trip_patterned(min_code_size, colors, n):
    indices = _pattern(n, colors)
    result = decode(compress(indices, min_code_size), min_code_size, n)
    assert result.count == n
    assert not result.truncated
    assert result.pixels.tolist() == indices


def test_round_trip_noise_with_table_clears():
    rng = np.random.default_rng(1234)
    indices = rng.integers(0, 256, size=20000).tolist()
    codes = lzw_encode(indices, 8)
    # the encoder must have cleared a full table at least once
    assert codes.count(256) > 1

    result = decode(compress(indices, 8), 8, len(indices))
    assert result.pixels.tolist() == indices


def test_round_trip_long_runs():
    indices = [0] * 30000 + [1] * 30000
    result = decode(compress(indices, 2), 2, len(indices))
    assert result.pixels.tolist() == indices


def test_self_referential_code():
    # clear, 0, 6 (not yet in the table), end
    codes = lzw_encode([0, 0, 0], 2)
    assert codes == [4, 0, 6, 5]
    result = decode(compress([0, 0, 0], 2), 2, 3)
    assert result.pixels.tolist() == [0, 0, 0]


def test_clear_code_mid_stream_resets_table():
    data = pack_bits(code_widths([4, 1, 2, 4, 3, 2, 5], 2))
    result = decode(data, 2, 4)
    assert result.pixels.tolist() == [1, 2, 3, 2]


def test_stops_at_expected_pixel_count_without_end_code():
    data = pack_bits(code_widths([4, 1, 1, 1, 1, 1, 1], 2))
    result = decode(data, 2, 3)
    assert result.count == 3
    assert result.pixels.tolist() == [1, 1, 1]


def test_over_long_final_string_is_cut():
    indices = [2] * 10
    result = decode(compress(indices, 2), 2, 7)
    assert result.pixels.tolist() == [2] * 7


def test_under_run_leaves_zeros():
    result = decode(compress([3, 3, 1], 2), 2, 6)
    assert result.truncated
    assert result.count == 3
    assert result.pixels.tolist() == [3, 3, 1, 0, 0, 0]


def test_empty_payload():
    result = decode(b"", 2, 4)
    assert result.count == 0
    assert len(result.pixels) == 4


def test_zero_expected_pixels():
    result = decode(compress([1, 2], 2), 2, 0)
    assert result.count == 0
    assert len(result.pixels) == 0


def test_invalid_code_skipped_by_default():
    # code 7 is beyond the 6-entry table and there is no previous entry
    data = pack_bits([(4, 3), (7, 3), (1, 3), (5, 3)])
    result = decode(data, 2, 1)
    assert result.pixels.tolist() == [1]


def test_invalid_code_fails_in_strict_mode():
    data = pack_bits([(4, 3), (7, 3), (1, 3), (5, 3)])
    with pytest.raises(MalformedStreamError):
        decode(data, 2, 1, DecoderConfig(strict_codes=True))


def test_code_beyond_next_free_slot_is_skipped():
    # after clear, 1: table has 6 entries, code 7 skips the free slot 6
    data = pack_bits([(4, 3), (1, 3), (7, 3), (2, 3), (5, 3)])
    result = decode(data, 2, 2)
    assert result.pixels.tolist() == [1, 2]


@pytest.mark.parametrize("min_code_size", [0, 12])
def test_invalid_minimum_code_size(min_code_size):
    with pytest.raises(MalformedStreamError):
        decode(b"\x00", min_code_size, 1)


def _full_table_stream():
    """Fill the table to 4096 entries with zeros, then send 1 and end at 3 bits."""
    pairs = [(4, 3)]
    size, width = 6, 3
    for i in range(4091):
        pairs.append((0, width))
        if i > 0:
            size += 1
        if size >= (1 << width) and width < 12:
            width += 1
    assert (size, width) == (4096, 12)
    pairs += [(1, 3), (5, 3)]
    return pack_bits(pairs)


def test_full_table_resets_without_clear_code():
    result = LzwDecompressor(DecoderConfig(early_reset=True)).decode(_full_table_stream(), 2, 4092)
    assert result.count == 4092
    assert result.pixels[:4091].tolist() == [0] * 4091
    assert result.pixels[4091] == 1


def test_full_table_frozen_when_early_reset_disabled():
    result = LzwDecompressor(DecoderConfig(early_reset=False)).decode(_full_table_stream(), 2, 4092)
    # the trailing codes are read as one 12-bit code for a run of zeros
    assert result.count == 4092
    assert result.pixels[4091] == 0
