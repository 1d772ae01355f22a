"""End-to-end decoding tests, including streams written by Pillow."""

import io

import numpy as np
import pytest
from PIL import Image

from gif_builder import BLACK, RED, WHITE, GifBuilder, pack_bits
from gif_frame_decoder import (
    DecodedGif,
    DecoderConfig,
    FormatError,
    GifDecoder,
    MalformedStreamError,
    decode,
    read_metadata,
)


class TestBlackWhite:
    def test_frames_and_delays(self, black_white_gif):
        result = decode(black_white_gif)

        assert isinstance(result, DecodedGif)
        assert len(result) == 2
        assert (result.width, result.height) == (4, 3)
        assert result.loop_count == 0
        assert result.warnings == []

        first, second = result.frames
        assert first.pixels.shape == (3, 4, 4)
        assert (first.pixels == [0, 0, 0, 255]).all()
        assert (second.pixels == [255, 255, 255, 255]).all()
        assert first.delay == pytest.approx(0.5)
        assert second.delay == pytest.approx(0.25)
        assert result.duration == pytest.approx(0.75)

    def test_frames_unpack_as_pixels_and_delay(self, black_white_gif):
        delays = [delay for _pixels, delay in decode(black_white_gif)]
        assert delays == pytest.approx([0.5, 0.25])

    def test_decoding_is_repeatable(self, black_white_gif):
        a = decode(black_white_gif)
        b = decode(black_white_gif)
        for x, y in zip(a, b):
            assert np.array_equal(x.pixels, y.pixels)
            assert x.delay == y.delay


class TestMetadata:
    def test_read_metadata(self):
        builder = GifBuilder(5, 7, palette=[BLACK, WHITE], background_index=1, aspect_ratio=49,
                             color_resolution=4)
        builder.add_loop(2)
        builder.add_comment(b"made by hand")
        builder.add_plain_text(b"hello")
        builder.add_image([[1] * 5] * 7)
        metadata = read_metadata(builder.build())

        assert metadata.version == "89a"
        assert (metadata.width, metadata.height) == (5, 7)
        assert metadata.color_resolution == 4
        assert metadata.background_color_index == 1
        assert metadata.pixel_aspect_ratio == 49
        assert metadata.loop_count == 2
        assert metadata.frame_count == 1
        assert metadata.comments == [b"made by hand"]
        assert metadata.plain_texts == [b"hello"]

    def test_metadata_skips_pixel_decoding(self):
        # garbage image data is only a problem once frames are composited
        builder = GifBuilder(2, 2, palette=[BLACK, WHITE])
        builder.add_image([[0, 0], [0, 0]], data=pack_bits([(7, 3)] * 4))
        assert read_metadata(builder.build()).frame_count == 1

    def test_decoded_gif_carries_metadata(self, black_white_gif):
        result = decode(black_white_gif)
        assert result.metadata == read_metadata(black_white_gif)


class TestEdgeCases:
    def test_single_pixel(self):
        builder = GifBuilder(1, 1, palette=[BLACK, RED])
        builder.add_image([[1]])
        result = decode(builder.build())
        assert len(result) == 1
        assert result.frames[0].pixels.tolist() == [[[255, 0, 0, 255]]]

    def test_no_images(self):
        result = decode(GifBuilder(3, 3, palette=[BLACK, WHITE]).build())
        assert result.frames == []
        assert result.duration == 0

    def test_not_a_gif(self):
        with pytest.raises(FormatError):
            decode(b"\x89PNG\r\n\x1a\n" + bytes(32))

    def test_broken_structure(self):
        data = GifBuilder(2, 2, palette=[BLACK, WHITE]).add_raw(b"\x00").build()
        with pytest.raises(MalformedStreamError):
            decode(data)

    def test_parse_errors_raised_by_constructor(self):
        with pytest.raises(FormatError):
            GifDecoder(b"nope")

    def test_strict_codes_config(self):
        builder = GifBuilder(2, 1, palette=[BLACK, WHITE])
        builder.add_image([[1, 1]], data=pack_bits([(4, 3), (7, 3), (1, 3), (1, 3), (5, 3)]))
        data = builder.build()

        tolerant = decode(data)
        assert tolerant.frames[0].pixels[0, :, 0].tolist() == [255, 255]
        with pytest.raises(MalformedStreamError):
            decode(data, DecoderConfig(strict_codes=True))

    def test_decoder_warnings_after_iteration(self):
        builder = GifBuilder(2, 2, palette=[BLACK, WHITE])
        builder.add_image([[1, 1], [1, 1]], data=b"")
        decoder = GifDecoder(builder.build())
        frames = list(decoder.iter_frames())
        assert len(frames) == 1
        assert len(decoder.warnings) == 1

    def test_interleaved_iterations_keep_separate_warnings(self):
        builder = GifBuilder(2, 2, palette=[BLACK, WHITE])
        builder.add_image([[1, 1], [1, 1]], data=b"")
        builder.add_image([[1, 1], [1, 1]], data=b"")
        decoder = GifDecoder(builder.build())

        first = decoder.iter_frames()
        second = decoder.iter_frames()
        for _ in range(2):
            next(first)
            next(second)
        assert [w.frame_index for w in decoder.warnings] == [0, 1]


def _pil_palette_image(width, height, seed):
    rng = np.random.default_rng(seed)
    palette = rng.integers(0, 256, size=(16, 3), dtype=np.uint8)
    image = Image.new("P", (width, height))
    image.putpalette(palette.reshape(-1).tolist())
    image.putdata(rng.integers(0, 16, size=width * height).tolist())
    return image


class TestPillowStreams:
    @pytest.mark.parametrize("interlace", [False, True])
    def test_single_frame_matches_pillow(self, interlace):
        image = _pil_palette_image(32, 24, seed=3)
        buffer = io.BytesIO()
        image.save(buffer, format="GIF", interlace=interlace)

        result = decode(buffer.getvalue())
        assert len(result) == 1
        pixels = result.frames[0].pixels
        expected = np.asarray(image.convert("RGB"))
        assert pixels.shape == (24, 32, 4)
        assert np.array_equal(pixels[..., :3], expected)
        assert (pixels[..., 3] == 255).all()

    def test_animation_timing_and_loop(self):
        frames = [_pil_palette_image(20, 10, seed=s) for s in (1, 2)]
        buffer = io.BytesIO()
        frames[0].save(buffer, format="GIF", save_all=True, append_images=frames[1:],
                       duration=[100, 200], loop=3)

        result = decode(buffer.getvalue())
        assert len(result) == 2
        assert result.loop_count == 3
        assert [frame.delay for frame in result] == pytest.approx([0.1, 0.2])
        assert all(frame.pixels.shape == (10, 20, 4) for frame in result)
        assert np.array_equal(result.frames[0].pixels[..., :3], np.asarray(frames[0].convert("RGB")))
        assert result.warnings == []
