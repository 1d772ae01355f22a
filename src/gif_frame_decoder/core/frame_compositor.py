"""Turn parsed image blocks into full-canvas RGBA frames."""

import logging
from typing import Iterator, List, NamedTuple, Optional, Tuple

import numpy as np

from gif_frame_decoder.config import DecoderConfig
from gif_frame_decoder.core.blocks import ColorTable, GraphicControlExtension, ImageBlock, ParsedStream
from gif_frame_decoder.core.disposal import DisposalMethod, seed_canvas
from gif_frame_decoder.core.errors import TruncatedDataWarning
from gif_frame_decoder.core.interlace import deinterlace
from gif_frame_decoder.core.lzw import LzwDecompressor

logger = logging.getLogger(__name__)

OPAQUE_BLACK = np.array([0, 0, 0, 255], dtype=np.uint8)


class DecodedFrame(NamedTuple):
    """One composited frame: (height, width, 4) RGBA pixels and a delay in seconds."""
    pixels: np.ndarray
    delay: float


class FrameCompositor:
    """Composite image blocks in stream order.

    Each frame starts from a canvas seeded by the previous frame's disposal
    method, then the block's opaque pixels are painted over it. Emitted
    frames are read-only.
    """

    def __init__(self, config: Optional[DecoderConfig] = None):
        self.config = config or DecoderConfig()
        self.lzw = LzwDecompressor(self.config)
        self.warnings: List[TruncatedDataWarning] = []

    def compose(self, stream: ParsedStream) -> List[DecodedFrame]:
        """Composite every image block of ``stream``."""
        return list(self.iter_frames(stream))

    def iter_frames(self, stream: ParsedStream) -> Iterator[DecodedFrame]:
        """Yield frames one at a time so callers can interleave other work.

        Each run collects its own warnings; ``self.warnings`` points at the
        list of the most recently started run.
        """
        warnings: List[TruncatedDataWarning] = []
        self.warnings = warnings
        shape = (stream.screen.height, stream.screen.width)
        frames: List[np.ndarray] = []
        disposals: List[DisposalMethod] = []

        for frame_index, block in enumerate(stream.image_blocks):
            control = block.control
            disposal = control.disposal if control else DisposalMethod.RESTORE_BACKGROUND
            transparent_index = control.transparent_index if control else -1

            table = self.resolve_color_table(stream, block)
            background = self.background_color(stream, table, transparent_index)

            canvas = seed_canvas(frames, disposals, shape, background)
            self._paint(canvas, block, table, transparent_index, frame_index, warnings)
            canvas.flags.writeable = False

            frames.append(canvas)
            disposals.append(disposal)
            yield DecodedFrame(canvas, self.frame_delay(control))

        logger.info(f"Composited {len(frames)} frames ({len(warnings)} warnings)")

    # -- per-frame resolution ---------------------------------------------

    @staticmethod
    def resolve_color_table(stream: ParsedStream, block: ImageBlock) -> Optional[ColorTable]:
        """Local table if the block has one, else the global table, else None."""
        if block.local_color_table_flag:
            return block.local_color_table
        if stream.screen.global_color_table_flag:
            return stream.global_color_table
        return None

    @staticmethod
    def background_color(stream: ParsedStream, table: Optional[ColorTable], transparent_index: int) -> np.ndarray:
        """RGBA background; transparent when it shares the transparent index."""
        index = stream.screen.background_color_index
        if table is None or index >= len(table):
            return OPAQUE_BLACK.copy()
        alpha = 0 if index == transparent_index else 255
        return np.array([*table[index], alpha], dtype=np.uint8)

    def frame_delay(self, control: Optional[GraphicControlExtension]) -> float:
        if control is None:
            return self.config.default_delay
        delay = control.delay_time / 100.0
        if delay <= 0:
            return self.config.minimum_delay
        return delay

    # -- painting ------------------------------------------------------------

    def _decode_indices(self, block: ImageBlock) -> Tuple[np.ndarray, np.ndarray, int]:
        """Palette indices in display order plus a mask of pixels that were decoded."""
        decoded = self.lzw.decode(block.data, block.lzw_minimum_code_size, block.pixel_count)
        available = np.zeros(block.pixel_count, dtype=bool)
        available[:decoded.count] = True

        pixels = decoded.pixels
        if block.interlace_flag:
            pixels = deinterlace(pixels, block.width)
            available = deinterlace(available, block.width)
        return pixels, available, decoded.count

    @staticmethod
    def _warn(warnings: List[TruncatedDataWarning], message: str, frame_index: int):
        logger.warning(message)
        warnings.append(TruncatedDataWarning(message, frame_index))

    def _paint(self, canvas: np.ndarray, block: ImageBlock, table: Optional[ColorTable],
               transparent_index: int, frame_index: int, warnings: List[TruncatedDataWarning]):
        if block.pixel_count == 0:
            return

        pixels, available, count = self._decode_indices(block)
        if count < block.pixel_count:
            self._warn(
                warnings,
                f"Frame {frame_index}: image data ended after {count} of {block.pixel_count} pixels",
                frame_index)

        canvas_height, canvas_width = canvas.shape[:2]
        x0, y0 = block.x, block.y
        x1 = min(x0 + block.width, canvas_width)
        y1 = min(y0 + block.height, canvas_height)
        if x0 >= x1 or y0 >= y1:
            logger.debug(f"Frame {frame_index}: image block lies entirely outside the canvas")
            return
        if x1 - x0 < block.width or y1 - y0 < block.height:
            logger.debug(f"Frame {frame_index}: clipping image block to the canvas")

        indices = pixels.reshape(block.height, block.width)[:y1 - y0, :x1 - x0].astype(np.intp)
        decoded = available.reshape(block.height, block.width)[:y1 - y0, :x1 - x0]
        see_through = indices == transparent_index

        table_size = len(table) if table is not None else 0
        in_range = indices < table_size

        bad = decoded & ~in_range & ~see_through
        if bad.any():
            if table is None:
                self._warn(warnings, f"Frame {frame_index}: no color table, pixels left as background",
                           frame_index)
            else:
                self._warn(
                    warnings, f"Frame {frame_index}: {int(bad.sum())} color indices exceed the "
                    f"{table_size}-entry color table", frame_index)

        opaque = decoded & in_range & ~see_through
        if table is not None and opaque.any():
            region = canvas[y0:y1, x0:x1]
            region[opaque] = table.rgba()[indices[opaque]]
