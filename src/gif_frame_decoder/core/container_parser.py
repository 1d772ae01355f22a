"""Walk a GIF byte stream and extract its descriptor, palettes and blocks."""

import logging
import struct
from typing import List, Optional

from gif_frame_decoder.core.blocks import (
    ApplicationExtension,
    ColorTable,
    CommentExtension,
    GraphicControlExtension,
    Header,
    ImageBlock,
    LogicalScreenDescriptor,
    ParsedStream,
    PlainTextExtension,
    Trailer,
    UnknownExtension,
)
from gif_frame_decoder.core.errors import FormatError, MalformedStreamError

logger = logging.getLogger(__name__)

IMAGE_SEPARATOR = 0x2C
EXTENSION_INTRODUCER = 0x21
TRAILER = 0x3B

GRAPHIC_CONTROL_LABEL = 0xF9
COMMENT_LABEL = 0xFE
PLAIN_TEXT_LABEL = 0x01
APPLICATION_LABEL = 0xFF

KNOWN_VERSIONS = ("87a", "89a")
SCREEN_DESCRIPTOR_END = 13


class ContainerParser:
    """Sequential block reader over an in-memory GIF stream.

    Every reader advances the shared ``pos`` cursor and hands control back to
    the dispatch loop in :meth:`parse`.
    """

    def __init__(self, data: bytes):
        self.data = bytes(data)
        self.pos = 0
        self._pending_control: Optional[GraphicControlExtension] = None

    # -- primitive reads -------------------------------------------------

    def _require(self, n: int, what: str):
        if self.pos + n > len(self.data):
            raise MalformedStreamError(
                f"Unexpected end of data while reading {what}: need {n} bytes, "
                f"{len(self.data) - self.pos} left", self.pos)

    def _read(self, n: int, what: str) -> bytes:
        self._require(n, what)
        chunk = self.data[self.pos:self.pos + n]
        self.pos += n
        return chunk

    def _read_byte(self, what: str) -> int:
        self._require(1, what)
        value = self.data[self.pos]
        self.pos += 1
        return value

    def _read_sub_blocks(self, what: str) -> List[bytes]:
        """Read length-prefixed sub-blocks up to and including the terminator."""
        blocks = []
        while True:
            size = self._read_byte(f"{what} sub-block size")
            if size == 0:
                return blocks
            blocks.append(self._read(size, f"{what} sub-block"))

    def _read_color_table(self, size: int, what: str) -> ColorTable:
        return ColorTable.from_bytes(self._read(size * 3, what))

    # -- header ------------------------------------------------------------

    def _read_header(self) -> Header:
        if len(self.data) < 6 or self.data[:3] != b"GIF":
            raise FormatError(f"Not a GIF stream: signature {self.data[:3]!r}")
        signature = self.data[:3].decode("ascii")
        version = self.data[3:6].decode("latin-1")
        if version not in KNOWN_VERSIONS:
            logger.warning(f"Unknown GIF version {version!r}, decoding anyway")
        self.pos = 6
        return Header(signature, version)

    def _read_screen_descriptor(self) -> LogicalScreenDescriptor:
        width, height, packed, background, aspect = struct.unpack(
            "<HHBBB", self._read(7, "logical screen descriptor"))
        return LogicalScreenDescriptor(
            width=width,
            height=height,
            global_color_table_flag=bool(packed & 0x80),
            color_resolution=((packed & 0x70) >> 4) + 1,
            sort_flag=bool(packed & 0x08),
            global_color_table_size=1 << ((packed & 0x07) + 1),
            background_color_index=background,
            pixel_aspect_ratio=aspect,
        )

    # -- blocks --------------------------------------------------------------

    def _read_image_block(self) -> ImageBlock:
        start = self.pos
        self.pos += 1  # separator
        x, y, width, height, packed = struct.unpack(
            "<HHHHB", self._read(9, "image descriptor"))

        local_flag = bool(packed & 0x80)
        local_size = 1 << ((packed & 0x07) + 1)
        local_table = None
        if local_flag:
            local_table = self._read_color_table(local_size, "local color table")

        min_code_size = self._read_byte("LZW minimum code size")
        data = b"".join(self._read_sub_blocks("image data"))

        control, self._pending_control = self._pending_control, None
        return ImageBlock(
            x=x,
            y=y,
            width=width,
            height=height,
            local_color_table_flag=local_flag,
            interlace_flag=bool(packed & 0x40),
            sort_flag=bool(packed & 0x20),
            local_color_table_size=local_size,
            local_color_table=local_table,
            lzw_minimum_code_size=min_code_size,
            data=data,
            control=control,
            offset=start,
        )

    def _read_graphic_control(self, start: int) -> GraphicControlExtension:
        size = self._read_byte("graphic control block size")
        body = self._read(size, "graphic control extension")
        if size < 4:
            raise MalformedStreamError(
                f"Graphic control extension too short: {size} bytes", start)
        # Anything past the fixed fields is skipped up to the terminator.
        self._read_sub_blocks("graphic control extension")

        packed = body[0]
        return GraphicControlExtension(
            disposal_method=(packed & 0x1C) >> 2,
            user_input_flag=bool(packed & 0x02),
            transparent_color_flag=bool(packed & 0x01),
            delay_time=body[1] | (body[2] << 8),
            transparent_color_index=body[3],
            offset=start,
        )

    def _read_comment(self, start: int) -> CommentExtension:
        return CommentExtension(self._read_sub_blocks("comment extension"), offset=start)

    def _read_plain_text(self, start: int) -> PlainTextExtension:
        size = self._read_byte("plain text block size")
        header = self._read(size, "plain text header")
        if size < 12:
            raise MalformedStreamError(f"Plain text header too short: {size} bytes", start)
        left, top, width, height, cell_w, cell_h, fg, bg = struct.unpack("<HHHHBBBB", header[:12])
        return PlainTextExtension(
            grid_left=left,
            grid_top=top,
            grid_width=width,
            grid_height=height,
            cell_width=cell_w,
            cell_height=cell_h,
            foreground_color_index=fg,
            background_color_index=bg,
            sub_blocks=self._read_sub_blocks("plain text extension"),
            offset=start,
        )

    def _read_application(self, start: int) -> ApplicationExtension:
        size = self._read_byte("application block size")
        body = self._read(size, "application identifier")
        if size < 11:
            raise MalformedStreamError(f"Application identifier block too short: {size} bytes", start)
        return ApplicationExtension(
            identifier=body[:8],
            authentication_code=body[8:11],
            sub_blocks=self._read_sub_blocks("application extension"),
            offset=start,
        )

    def _read_extension(self, stream: ParsedStream):
        start = self.pos
        self.pos += 1  # introducer
        label = self._read_byte("extension label")

        if label == GRAPHIC_CONTROL_LABEL:
            control = self._read_graphic_control(start)
            if self._pending_control is not None:
                logger.debug(f"Graphic control at {self._pending_control.offset} has no image, replaced")
            self._pending_control = control
            stream.graphic_controls.append(control)
            return control
        if label == COMMENT_LABEL:
            comment = self._read_comment(start)
            stream.comments.append(comment)
            return comment
        if label == PLAIN_TEXT_LABEL:
            plain_text = self._read_plain_text(start)
            stream.plain_texts.append(plain_text)
            return plain_text
        if label == APPLICATION_LABEL:
            application = self._read_application(start)
            stream.applications.append(application)
            return application

        logger.info(f"Skipping unknown extension 0x{label:02X} at byte {start}")
        return UnknownExtension(label, self._read_sub_blocks(f"extension 0x{label:02X}"), offset=start)

    # -- dispatch ------------------------------------------------------------

    def parse(self) -> ParsedStream:
        """Parse the whole buffer into a :class:`ParsedStream`."""
        header = self._read_header()
        if len(self.data) < SCREEN_DESCRIPTOR_END:
            raise MalformedStreamError(
                f"Stream too short for a logical screen descriptor: {len(self.data)} bytes", len(self.data))
        screen = self._read_screen_descriptor()

        stream = ParsedStream(header=header, screen=screen)
        if screen.global_color_table_flag:
            stream.global_color_table = self._read_color_table(
                screen.global_color_table_size, "global color table")

        while True:
            if self.pos >= len(self.data):
                logger.warning(f"Stream ended at byte {self.pos} without a trailer")
                break

            last = self.pos
            tag = self.data[self.pos]
            if tag == IMAGE_SEPARATOR:
                block = self._read_image_block()
                stream.image_blocks.append(block)
            elif tag == EXTENSION_INTRODUCER:
                block = self._read_extension(stream)
            elif tag == TRAILER:
                self.pos += 1
                stream.blocks.append(Trailer(offset=last))
                stream.has_trailer = True
                break
            else:
                raise MalformedStreamError(f"Unknown block tag 0x{tag:02X}", last)

            if self.pos == last:
                raise MalformedStreamError("Block reader did not advance", last)
            stream.blocks.append(block)

        if self.pos < len(self.data):
            logger.debug(f"Ignoring {len(self.data) - self.pos} bytes after the trailer")
        logger.info(
            f"Parsed GIF{header.version} {screen.width}x{screen.height}: "
            f"{len(stream.image_blocks)} images, {len(stream.blocks)} blocks")
        return stream


def parse(data: bytes) -> ParsedStream:
    """Parse a complete GIF byte buffer."""
    return ContainerParser(data).parse()
