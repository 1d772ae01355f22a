"""Records produced by the container parser."""

from dataclasses import dataclass, field
from typing import List, Optional, Union

import numpy as np

from gif_frame_decoder.core.disposal import DisposalMethod


@dataclass(frozen=True)
class Header:
    """Signature and version from the first six bytes."""
    signature: str
    version: str


@dataclass(frozen=True)
class LogicalScreenDescriptor:
    """Canvas size and global color table flags."""
    width: int
    height: int
    global_color_table_flag: bool
    color_resolution: int
    sort_flag: bool
    global_color_table_size: int
    background_color_index: int
    pixel_aspect_ratio: int


class ColorTable:
    """Palette of RGB triples, stored as an (N, 3) uint8 array."""

    def __init__(self, colors: np.ndarray):
        colors = np.asarray(colors, dtype=np.uint8).reshape(-1, 3)
        colors.flags.writeable = False
        self.colors = colors
        self._rgba: Optional[np.ndarray] = None

    @classmethod
    def from_bytes(cls, data: bytes) -> "ColorTable":
        return cls(np.frombuffer(data, dtype=np.uint8).reshape(-1, 3))

    def __len__(self) -> int:
        return len(self.colors)

    def __getitem__(self, index: int):
        r, g, b = self.colors[index]
        return int(r), int(g), int(b)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ColorTable):
            return NotImplemented
        return np.array_equal(self.colors, other.colors)

    def __repr__(self) -> str:
        return f"ColorTable({len(self)} colors)"

    def rgba(self) -> np.ndarray:
        """Opaque RGBA view of the palette, shape (N, 4)."""
        if self._rgba is None:
            rgba = np.full((len(self.colors), 4), 255, dtype=np.uint8)
            rgba[:, :3] = self.colors
            rgba.flags.writeable = False
            self._rgba = rgba
        return self._rgba


@dataclass(frozen=True)
class GraphicControlExtension:
    """Disposal, transparency and timing for the next image block."""
    disposal_method: int
    user_input_flag: bool
    transparent_color_flag: bool
    delay_time: int
    transparent_color_index: int
    offset: int = -1

    @property
    def disposal(self) -> DisposalMethod:
        return DisposalMethod.from_value(self.disposal_method)

    @property
    def transparent_index(self) -> int:
        """Transparent palette index, or -1 when transparency is off."""
        return self.transparent_color_index if self.transparent_color_flag else -1


@dataclass(frozen=True)
class ImageBlock:
    """Image descriptor, optional local palette and compressed pixel data.

    ``control`` is the graphic control extension that immediately preceded
    this block in the stream, if any.
    """
    x: int
    y: int
    width: int
    height: int
    local_color_table_flag: bool
    interlace_flag: bool
    sort_flag: bool
    local_color_table_size: int
    local_color_table: Optional[ColorTable]
    lzw_minimum_code_size: int
    data: bytes
    control: Optional[GraphicControlExtension] = None
    offset: int = -1

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class CommentExtension:
    sub_blocks: List[bytes] = field(default_factory=list)
    offset: int = -1

    @property
    def data(self) -> bytes:
        return b"".join(self.sub_blocks)


@dataclass(frozen=True)
class PlainTextExtension:
    """Text grid header plus the raw text sub-blocks."""
    grid_left: int
    grid_top: int
    grid_width: int
    grid_height: int
    cell_width: int
    cell_height: int
    foreground_color_index: int
    background_color_index: int
    sub_blocks: List[bytes] = field(default_factory=list)
    offset: int = -1

    @property
    def data(self) -> bytes:
        return b"".join(self.sub_blocks)


@dataclass(frozen=True)
class ApplicationExtension:
    """Application identifier, auth code and data sub-blocks.

    ``loop_count`` follows the Netscape convention: a first sub-block of
    0x01 plus a little-endian 16-bit count. Anything else means 0 (infinite).
    """
    identifier: bytes
    authentication_code: bytes
    sub_blocks: List[bytes] = field(default_factory=list)
    offset: int = -1

    @property
    def has_loop_count(self) -> bool:
        return bool(self.sub_blocks) and len(self.sub_blocks[0]) >= 3 and self.sub_blocks[0][0] == 0x01

    @property
    def loop_count(self) -> int:
        if not self.has_loop_count:
            return 0
        return int.from_bytes(self.sub_blocks[0][1:3], "little")


@dataclass(frozen=True)
class UnknownExtension:
    """Extension with a label this decoder does not interpret."""
    label: int
    sub_blocks: List[bytes] = field(default_factory=list)
    offset: int = -1


@dataclass(frozen=True)
class Trailer:
    offset: int = -1


Block = Union[
    ImageBlock,
    GraphicControlExtension,
    CommentExtension,
    PlainTextExtension,
    ApplicationExtension,
    UnknownExtension,
    Trailer,
]


@dataclass
class ParsedStream:
    """Everything the container parser extracted, in encounter order."""
    header: Header
    screen: LogicalScreenDescriptor
    global_color_table: Optional[ColorTable] = None
    blocks: List[Block] = field(default_factory=list)
    image_blocks: List[ImageBlock] = field(default_factory=list)
    graphic_controls: List[GraphicControlExtension] = field(default_factory=list)
    comments: List[CommentExtension] = field(default_factory=list)
    plain_texts: List[PlainTextExtension] = field(default_factory=list)
    applications: List[ApplicationExtension] = field(default_factory=list)
    has_trailer: bool = False

    @property
    def loop_count(self) -> int:
        """Loop count from the first application extension that declares one."""
        for application in self.applications:
            if application.has_loop_count:
                return application.loop_count
        return 0
