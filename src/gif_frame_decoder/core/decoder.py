"""High level entry points: bytes in, timed RGBA frames out."""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from gif_frame_decoder.config import DecoderConfig
from gif_frame_decoder.core.blocks import ParsedStream
from gif_frame_decoder.core.container_parser import ContainerParser
from gif_frame_decoder.core.errors import TruncatedDataWarning
from gif_frame_decoder.core.frame_compositor import DecodedFrame, FrameCompositor


@dataclass(frozen=True)
class GifMetadata:
    """Stream level information that does not need pixel decoding."""
    version: str
    width: int
    height: int
    color_resolution: int
    background_color_index: int
    pixel_aspect_ratio: int
    loop_count: int
    frame_count: int
    comments: List[bytes] = field(default_factory=list)
    plain_texts: List[bytes] = field(default_factory=list)

    @classmethod
    def from_stream(cls, stream: ParsedStream) -> "GifMetadata":
        screen = stream.screen
        return cls(
            version=stream.header.version,
            width=screen.width,
            height=screen.height,
            color_resolution=screen.color_resolution,
            background_color_index=screen.background_color_index,
            pixel_aspect_ratio=screen.pixel_aspect_ratio,
            loop_count=stream.loop_count,
            frame_count=len(stream.image_blocks),
            comments=[comment.data for comment in stream.comments],
            plain_texts=[plain_text.data for plain_text in stream.plain_texts],
        )


@dataclass
class DecodedGif:
    """Composited frames plus metadata and any recovered data problems."""
    frames: List[DecodedFrame]
    metadata: GifMetadata
    warnings: List[TruncatedDataWarning] = field(default_factory=list)

    @property
    def width(self) -> int:
        return self.metadata.width

    @property
    def height(self) -> int:
        return self.metadata.height

    @property
    def loop_count(self) -> int:
        return self.metadata.loop_count

    @property
    def duration(self) -> float:
        """Total playback time of one loop in seconds."""
        return sum(frame.delay for frame in self.frames)

    def __len__(self) -> int:
        return len(self.frames)

    def __iter__(self) -> Iterator[DecodedFrame]:
        return iter(self.frames)


class GifDecoder:
    """Parse a GIF once and composite its frames on demand.

    Parsing happens in the constructor, so format errors surface immediately;
    pixel decoding waits until frames are requested.
    """

    def __init__(self, data: bytes, config: Optional[DecoderConfig] = None):
        self.config = config or DecoderConfig()
        self.stream: ParsedStream = ContainerParser(data).parse()
        self.metadata = GifMetadata.from_stream(self.stream)
        self._compositor = FrameCompositor(self.config)

    @property
    def warnings(self) -> List[TruncatedDataWarning]:
        """Warnings from the most recent composition."""
        return list(self._compositor.warnings)

    def iter_frames(self) -> Iterator[DecodedFrame]:
        return self._compositor.iter_frames(self.stream)

    def frames(self) -> List[DecodedFrame]:
        return self._compositor.compose(self.stream)

    def decode(self) -> DecodedGif:
        frames = self.frames()
        return DecodedGif(frames=frames, metadata=self.metadata, warnings=self.warnings)


def decode(data: bytes, config: Optional[DecoderConfig] = None) -> DecodedGif:
    """Decode a complete GIF byte buffer into composited frames.

    Raises:
        FormatError: The buffer is not a GIF.
        MalformedStreamError: The block structure is broken.
    """
    return GifDecoder(data, config).decode()


def read_metadata(data: bytes) -> GifMetadata:
    """Parse the container only and return its metadata."""
    return GifMetadata.from_stream(ContainerParser(data).parse())
