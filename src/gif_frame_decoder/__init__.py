"""GIF Frame Decoder - Decode GIF87a/89a streams into composited RGBA frames."""

__version__ = "0.1.0"

from .config import DecoderConfig
from .core.decoder import DecodedGif, GifDecoder, GifMetadata, decode, read_metadata
from .core.errors import FormatError, GifDecodeError, MalformedStreamError, TruncatedDataWarning
from .core.frame_compositor import DecodedFrame

__all__ = [
    "DecoderConfig",
    "DecodedFrame",
    "DecodedGif",
    "GifDecoder",
    "GifMetadata",
    "decode",
    "read_metadata",
    "FormatError",
    "GifDecodeError",
    "MalformedStreamError",
    "TruncatedDataWarning",
]
