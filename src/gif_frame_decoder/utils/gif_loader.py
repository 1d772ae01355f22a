"""Utility for loading GIF files and saving decoded frames."""

import numpy as np
from PIL import Image
from pathlib import Path
from typing import List, Optional, Union
import logging

from gif_frame_decoder.config import DecoderConfig
from gif_frame_decoder.core.decoder import DecodedGif, decode

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def read_gif_bytes(gif_path: PathLike) -> bytes:
    """Read a whole GIF file into memory."""
    return Path(gif_path).read_bytes()


def save_frames(frames: List[np.ndarray], output_dir: PathLike, prefix: str = "frame") -> List[Path]:
    """Write RGBA frames as numbered PNG files.

    Args:
        frames: Frames of shape (height, width, 4)
        output_dir: Directory to write into (created if missing)
        prefix: File name prefix

    Returns:
        Paths of the written files, in frame order
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    width = max(3, len(str(len(frames) - 1)))
    paths = []
    for i, frame in enumerate(frames):
        path = output_dir / f"{prefix}_{i:0{width}d}.png"
        Image.fromarray(np.ascontiguousarray(frame)).save(path)
        paths.append(path)

    logger.info(f"Saved {len(paths)} frames to {output_dir}")
    return paths


class GifLoader:
    """Load frames from GIF files."""

    def __init__(self, config: Optional[DecoderConfig] = None):
        self.config = config or DecoderConfig()

    def load(self, gif_path: PathLike) -> DecodedGif:
        """Decode a GIF file into frames, delays and metadata."""
        try:
            result = decode(read_gif_bytes(gif_path), self.config)
        except Exception as e:
            logger.error(f"Failed to load GIF {gif_path}: {e}")
            raise

        logger.info(f"Loaded {len(result.frames)} frames from {gif_path}")
        return result

    def load_gif(self, gif_path: PathLike) -> List[np.ndarray]:
        """Load all frames from a GIF file.

        Args:
            gif_path: Path to the GIF file

        Returns:
            List of frames as numpy arrays (RGBA format)
        """
        return [frame.pixels for frame in self.load(gif_path).frames]
