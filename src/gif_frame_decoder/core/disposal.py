"""Disposal methods and the canvas seeding rule for each of them."""

from enum import IntEnum
from typing import Callable, Dict, List, Tuple

import numpy as np


class DisposalMethod(IntEnum):
    """What happens to a frame's area before the next frame is drawn."""
    UNSPECIFIED = 0
    DO_NOT_DISPOSE = 1
    RESTORE_BACKGROUND = 2
    RESTORE_TO_PREVIOUS = 3

    @classmethod
    def from_value(cls, value: int) -> "DisposalMethod":
        """Map a raw 3-bit field to a method; reserved values act as 0."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNSPECIFIED


def _background_canvas(shape: Tuple[int, int], background: np.ndarray) -> np.ndarray:
    height, width = shape
    canvas = np.empty((height, width, 4), dtype=np.uint8)
    canvas[:, :] = background
    return canvas


def seed_unspecified(frames: List[np.ndarray], disposals: List[DisposalMethod],
                     shape: Tuple[int, int], background: np.ndarray) -> np.ndarray:
    """Blank canvas; every pixel not painted shows the background."""
    return _background_canvas(shape, background)


def seed_do_not_dispose(frames: List[np.ndarray], disposals: List[DisposalMethod],
                        shape: Tuple[int, int], background: np.ndarray) -> np.ndarray:
    """Start from the previous frame exactly as it was emitted."""
    return frames[-1].copy()


def seed_restore_background(frames: List[np.ndarray], disposals: List[DisposalMethod],
                            shape: Tuple[int, int], background: np.ndarray) -> np.ndarray:
    """Uniform background fill."""
    return _background_canvas(shape, background)


def seed_restore_to_previous(frames: List[np.ndarray], disposals: List[DisposalMethod],
                             shape: Tuple[int, int], background: np.ndarray) -> np.ndarray:
    """Start from the newest earlier frame that was not itself disposed."""
    for index in range(len(frames) - 1, -1, -1):
        if disposals[index] in (DisposalMethod.UNSPECIFIED, DisposalMethod.DO_NOT_DISPOSE):
            return frames[index].copy()
    return _background_canvas(shape, background)


SeedFunction = Callable[[List[np.ndarray], List[DisposalMethod], Tuple[int, int], np.ndarray], np.ndarray]

SEEDERS: Dict[DisposalMethod, SeedFunction] = {
    DisposalMethod.UNSPECIFIED: seed_unspecified,
    DisposalMethod.DO_NOT_DISPOSE: seed_do_not_dispose,
    DisposalMethod.RESTORE_BACKGROUND: seed_restore_background,
    DisposalMethod.RESTORE_TO_PREVIOUS: seed_restore_to_previous,
}


def seed_canvas(frames: List[np.ndarray], disposals: List[DisposalMethod],
                shape: Tuple[int, int], background: np.ndarray) -> np.ndarray:
    """Build the starting canvas for the next frame.

    The rule is chosen by the previous frame's disposal method; the first
    frame is seeded as if the previous one restored to background.
    """
    previous = disposals[-1] if disposals else DisposalMethod.RESTORE_BACKGROUND
    return SEEDERS[previous](frames, disposals, shape, background)
