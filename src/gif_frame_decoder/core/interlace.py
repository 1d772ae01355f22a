"""Four-pass interlaced row ordering."""

import numpy as np

# (first row, step) for each pass, in storage order
INTERLACE_PASSES = ((0, 8), (4, 8), (2, 4), (1, 2))


def interlaced_row_order(height: int) -> np.ndarray:
    """Destination row for each stored row of an interlaced image.

    Stored row ``i`` belongs at display row ``interlaced_row_order(h)[i]``.
    """
    return np.concatenate([
        np.arange(start, height, step, dtype=np.intp) for start, step in INTERLACE_PASSES
    ])


def deinterlace(decoded: np.ndarray, image_width: int) -> np.ndarray:
    """Reorder a flat buffer of interlaced rows into top-to-bottom order."""
    decoded = np.asarray(decoded)
    if image_width <= 0 or len(decoded) == 0:
        return decoded.copy()
    height = len(decoded) // image_width
    rows = decoded[:height * image_width].reshape(height, image_width)

    reordered = np.empty_like(rows)
    reordered[interlaced_row_order(height)] = rows
    return reordered.reshape(-1)


def interlace(pixels: np.ndarray, image_width: int) -> np.ndarray:
    """Inverse of :func:`deinterlace`: rows in four-pass storage order."""
    pixels = np.asarray(pixels)
    if image_width <= 0 or len(pixels) == 0:
        return pixels.copy()
    height = len(pixels) // image_width
    rows = pixels[:height * image_width].reshape(height, image_width)
    return rows[interlaced_row_order(height)].reshape(-1)
