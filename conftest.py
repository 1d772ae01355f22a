"""Shared pytest fixtures."""

import pytest

from gif_builder import BLACK, WHITE, GifBuilder


@pytest.fixture
def black_white_gif() -> bytes:
    """Two 4x3 frames: all black (disposal 2, 0.5s) then all white (0.25s)."""
    builder = GifBuilder(4, 3, palette=[BLACK, WHITE])
    builder.add_loop(0)
    builder.add_control(disposal=2, delay=50)
    builder.add_image([[0] * 4] * 3)
    builder.add_control(disposal=1, delay=25)
    builder.add_image([[1] * 4] * 3)
    return builder.build()


@pytest.fixture
def gif_file(tmp_path, black_white_gif):
    path = tmp_path / "black_white.gif"
    path.write_bytes(black_white_gif)
    return path
