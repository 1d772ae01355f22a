"""Exceptions and warnings raised while decoding GIF streams."""


class GifDecodeError(ValueError):
    """Base class for fatal decode errors."""


class FormatError(GifDecodeError):
    """The buffer does not start with a GIF signature."""


class MalformedStreamError(GifDecodeError):
    """The block structure is inconsistent or runs past the end of data."""

    def __init__(self, message: str, offset: int = -1):
        if offset >= 0:
            message = f"{message} (at byte {offset})"
        super().__init__(message)
        self.offset = offset


class TruncatedDataWarning(UserWarning):
    """Recoverable pixel data problem in a single frame.

    These are collected on the decode result rather than raised, so a caller
    can decide whether imperfect output is acceptable.
    """

    def __init__(self, message: str, frame_index: int = -1):
        super().__init__(message)
        self.frame_index = frame_index
