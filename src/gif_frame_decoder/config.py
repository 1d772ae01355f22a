"""Decoder configuration."""

import os
from dataclasses import dataclass


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class DecoderConfig:
    """Tolerance switches and timing defaults for decoding.

    Attributes:
        early_reset: Reset the LZW dictionary when it fills up and the next
            code is not a clear code. Some encoders rely on this; disable it
            to freeze the dictionary at 4096 entries instead.
        strict_codes: Raise on out-of-range LZW codes instead of skipping them.
        default_delay: Frame delay in seconds when no graphic control
            extension precedes the image.
        minimum_delay: Delay used when the declared delay is zero.
    """
    early_reset: bool = True
    strict_codes: bool = False
    default_delay: float = 1.0 / 60.0
    minimum_delay: float = 0.1

    @classmethod
    def from_env(cls) -> "DecoderConfig":
        """Build a config from GIF_DECODER_* environment variables."""
        return cls(
            early_reset=_env_flag("GIF_DECODER_EARLY_RESET", True),
            strict_codes=_env_flag("GIF_DECODER_STRICT_CODES", False),
        )
