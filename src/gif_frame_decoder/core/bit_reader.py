"""Read variable-width codes from a packed, LSB-first bit sequence."""


class BitReader:
    """Random-access reader over a byte buffer viewed as a bit sequence.

    Bit ``n`` of the sequence is bit ``n % 8`` of byte ``n // 8``, which is the
    packing GIF uses for its LZW codes.
    """

    def __init__(self, data: bytes):
        self.data = bytes(data)
        self.bit_length = len(self.data) * 8

    def remaining(self, bit_offset: int) -> int:
        """Number of bits left from ``bit_offset`` to the end."""
        return max(0, self.bit_length - bit_offset)

    def read(self, bit_offset: int, width: int) -> int:
        """Return the unsigned ``width``-bit integer starting at ``bit_offset``.

        Bits past the end of the buffer read as zero.
        """
        if width <= 0:
            return 0
        if bit_offset < 0:
            raise ValueError(f"Negative bit offset: {bit_offset}")

        byte_index = bit_offset >> 3
        shift = bit_offset & 7
        n_bytes = (shift + width + 7) >> 3
        chunk = self.data[byte_index:byte_index + n_bytes]
        value = int.from_bytes(chunk, "little") >> shift
        return value & ((1 << width) - 1)
