# lsbframe/bitstream.py

"""
Slot cursors over a flat uint8 sample array.

BitWriter and BitReader share the same view of the buffer: one slot per
pixel, carried in the LSB of the designated channel. Bytes are always
written and read LSB-first (bit 0 first, bit 7 last).
"""

import numpy as np

from lsbframe.frame import CHANNELS_PER_PIXEL, DESIGNATED_CHANNEL, available_slots


def slot_view(samples: np.ndarray) -> np.ndarray:
    """
    Strided view of the designated channel of every whole pixel.
    Writes through the view modify the underlying samples.
    """
    end = available_slots(samples.size) * CHANNELS_PER_PIXEL
    return samples[DESIGNATED_CHANNEL:end:CHANNELS_PER_PIXEL]


class _SlotCursor:
    def __init__(self, samples: np.ndarray):
        if samples.dtype != np.uint8 or samples.ndim != 1:
            raise TypeError("Slot cursors require a flat uint8 array.")
        self._slots = slot_view(samples)
        self.cursor = 0

    @property
    def total(self) -> int:
        return int(self._slots.size)

    @property
    def remaining(self) -> int:
        return self.total - self.cursor

    def _claim(self, n_bits: int) -> slice:
        end = self.cursor + n_bits
        if end > self.total:
            raise IndexError(
                f"Slot overrun: need slots {self.cursor}..{end - 1}, "
                f"buffer has {self.total}."
            )
        span = slice(self.cursor, end)
        self.cursor = end
        return span


class BitWriter(_SlotCursor):
    """Writes bytes into consecutive slots, starting at slot 0."""

    def write_bytes(self, data: bytes) -> None:
        bits = np.unpackbits(np.frombuffer(data, dtype=np.uint8), bitorder="little")
        span = self._claim(bits.size)
        # Clear the LSB and set it to the frame bit
        self._slots[span] = (self._slots[span] & 0xFE) | bits


class BitReader(_SlotCursor):
    """Reads bytes back from consecutive slots, starting at slot 0."""

    def read_bytes(self, n: int) -> bytes:
        span = self._claim(n * 8)
        bits = self._slots[span] & 1
        return np.packbits(bits, bitorder="little").tobytes()
