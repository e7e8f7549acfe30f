# lsbframe/errors.py

"""
Typed failures raised by the codec and its image adapters.

Every error is a ValueError subclass, so callers that only care about
"this image/payload is unusable" can keep catching ValueError.
"""


class StegoError(ValueError):
    """Base class for all lsbframe errors."""


class CapacityExceeded(StegoError):
    """
    The frame (length field + payload) needs more slots than the buffer has.

    Attributes:
        needed    : slots (bits) the frame requires
        available : slots (bits) the buffer provides
    """

    def __init__(self, needed: int, available: int, reason: str = ""):
        self.needed    = needed
        self.available = available
        message = (
            f"Payload too large. "
            f"Needs {needed} bits, buffer holds {available} bits "
            f"({self.capacity_bytes} usable bytes)."
        )
        if reason:
            message = f"{reason} {message}"
        super().__init__(message)

    @property
    def requested_bytes(self) -> int:
        return max(self.needed // 8 - 4, 0)

    @property
    def capacity_bytes(self) -> int:
        return max(self.available // 8 - 4, 0)


class TruncatedBuffer(StegoError):
    """The buffer is too small (or misaligned) to hold a length field."""

    def __init__(self, length: int, reason: str = ""):
        self.length = length
        super().__init__(
            reason or
            f"Buffer of {length} samples is too small to hold a frame "
            f"(at least 128 samples / 32 pixels required)."
        )


class CorruptPayload(StegoError):
    """The embedded length field claims more data than the buffer holds."""

    def __init__(self, declared_length: int, available_slots: int):
        self.declared_length = declared_length
        self.available_slots = available_slots
        super().__init__(
            f"Length field declares {declared_length} bytes but the buffer "
            f"only has {available_slots} slots. The image may not contain a "
            f"hidden payload, or it was altered after embedding."
        )


class LossyFormatError(StegoError):
    """A lossy output format was requested; it would destroy embedded bits."""


class UnsupportedImageError(StegoError):
    """The supplied bytes could not be decoded as an image."""
