# lsbframe/frame.py

"""
Frame layout shared by the encoder and decoder.

A frame is a 32-bit little-endian payload length followed by the payload
bytes. Every bit of the frame lands in one slot: the LSB of channel 0 of
one RGBA pixel, consumed in buffer order with no skipping.

    slot 0  .. 31           : length field, LSB-first per byte
    slot 32 .. 32 + 8*L - 1 : payload bytes, LSB-first per byte
"""

import struct

CHANNELS_PER_PIXEL = 4
DESIGNATED_CHANNEL = 0

LENGTH_FIELD_BYTES = 4
LENGTH_FIELD_BITS  = LENGTH_FIELD_BYTES * 8
MAX_PAYLOAD_BYTES  = 2 ** 32 - 1

# Smallest buffer that can carry a frame at all (empty payload)
MIN_BUFFER_LENGTH  = LENGTH_FIELD_BITS * CHANNELS_PER_PIXEL

_LENGTH_STRUCT = struct.Struct("<I")


def available_slots(buffer_length: int) -> int:
    """Number of slots (whole pixels) in a buffer of the given sample count."""
    return buffer_length // CHANNELS_PER_PIXEL


def capacity(buffer_length: int) -> int:
    """
    Maximum payload size in bytes for a buffer of the given sample count.

    Negative when the buffer cannot even hold the length field.
    """
    return available_slots(buffer_length) // 8 - LENGTH_FIELD_BYTES


def required_slots(payload_length: int) -> int:
    """Slots consumed by a frame carrying payload_length bytes."""
    return LENGTH_FIELD_BITS + payload_length * 8


def pack_length(payload_length: int) -> bytes:
    return _LENGTH_STRUCT.pack(payload_length)


def unpack_length(field: bytes) -> int:
    return _LENGTH_STRUCT.unpack(field)[0]
