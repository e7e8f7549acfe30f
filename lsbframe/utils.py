import numpy as np

from lsbframe.frame import (
    CHANNELS_PER_PIXEL,
    LENGTH_FIELD_BYTES,
    available_slots,
    capacity,
)


def as_samples(buffer) -> np.ndarray:
    """
    Return a flat uint8 view of a pixel buffer.

    Accepts bytes, bytearray, memoryview or a uint8 ndarray of any shape.
    The view may be read-only; callers that write must copy first.
    """
    if isinstance(buffer, np.ndarray):
        if buffer.dtype != np.uint8:
            raise TypeError(f"Pixel buffer must be uint8, got {buffer.dtype}.")
        return np.ascontiguousarray(buffer).reshape(-1)
    return np.frombuffer(buffer, dtype=np.uint8)


def like_input(original, samples: np.ndarray):
    """Give samples the same kind (and shape) as the caller's buffer."""
    if isinstance(original, np.ndarray):
        return samples.reshape(original.shape)
    return samples.tobytes()


def alignment_problem(length: int, width: int | None = None, height: int | None = None) -> str:
    """
    Describe why a buffer of `length` samples is not a valid RGBA buffer,
    or return an empty string if it is.
    """
    if length % CHANNELS_PER_PIXEL != 0:
        return (
            f"Buffer length {length} is not a multiple of "
            f"{CHANNELS_PER_PIXEL} (RGBA samples per pixel)."
        )
    if width is not None and height is not None:
        expected = width * height * CHANNELS_PER_PIXEL
        if expected != length:
            return (
                f"Buffer length {length} does not match "
                f"{width}x{height} RGBA pixels ({expected} samples)."
            )
    return ""


def text_to_bytes(text: str) -> bytes:
    return text.encode("utf-8")


def bytes_to_text(payload: bytes, errors: str = "strict") -> str:
    """
    Interpret a decoded payload as UTF-8.

    Raises:
        UnicodeDecodeError: if errors="strict" and the bytes are not UTF-8.
    """
    return payload.decode("utf-8", errors=errors)


def calculate_capacity(buffer_length: int) -> dict:
    """
    Calculate the embedding capacity of a pixel buffer.

    Returns a dict with:
        total_slots    : one slot per whole pixel
        total_bytes    : total_slots // 8
        usable_bytes   : payload bytes that fit after the length field (>= 0)
        fits_frame     : whether even an empty payload can be embedded
        note           : reminder that Unicode chars may use 2–4 bytes each
    """
    slots = available_slots(buffer_length)
    cap   = capacity(buffer_length)

    return {
        "total_slots" : slots,
        "total_bytes" : slots // 8,
        "usable_bytes": max(cap, 0),
        "fits_frame"  : cap >= 0,
        "note"        : (
            f"{LENGTH_FIELD_BYTES} bytes are reserved for the length field. "
            f"Unicode characters may require 2–4 bytes each."
        ),
    }


def calculate_psnr(original: np.ndarray, modified: np.ndarray) -> float:
    """
    Calculate Peak Signal-to-Noise Ratio between two pixel buffers.
    Higher is better. Single-channel LSB embedding stays well above 50 dB.
    Returns float('inf') if the buffers are identical.
    """
    original = np.asarray(original).astype(np.float64)
    modified = np.asarray(modified).astype(np.float64)

    mse = np.mean((original - modified) ** 2)
    if mse == 0:
        return float("inf")

    max_pixel = 255.0
    return float(20 * np.log10(max_pixel / np.sqrt(mse)))
