import logging

from lsbframe.bitstream import BitWriter
from lsbframe.errors import CapacityExceeded
from lsbframe.frame import MAX_PAYLOAD_BYTES, available_slots, pack_length, required_slots
from lsbframe.format_handler import resolve_output_format
from lsbframe.image_io import (
    decode_image_file,
    encode_pixels_to_lossless_format,
    load_image,
    save_image,
)
from lsbframe.utils import (
    alignment_problem,
    as_samples,
    calculate_capacity,
    calculate_psnr,
    like_input,
    text_to_bytes,
)

logger = logging.getLogger(__name__)


def encode(buffer, payload: bytes, width: int | None = None, height: int | None = None):
    """
    Embed a byte payload into an RGBA pixel buffer.

    The frame (u32 little-endian length, then the payload) is written one
    bit per pixel into the LSB of channel 0, LSB-first within each byte.
    Nothing past the last frame slot is touched, and the caller's buffer
    is never modified.

    Args:
        buffer  : RGBA samples — bytes-like, or a uint8 ndarray of any shape
        payload : the bytes to hide
        width   : optional image width, checked against the buffer length
        height  : optional image height, checked against the buffer length

    Returns:
        A new buffer of the same kind as the input: bytes for bytes-like
        input, an ndarray of the same shape for ndarray input.

    Raises:
        CapacityExceeded: if the buffer is not whole RGBA pixels, or the
                          frame needs more slots than the buffer has.
    """
    payload = bytes(payload)
    samples = as_samples(buffer)
    slots   = available_slots(samples.size)
    needed  = required_slots(len(payload))

    problem = alignment_problem(samples.size, width, height)
    if problem:
        raise CapacityExceeded(needed, slots, reason=problem)
    if needed > slots or len(payload) > MAX_PAYLOAD_BYTES:
        raise CapacityExceeded(needed, slots)

    out    = samples.copy()
    writer = BitWriter(out)
    writer.write_bytes(pack_length(len(payload)))
    writer.write_bytes(payload)

    return like_input(buffer, out)


def encode_text(buffer, text: str, width: int | None = None, height: int | None = None):
    """Embed a string as its UTF-8 bytes. See encode()."""
    return encode(buffer, text_to_bytes(text), width, height)


def embed(image_path: str, message: str | bytes, output_path: str) -> dict:
    """
    Embed a message (text or raw bytes) into an image file.

    The cover is loaded as RGBA regardless of its own format; JPEG covers
    are fine because the output is always written losslessly.

    Args:
        image_path  : path to the cover image
        message     : text (UTF-8 encoded here) or bytes to hide
        output_path : where to save the stego image; a lossy extension
                      is redirected to PNG

    Returns:
        A dict with keys:
            psnr          : float, quality of stego image vs original
            bits_used     : int, slots consumed including the length field
            capacity      : dict from calculate_capacity()
            payload_pct   : float, percentage of slots used
            output_path   : str, the file actually written

    Raises:
        CapacityExceeded: if the message is too large for the image
    """
    payload  = text_to_bytes(message) if isinstance(message, str) else bytes(message)
    original = load_image(image_path)
    capacity = calculate_capacity(original.size)

    stego = encode(original, payload)

    psnr         = calculate_psnr(original, stego)
    written_path = save_image(stego, output_path)

    bits_used   = required_slots(len(payload))
    payload_pct = (bits_used / capacity["total_slots"]) * 100

    logger.info("[EMBED] Embedded %d payload bytes into %s", len(payload), written_path)
    logger.info("[EMBED] PSNR: %.2f dB", psnr)
    logger.info("[EMBED] Payload: %.2f%% of capacity", payload_pct)

    return {
        "psnr"        : psnr,
        "bits_used"   : bits_used,
        "capacity"    : capacity,
        "payload_pct" : payload_pct,
        "output_path" : written_path,
    }



def embed_bytes(data: bytes, message: str | bytes, fmt: str = "PNG") -> tuple[bytes, dict]:
    """
    In-memory variant of embed(): image file bytes in, stego file bytes out.

    Raises:
        LossyFormatError: if fmt is not a lossless format
        UnsupportedImageError: if data is not a readable image
        CapacityExceeded: if the message is too large for the image
    """
    target  = resolve_output_format(fmt)
    payload = text_to_bytes(message) if isinstance(message, str) else bytes(message)

    pixels, width, height = decode_image_file(data)
    stego = encode(pixels, payload, width, height)
    image = encode_pixels_to_lossless_format(stego, width, height, target.value)

    capacity  = calculate_capacity(len(pixels))
    bits_used = required_slots(len(payload))

    logger.info(
        "[EMBED] Embedded %d payload bytes into %dx%d %s",
        len(payload), width, height, target.value,
    )

    return image, {
        "width"       : width,
        "height"      : height,
        "format"      : target.value,
        "bits_used"   : bits_used,
        "capacity"    : capacity,
        "payload_pct" : (bits_used / capacity["total_slots"]) * 100,
    }
