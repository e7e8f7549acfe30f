"""
Decoder for length-prefixed LSB frames.

decode() is the byte-level codec: it either returns the complete payload
or raises one of the typed errors in lsbframe.errors. Text interpretation
is a separate, explicitly fallible step (decode_text).

extract() is the file-level entry point. It never raises; every failure
comes back as a structured DecodeResult.

Failure philosophy:
    No silent corruption. No partial payloads. The length field is never
    trusted without checking it against the slots actually present.
"""

import logging
from pathlib import Path

from lsbframe.bitstream import BitReader
from lsbframe.errors import CorruptPayload, StegoError, TruncatedBuffer
from lsbframe.format_handler import classify_bytes
from lsbframe.frame import (
    LENGTH_FIELD_BYTES,
    MIN_BUFFER_LENGTH,
    available_slots,
    required_slots,
    unpack_length,
)
from lsbframe.image_io import decode_image_file
from lsbframe.utils import alignment_problem, as_samples, bytes_to_text

logger = logging.getLogger(__name__)


def decode(buffer, width: int | None = None, height: int | None = None) -> bytes:
    """
    Extract the hidden payload from an RGBA pixel buffer.

    Args:
        buffer : RGBA samples — bytes-like, or a uint8 ndarray of any shape
        width  : optional image width, checked against the buffer length
        height : optional image height, checked against the buffer length

    Returns:
        The payload bytes, exactly as long as the embedded length field says.

    Raises:
        TruncatedBuffer: if the buffer is not whole RGBA pixels, or has fewer
                         than 32 pixels (no room for the length field).
        CorruptPayload:  if the length field claims more bytes than the
                         remaining slots can carry.
    """
    samples = as_samples(buffer)

    problem = alignment_problem(samples.size, width, height)
    if problem:
        raise TruncatedBuffer(samples.size, reason=problem)
    if samples.size < MIN_BUFFER_LENGTH:
        raise TruncatedBuffer(samples.size)

    reader = BitReader(samples)
    length = unpack_length(reader.read_bytes(LENGTH_FIELD_BYTES))

    slots = available_slots(samples.size)
    if required_slots(length) > slots:
        raise CorruptPayload(length, slots)

    return reader.read_bytes(length)


def decode_text(
    buffer,
    width  : int | None = None,
    height : int | None = None,
    errors : str = "strict",
) -> str:
    """
    Extract the hidden payload and interpret it as UTF-8.

    Raises:
        UnicodeDecodeError: if errors="strict" and the payload is not UTF-8,
                            plus everything decode() raises.
    """
    return bytes_to_text(decode(buffer, width, height), errors=errors)


class DecodeResult:
    """
    Structured output from the file-level decoder.

    Attributes:
        success        : True if a payload was successfully extracted
        payload        : the raw payload bytes (b"" if none)
        message        : payload as text, or None if it is not valid UTF-8
        format_detected: the actual detected format string
        error          : human-readable error description if success=False
        warnings       : list of non-fatal warnings
    """

    def __init__(
        self,
        success         : bool,
        payload         : bytes,
        format_detected : str,
        error           : str = "",
        warnings        : list[str] | None = None,
    ):
        self.success         = success
        self.payload         = payload
        self.format_detected = format_detected
        self.error           = error
        self.warnings        = warnings or []

    @property
    def message(self) -> str | None:
        try:
            return bytes_to_text(self.payload)
        except UnicodeDecodeError:
            return None

    def __str__(self):
        if self.success:
            shown = self.message if self.message is not None else f"<{len(self.payload)} binary bytes>"
            return (
                f"[DECODE SUCCESS]\n"
                f"Format  : {self.format_detected}\n"
                f"Payload : {shown!r}\n"
                + (f"Warnings: {self.warnings}" if self.warnings else "")
            )
        return (
            f"[DECODE FAILED]\n"
            f"Format  : {self.format_detected}\n"
            f"Error   : {self.error}\n"
            + (f"Warnings: {self.warnings}" if self.warnings else "")
        )


def extract(image_path: str) -> DecodeResult:
    """
    Extract a hidden payload from an image file.

    Args:
        image_path: path to the stego image (any format Pillow reads)

    Returns:
        DecodeResult — never raises, all errors are structured.
    """
    p = Path(image_path)

    if not p.exists():
        return DecodeResult(
            success         = False,
            payload         = b"",
            format_detected = "unknown",
            error           = f"File not found: {image_path}",
        )

    return extract_bytes(p.read_bytes(), filename=p.name)


def extract_bytes(data: bytes, filename: str | None = None) -> DecodeResult:
    """
    Extract a hidden payload from in-memory image file bytes.

    Args:
        data     : the image file contents
        filename : optional original name, used for mismatch warnings

    Returns:
        DecodeResult — never raises, all errors are structured.
    """
    warnings   = []
    info       = classify_bytes(data, filename=filename)
    format_str = info.actual_format.value

    if info.extension_mismatch:
        warnings.append(
            f"Extension '{Path(filename).suffix}' does not match detected format "
            f"'{format_str}'. The file may have been renamed or converted."
        )
    if info.is_supported and not info.preserves_lsb:
        warnings.append(
            f"'{format_str}' does not preserve pixel LSBs. If this image was "
            f"re-saved after embedding, the hidden payload is likely destroyed."
        )

    try:
        pixels, width, height = decode_image_file(data)
        payload = decode(pixels, width, height)
    except (TruncatedBuffer, CorruptPayload):
        logger.info("[DECODE] No valid frame in %s", filename or "upload")
        return DecodeResult(
            success         = False,
            payload         = b"",
            format_detected = format_str,
            error           = (
                "No hidden payload found in this image. "
                "The image may not contain an embedded frame, "
                "or it was modified after embedding."
            ),
            warnings        = warnings,
        )
    except StegoError as e:
        return DecodeResult(
            success         = False,
            payload         = b"",
            format_detected = format_str,
            error           = str(e),
            warnings        = warnings,
        )

    logger.info("[DECODE] Extracted %d payload bytes from %s", len(payload), filename or "upload")
    return DecodeResult(
        success         = True,
        payload         = payload,
        format_detected = format_str,
        warnings        = warnings,
    )
