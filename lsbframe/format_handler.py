# lsbframe/format_handler.py

import io
import struct
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from lsbframe.errors import LossyFormatError


class ImageFormat(Enum):
    PNG      = "PNG"
    JPEG     = "JPEG"
    BMP      = "BMP"
    TIFF     = "TIFF"
    WEBP     = "WEBP"
    GIF      = "GIF"
    UNKNOWN  = "UNKNOWN"


class CompressionType(Enum):
    LOSSLESS = "LOSSLESS"
    LOSSY    = "LOSSY"
    # Lossless container, but quantizes RGBA to a palette on write
    PALETTE  = "PALETTE"
    UNKNOWN  = "UNKNOWN"


@dataclass
class FormatInfo:
    """
    Format description for an image, derived from its bytes.

    Attributes:
        actual_format      : detected format from magic bytes
        compression        : LOSSLESS, LOSSY or PALETTE
        width              : image width in pixels (0 if unknown)
        height             : image height in pixels (0 if unknown)
        is_supported       : whether the bytes can be decoded to RGBA at all
        preserves_lsb      : whether hidden bits survive in this format
        extension_mismatch : True if file extension disagrees with actual format
        notes              : human-readable format summary
    """
    actual_format      : ImageFormat
    compression        : CompressionType
    width              : int
    height             : int
    is_supported       : bool
    preserves_lsb      : bool
    extension_mismatch : bool
    notes              : str


# ---------------------------------------------------------------------------
# Magic byte signatures for format detection
# These are read from the actual data — never trust the extension alone
# ---------------------------------------------------------------------------

MAGIC_PNG  = b'\x89PNG\r\n\x1a\n'
MAGIC_JPEG = b'\xff\xd8\xff'
MAGIC_BMP  = b'BM'
MAGIC_GIF  = (b'GIF87a', b'GIF89a')
MAGIC_WEBP_RIFF = b'RIFF'
MAGIC_WEBP_WEBP = b'WEBP'  # at offset 8

# TIFF has two valid byte orders
MAGIC_TIFF_LE = b'II\x2a\x00'  # little-endian
MAGIC_TIFF_BE = b'MM\x00\x2a'  # big-endian

FORMAT_EXTENSIONS = {
    ImageFormat.PNG  : {".png"},
    ImageFormat.JPEG : {".jpg", ".jpeg"},
    ImageFormat.BMP  : {".bmp"},
    ImageFormat.TIFF : {".tiff", ".tif"},
    ImageFormat.WEBP : {".webp"},
    ImageFormat.GIF  : {".gif"},
}

# Output formats that keep every RGBA sample bit-exact
LOSSLESS_OUTPUTS = {
    ImageFormat.PNG,
    ImageFormat.BMP,
    ImageFormat.TIFF,
    ImageFormat.WEBP,   # written with lossless=True
}

_OUTPUT_ALIASES = {
    "PNG" : ImageFormat.PNG,
    "BMP" : ImageFormat.BMP,
    "TIF" : ImageFormat.TIFF,
    "TIFF": ImageFormat.TIFF,
    "WEBP": ImageFormat.WEBP,
    "JPG" : ImageFormat.JPEG,
    "JPEG": ImageFormat.JPEG,
    "GIF" : ImageFormat.GIF,
}


def detect_format(magic: bytes) -> ImageFormat:
    """
    Identify image format from magic bytes.
    Order matters — check more specific signatures first.
    """
    if magic[:8] == MAGIC_PNG:
        return ImageFormat.PNG
    if magic[:3] == MAGIC_JPEG:
        return ImageFormat.JPEG
    if magic[:4] == MAGIC_WEBP_RIFF and magic[8:12] == MAGIC_WEBP_WEBP:
        return ImageFormat.WEBP
    if magic[:4] in (MAGIC_TIFF_LE, MAGIC_TIFF_BE):
        return ImageFormat.TIFF
    if magic[:6] in MAGIC_GIF:
        return ImageFormat.GIF
    if magic[:2] == MAGIC_BMP:
        return ImageFormat.BMP
    return ImageFormat.UNKNOWN


def _is_webp_lossy(data: bytes) -> bool:
    """
    Walk the RIFF chunks after the 12-byte header until the image chunk:
        'VP8 ' (with trailing space) → lossy
        'VP8L'                       → lossless
    'VP8X', 'ALPH', 'ICCP' and friends are skipped by their declared size.
    A file with no image chunk counts as lossy.
    """
    offset = 12
    while offset + 8 <= len(data):
        chunk_type = data[offset:offset + 4]
        if chunk_type == b'VP8L':
            return False
        if chunk_type == b'VP8 ':
            return True
        size, = struct.unpack("<I", data[offset + 4:offset + 8])
        # chunk payloads are padded to an even length
        offset += 8 + size + (size & 1)
    return True


def _read_dimensions(data: bytes, fmt: ImageFormat) -> tuple[int, int]:
    """
    Read (width, height) from header bytes where the layout is fixed,
    falling back to Pillow. Returns (0, 0) on any error.
    """
    try:
        if fmt == ImageFormat.PNG:
            # PNG: width at bytes 16-19, height at 20-23 (big-endian)
            return struct.unpack(">II", data[16:24])

        if fmt == ImageFormat.BMP:
            # BMP: width at bytes 18-21, height at 22-25 (little-endian, signed)
            w, h = struct.unpack("<ii", data[18:26])
            return abs(w), abs(h)

        if fmt == ImageFormat.UNKNOWN:
            return 0, 0

        from PIL import Image
        with Image.open(io.BytesIO(data)) as img:
            return img.size

    except Exception:
        return 0, 0


def _compression_for(fmt: ImageFormat, data: bytes) -> CompressionType:
    if fmt == ImageFormat.JPEG:
        return CompressionType.LOSSY
    if fmt == ImageFormat.WEBP:
        return CompressionType.LOSSY if _is_webp_lossy(data) else CompressionType.LOSSLESS
    if fmt == ImageFormat.GIF:
        return CompressionType.PALETTE
    if fmt in (ImageFormat.PNG, ImageFormat.BMP, ImageFormat.TIFF):
        return CompressionType.LOSSLESS
    return CompressionType.UNKNOWN


def classify_bytes(data: bytes, filename: str | None = None) -> FormatInfo:
    """
    Classify an image completely from its bytes.

    Args:
        data     : raw file contents
        filename : optional original name, used only to flag a
                   renamed/mislabelled file

    Returns:
        FormatInfo with all fields populated from actual content.
    """
    fmt         = detect_format(data[:12])
    compression = _compression_for(fmt, data)

    suffix = Path(filename).suffix.lower() if filename else ""
    expected_exts = FORMAT_EXTENSIONS.get(fmt, set())
    extension_mismatch = bool(suffix) and bool(expected_exts) and suffix not in expected_exts

    is_supported  = fmt != ImageFormat.UNKNOWN
    preserves_lsb = compression == CompressionType.LOSSLESS
    width, height = _read_dimensions(data, fmt)

    notes_parts = [
        f"Format: {fmt.value}",
        f"Compression: {compression.value}",
        f"Size: {width}x{height}",
    ]
    if not preserves_lsb and is_supported:
        notes_parts.append("Hidden bits do not survive this format.")
    if extension_mismatch:
        notes_parts.append(
            f"WARNING: Extension '{suffix}' does not match detected format '{fmt.value}'."
        )
    if not is_supported:
        notes_parts.append("Not a recognized image format.")

    return FormatInfo(
        actual_format      = fmt,
        compression        = compression,
        width              = width,
        height             = height,
        is_supported       = is_supported,
        preserves_lsb      = preserves_lsb,
        extension_mismatch = extension_mismatch,
        notes              = " | ".join(notes_parts),
    )


def classify(path: str) -> FormatInfo:
    """
    Classify an image file from its bytes.

    Raises:
        FileNotFoundError: if the file does not exist.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return classify_bytes(p.read_bytes(), filename=p.name)


def resolve_output_format(name: str) -> ImageFormat:
    """
    Map a user-facing format name ("png", ".tif", "WebP") to an output format.

    Raises:
        LossyFormatError: for JPEG and other formats that would destroy
                          the embedded bits on write.
        ValueError: for names that are not image formats at all.
    """
    key = name.strip().lstrip(".").upper()
    fmt = _OUTPUT_ALIASES.get(key)
    if fmt is None:
        raise ValueError(
            f"Unknown output format '{name}'. "
            f"Supported: {sorted(f.value for f in LOSSLESS_OUTPUTS)}"
        )
    if fmt not in LOSSLESS_OUTPUTS:
        raise LossyFormatError(
            f"Cannot write '{fmt.value}': it does not preserve pixel LSBs and "
            f"would destroy the hidden payload. "
            f"Use one of {sorted(f.value for f in LOSSLESS_OUTPUTS)}."
        )
    return fmt


def extension_for(fmt: ImageFormat) -> str:
    return {
        ImageFormat.PNG : ".png",
        ImageFormat.BMP : ".bmp",
        ImageFormat.TIFF: ".tiff",
        ImageFormat.WEBP: ".webp",
    }.get(fmt, ".png")
