"""
Image file adapter around the pixel-buffer codec.

Every image is normalised to RGBA (4 samples per pixel) on the way in,
and written back only in formats that keep every sample bit-exact.
"""

import io
import logging
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from lsbframe.errors import UnsupportedImageError
from lsbframe.format_handler import (
    ImageFormat,
    extension_for,
    resolve_output_format,
)
from lsbframe.utils import alignment_problem, as_samples

logger = logging.getLogger(__name__)


def decode_image_file(data: bytes) -> tuple[bytes, int, int]:
    """
    Decode image file bytes into an RGBA pixel buffer.

    Returns:
        (pixels, width, height) where len(pixels) == width * height * 4.

    Raises:
        UnsupportedImageError: if Pillow cannot read the data, or the
            header declares more pixels than Pillow's bomb limit allows.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            rgba = img.convert("RGBA")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise UnsupportedImageError(f"Could not decode image: {e}") from e

    width, height = rgba.size
    return rgba.tobytes(), width, height


def encode_pixels_to_lossless_format(
    pixels,
    width  : int,
    height : int,
    fmt    : str = "PNG",
) -> bytes:
    """
    Encode an RGBA pixel buffer to image file bytes.

    Only lossless targets are accepted — a lossy re-encode after
    embedding destroys the hidden bits.

    Raises:
        LossyFormatError: if fmt names a lossy or palette format.
        ValueError: if the buffer does not match width x height RGBA.
    """
    target  = resolve_output_format(fmt)
    samples = as_samples(pixels)

    problem = alignment_problem(samples.size, width, height)
    if problem:
        raise ValueError(problem)

    img = Image.frombytes("RGBA", (width, height), samples.tobytes())
    out = io.BytesIO()

    if target == ImageFormat.WEBP:
        # exact=True keeps RGB under fully transparent pixels
        img.save(out, format="WEBP", lossless=True, exact=True)
    else:
        img.save(out, format=target.value)

    return out.getvalue()


def load_image(path: str) -> np.ndarray:
    """
    Load an image from disk as an H x W x 4 uint8 RGBA array.

    Raises:
        FileNotFoundError: if the path does not exist.
        UnsupportedImageError: if the file is not a readable image.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Image not found: {path}")

    pixels, width, height = decode_image_file(p.read_bytes())
    return np.frombuffer(pixels, dtype=np.uint8).reshape(height, width, 4).copy()


def save_image(array: np.ndarray, path: str) -> str:
    """
    Save an H x W x 4 RGBA array to disk and return the path written.

    The format follows the destination extension. A lossy or unknown
    extension is redirected to PNG with a warning, because the hidden
    bits cannot survive it.
    """
    p = Path(path)

    try:
        target = resolve_output_format(p.suffix or "png")
    except ValueError:
        new_path = p.with_suffix(".png")
        logger.warning(
            "[SAVE] Output format '%s' would destroy embedded data. "
            "Saving as PNG instead: %s", p.suffix, new_path,
        )
        p, target = new_path, ImageFormat.PNG

    height, width = array.shape[:2]
    data = encode_pixels_to_lossless_format(
        array.astype(np.uint8), width, height, target.value,
    )
    p.write_bytes(data)
    return str(p)


def output_name(stem: str, fmt: str) -> str:
    """Download name for a stego image, e.g. ('cat', 'png') -> 'cat_stego.png'."""
    return f"{stem}_stego{extension_for(resolve_output_format(fmt))}"
