"""
Low-Level Image Transforms

This module contains the atomic transformation steps used by
VerifyPreprocessor.

Functions:
    load_image_from_bytes: Decode image bytes as an RGB numpy array
    resize_cubic: Resize to an exact square resolution with bicubic filtering
    to_chw_unit_range: Scale to [0, 1] and transpose HWC -> CHW

Author: Matthew Hong
"""

import io

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from verify_gateway.errors import DecodeError

# Single-channel integer modes Pillow uses for 16-bit grayscale (PNG, TIFF)
_SIXTEEN_BIT_MODES = ("I;16", "I;16B", "I;16L", "I;16N", "I")


# =============================================================================
# Image Loading
# =============================================================================

def load_image_from_bytes(image_bytes: bytes) -> np.ndarray:
    """
    Decode image bytes as an RGB numpy array.

    Uses Pillow so that every common still-image container (JPEG, PNG, GIF,
    BMP, WebP, TIFF) is accepted. Alpha is discarded and grayscale or palette
    images are expanded to three channels. 16-bit grayscale is scaled down to
    8 bits and float images are read as [0, 1] intensities.

    Args:
        image_bytes: Raw image bytes

    Returns:
        RGB uint8 array with shape [H, W, 3]

    Raises:
        DecodeError: If the bytes are not a recognizable image. The message
            carries Pillow's own diagnostic.

    Example:
        >>> with open("face.jpg", "rb") as f:
        ...     image = load_image_from_bytes(f.read())
        >>> image.shape
        (480, 640, 3)
    """
    if not image_bytes:
        raise DecodeError("image decoding failed: empty input")

    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            image.load()
            return _to_rgb_array(image)
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
        EOFError,
        ValueError,
    ) as e:
        raise DecodeError(f"image decoding failed: {e}") from e


def _to_rgb_array(image: Image.Image) -> np.ndarray:
    """Convert a decoded image to RGB uint8, rescaling high bit-depth modes.

    Pillow's convert("RGB") clamps 16-bit and float pixels to 0..255 instead
    of scaling them, so those modes are rescaled here before being expanded
    to three channels.
    """
    if image.mode in _SIXTEEN_BIT_MODES:
        values = np.clip(np.asarray(image, dtype=np.float64), 0, 65535) / 257.0
    elif image.mode == "F":
        values = np.clip(np.asarray(image, dtype=np.float64), 0.0, 1.0) * 255.0
    else:
        return np.asarray(image.convert("RGB"), dtype=np.uint8)

    gray = np.rint(values).astype(np.uint8)
    return np.repeat(gray[:, :, np.newaxis], 3, axis=2)


# =============================================================================
# Geometric Transforms
# =============================================================================

def resize_cubic(image: np.ndarray, size: int) -> np.ndarray:
    """
    Resize an image to exactly ``size`` x ``size`` pixels.

    Aspect ratio is not preserved. Bicubic interpolation is used; exact
    pixel values differ between filter implementations, only shape and
    value range are stable.

    Args:
        image: RGB uint8 array with shape [H, W, 3]
        size: Target square dimension

    Returns:
        RGB uint8 array with shape [size, size, 3]
    """
    return cv2.resize(image, (size, size), interpolation=cv2.INTER_CUBIC)


# =============================================================================
# Normalization
# =============================================================================

def to_chw_unit_range(image: np.ndarray) -> np.ndarray:
    """
    Scale uint8 pixels to [0, 1] float32 and move channels first.

    Args:
        image: uint8 array with shape [H, W, 3]

    Returns:
        float32 array with shape [3, H, W], values in [0.0, 1.0]
    """
    scaled = image.astype(np.float32) / 255.0
    return np.ascontiguousarray(scaled.transpose(2, 0, 1))
