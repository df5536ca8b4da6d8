"""
Processing Module - Image Preprocessing for Verification

Turns uploaded image bytes into the fixed-shape, channel-major float32
tensor the verification model consumes.
"""

from verify_gateway.processing.transforms import load_image_from_bytes, resize_cubic, to_chw_unit_range
from verify_gateway.processing.verify_preprocess import VERIFY_INPUT_SIZE, VerifyPreprocessor, preprocess

__all__ = [
    # Low-level transforms
    "load_image_from_bytes",
    "resize_cubic",
    "to_chw_unit_range",
    # High-level preprocessor
    "VERIFY_INPUT_SIZE",
    "VerifyPreprocessor",
    "preprocess",
]
