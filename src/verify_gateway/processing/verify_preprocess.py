"""
Verification Preprocessing Pipeline

This module provides the VerifyPreprocessor class that turns an uploaded
image into the tensor expected by the verification model.

Pipeline:
    1. Decode bytes (any common still-image format) to RGB
    2. Resize to 224x224 (bicubic interpolation)
    3. Scale to [0, 1] by dividing by 255
    4. Transpose HWC -> CHW and add batch dimension -> [1, 3, 224, 224]

Author: Matthew Hong
"""

from typing import Tuple

from verify_gateway.models import Tensor
from verify_gateway.processing.transforms import load_image_from_bytes, resize_cubic, to_chw_unit_range


# =============================================================================
# Constants
# =============================================================================

VERIFY_INPUT_SIZE: int = 224
"""Default verification model input dimension (square)."""


# =============================================================================
# Preprocessor Class
# =============================================================================

class VerifyPreprocessor:
    """
    Preprocessor for the verification model.

    Pure function of the input bytes: no state is kept between calls, so one
    instance can be shared across concurrent requests.

    Attributes:
        input_size: Target square input dimension (default: 224)

    Example:
        >>> preprocessor = VerifyPreprocessor()
        >>> tensor = preprocessor(png_bytes)
        >>> tensor.shape
        (1, 3, 224, 224)
        >>> tensor.data.size
        150528
    """

    def __init__(self, input_size: int = VERIFY_INPUT_SIZE) -> None:
        """
        Initialize VerifyPreprocessor.

        Args:
            input_size: Target square dimension for model input (default: 224)
        """
        if input_size < 1:
            raise ValueError(f"input_size must be positive, got {input_size}")
        self.input_size = input_size

    def __call__(self, image_bytes: bytes) -> Tensor:
        return self.preprocess(image_bytes)

    def preprocess(self, image_bytes: bytes) -> Tensor:
        """
        Preprocess image bytes for verification inference.

        Args:
            image_bytes: Encoded image (JPEG, PNG, GIF, ...)

        Returns:
            Tensor with shape (1, 3, input_size, input_size) and float32
            data in [0.0, 1.0], channel-major

        Raises:
            DecodeError: If the bytes are not a recognizable image
        """
        rgb = load_image_from_bytes(image_bytes)
        resized = resize_cubic(rgb, self.input_size)
        chw = to_chw_unit_range(resized)

        return Tensor(shape=self.get_input_shape(), data=chw.reshape(-1))

    def get_input_shape(self) -> Tuple[int, int, int, int]:
        """
        Get the model input shape produced by this preprocessor.

        Returns:
            Tuple of (batch, channels, height, width)
        """
        return (1, 3, self.input_size, self.input_size)


def preprocess(image_bytes: bytes, input_size: int = VERIFY_INPUT_SIZE) -> Tensor:
    """Decode, resize and normalize ``image_bytes`` into a model input tensor."""
    return VerifyPreprocessor(input_size).preprocess(image_bytes)
