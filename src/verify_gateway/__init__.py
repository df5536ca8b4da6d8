"""
Verification Gateway

Accepts an image and user ID over gRPC, converts the image into a
[1, 3, 224, 224] float32 tensor and scores it on a Triton Inference
Server model:

- processing: Image decoding, bicubic resize, [0, 1] CHW tensor
- backend: Triton connection, request builder, response decoder, client
- policy: Score thresholding
- proto: Inbound ImageProcessor service definition
"""

from verify_gateway.errors import (
    ConfigurationError,
    DecodeError,
    GatewayError,
    InvalidResponseError,
    TransportError,
)
from verify_gateway.models import BackendConfig, Tensor, VerificationResult
from verify_gateway.policy import decide
from verify_gateway.processing import VerifyPreprocessor, preprocess

__all__ = [
    "BackendConfig",
    "ConfigurationError",
    "DecodeError",
    "GatewayError",
    "InvalidResponseError",
    "Tensor",
    "TransportError",
    "VerificationResult",
    "VerifyPreprocessor",
    "decide",
    "preprocess",
]

__version__ = "0.1.0"
