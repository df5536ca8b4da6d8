"""Data models shared by the gateway core.

Author: Matthew Hong
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from pydantic import BaseModel

from verify_gateway.config import Settings


@dataclass(frozen=True)
class Tensor:
    """Shape-tagged flat float32 array.

    Attributes:
        shape: Dimensions of the tensor (e.g. (1, 3, 224, 224))
        data: Flattened float32 values in channel-major order, read-only
    """

    shape: Tuple[int, ...]
    data: np.ndarray

    def __post_init__(self) -> None:
        shape = tuple(int(dim) for dim in self.shape)
        if any(dim < 0 for dim in shape):
            raise ValueError(f"Tensor dimensions must be non-negative, got {shape}")

        data = np.ascontiguousarray(self.data, dtype=np.float32).reshape(-1)
        expected = math.prod(shape)
        if data.size != expected:
            raise ValueError(
                f"Tensor data has {data.size} values, shape {shape} needs {expected}"
            )
        data.setflags(write=False)

        object.__setattr__(self, "shape", shape)
        object.__setattr__(self, "data", data)


@dataclass(frozen=True)
class BackendConfig:
    """Immutable connection settings for the inference backend.

    Attributes:
        endpoint: Backend address (host:port or http(s)/grpc URL)
        model_name: Model to run
        input_name: Input tensor name
        output_name: Output tensor name
        use_tls: Secure the channel with TLS
        ca_certificate_path: Optional PEM trust root for TLS
        connect_timeout: Handshake cap in seconds
        call_timeout: Per-RPC cap in seconds
    """

    endpoint: str
    model_name: str
    input_name: str
    output_name: str
    use_tls: bool = False
    ca_certificate_path: Optional[str] = None
    connect_timeout: float = 5.0
    call_timeout: float = 15.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "BackendConfig":
        return cls(
            endpoint=settings.TRITON_ENDPOINT,
            model_name=settings.TRITON_MODEL_NAME,
            input_name=settings.TRITON_INPUT_NAME,
            output_name=settings.TRITON_OUTPUT_NAME,
            use_tls=settings.TRITON_USE_TLS,
            ca_certificate_path=settings.TRITON_CA_CERT_PATH,
            connect_timeout=settings.TRITON_CONNECT_TIMEOUT_SECONDS,
            call_timeout=settings.TRITON_CALL_TIMEOUT_SECONDS,
        )


class VerificationResult(BaseModel):
    """Outcome of a verification call.

    Attributes:
        success: Whether the score met the threshold
        score: First score returned by the backend (0.0 if none)
        message: Human-readable outcome
    """

    success: bool
    score: float
    message: str
