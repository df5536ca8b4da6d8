"""
Backend Module - Triton Inference Client

Components:
    BackendConnection: Lazily established, optionally TLS gRPC channel
    build_infer_request: Tensor -> ModelInferRequest
    extract_scores: ModelInferResponse -> list of floats (typed or raw)
    TritonVerifyClient: All of the above behind one ``infer`` call
"""

from verify_gateway.backend.client import TritonVerifyClient
from verify_gateway.backend.connection import BackendConnection, ConnectionState
from verify_gateway.backend.request_builder import build_infer_request
from verify_gateway.backend.response_decoder import (
    OutputPayload,
    PayloadKind,
    extract_scores,
    select_payload,
)

__all__ = [
    "BackendConnection",
    "ConnectionState",
    "OutputPayload",
    "PayloadKind",
    "TritonVerifyClient",
    "build_infer_request",
    "extract_scores",
    "select_payload",
]
