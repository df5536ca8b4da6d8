"""
Pytest Fixtures - Shared Test Fixtures for the Verification Gateway

Fixtures:
    png_bytes: Random RGB image encoded as PNG
    jpeg_bytes: Random RGB image encoded as JPEG
    rgba_png_bytes: Solid red, fully transparent RGBA PNG
    grayscale_png_bytes: Random single-channel PNG
    backend_config: BackendConfig for the mock Triton backend
    mock_triton: Running in-process Triton mock
    small_tensor: Tiny tensor matching the mock's expected shape

Author: Matthew Hong
"""

import io

import grpc.aio
import numpy as np
import pytest
from PIL import Image
from tritonclient.grpc import service_pb2_grpc

from verify_gateway.models import BackendConfig, Tensor

from .mock_triton import MockTriton

MODEL_NAME = "test-model"
INPUT_NAME = "input"
OUTPUT_NAME = "embedding"
SMALL_SHAPE = (1, 3, 2, 1)


def pytest_configure(config):
    """Generate inbound gRPC stubs before test modules are imported."""
    from verify_gateway.proto import ensure_generated

    ensure_generated()
    config.addinivalue_line(
        "markers", "integration: tests that start an in-process gRPC backend"
    )


def _encode(array: np.ndarray, fmt: str) -> bytes:
    buffer = io.BytesIO()
    Image.fromarray(array).save(buffer, format=fmt)
    return buffer.getvalue()


# =============================================================================
# Image Fixtures
# =============================================================================

@pytest.fixture
def png_bytes() -> bytes:
    """Random 100x150 RGB image encoded as PNG."""
    rng = np.random.default_rng(42)
    return _encode(rng.integers(0, 256, (100, 150, 3), dtype=np.uint8), "PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    """Random 480x640 RGB image encoded as JPEG."""
    rng = np.random.default_rng(43)
    return _encode(rng.integers(0, 256, (480, 640, 3), dtype=np.uint8), "JPEG")


@pytest.fixture
def rgba_png_bytes() -> bytes:
    """Solid red 64x64 RGBA PNG with a fully transparent alpha channel."""
    pixels = np.zeros((64, 64, 4), dtype=np.uint8)
    pixels[..., 0] = 255
    return _encode(pixels, "PNG")


@pytest.fixture
def grayscale_png_bytes() -> bytes:
    """Random 32x48 single-channel PNG."""
    rng = np.random.default_rng(44)
    return _encode(rng.integers(0, 256, (32, 48), dtype=np.uint8), "PNG")


@pytest.fixture
def sixteen_bit_png_bytes() -> bytes:
    """32x256 16-bit grayscale PNG, a horizontal ramp over the full 0..65535 range."""
    ramp = np.linspace(0, 65535, 256).astype(np.uint16)
    return _encode(np.tile(ramp, (32, 1)), "PNG")


@pytest.fixture
def float_tiff_bytes() -> bytes:
    """32x256 float32 TIFF, a horizontal ramp over [0, 1]."""
    ramp = np.linspace(0.0, 1.0, 256, dtype=np.float32)
    return _encode(np.tile(ramp, (32, 1)), "TIFF")


# =============================================================================
# Backend Fixtures
# =============================================================================

@pytest.fixture
def small_tensor() -> Tensor:
    """Tensor with the shape the mock backend expects."""
    return Tensor(shape=SMALL_SHAPE, data=np.array([0.1, 0.2, 0.3, 0.4, 0.5, 0.6]))


@pytest.fixture
async def mock_triton():
    """Start a mock Triton server on an ephemeral loopback port."""
    backend = MockTriton(MODEL_NAME, INPUT_NAME, OUTPUT_NAME, SMALL_SHAPE)
    server = grpc.aio.server()
    service_pb2_grpc.add_GRPCInferenceServiceServicer_to_server(backend, server)
    port = server.add_insecure_port("127.0.0.1:0")
    await server.start()
    backend.endpoint = f"127.0.0.1:{port}"

    yield backend

    await server.stop(grace=None)


@pytest.fixture
def backend_config(mock_triton: MockTriton) -> BackendConfig:
    """BackendConfig pointing at the mock Triton server."""
    return BackendConfig(
        endpoint=f"http://{mock_triton.endpoint}",
        model_name=MODEL_NAME,
        input_name=INPUT_NAME,
        output_name=OUTPUT_NAME,
        connect_timeout=5.0,
        call_timeout=5.0,
    )
