"""
Proto Module - gRPC Service Definitions

This module provides the inbound gRPC service definition of the gateway.

Services:
    ImageProcessor: ProcessImage(VerifyRequest) -> VerifyResponse

Generated files (verify_pb2.py, verify_pb2_grpc.py) are created by
running: python scripts/generate_proto.py, or on demand through
ensure_generated().

The outbound Triton protocol is not defined here; its messages come
from tritonclient.grpc.service_pb2.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Proto file location
PROTO_DIR = Path(__file__).parent
PROTO_FILE = PROTO_DIR / "verify.proto"

GENERATED_FILES = [
    PROTO_DIR / "verify_pb2.py",
    PROTO_DIR / "verify_pb2_grpc.py",
]


def get_proto_path() -> Path:
    """Get path to verify.proto file."""
    return PROTO_FILE


def is_generated() -> bool:
    """Check if proto files have been generated."""
    return all(f.exists() for f in GENERATED_FILES)


def generate() -> None:
    """
    Compile verify.proto into Python message and service modules.

    Raises:
        FileNotFoundError: If verify.proto is missing
        RuntimeError: If protoc fails
    """
    if not PROTO_FILE.exists():
        raise FileNotFoundError(f"Proto file not found: {PROTO_FILE}")

    from grpc_tools import protoc

    logger.info(f"Generating proto files from {PROTO_FILE}")
    result = protoc.main([
        "grpc_tools.protoc",
        f"--proto_path={PROTO_DIR}",
        f"--python_out={PROTO_DIR}",
        f"--grpc_python_out={PROTO_DIR}",
        str(PROTO_FILE),
    ])
    if result != 0:
        raise RuntimeError(f"protoc failed with code {result}")

    _fix_imports()


def _fix_imports() -> None:
    """
    Rewrite the generated service module to import its messages relatively.

    protoc emits a top-level ``import verify_pb2`` which only works when
    the proto directory itself is on sys.path.
    """
    grpc_file = PROTO_DIR / "verify_pb2_grpc.py"
    content = grpc_file.read_text()

    old_import = "import verify_pb2 as verify__pb2"
    new_import = "from . import verify_pb2 as verify__pb2"

    if old_import in content and new_import not in content:
        grpc_file.write_text(content.replace(old_import, new_import))


def ensure_generated() -> None:
    """Generate the proto modules unless they already exist."""
    if not is_generated():
        generate()


def clean() -> list[Path]:
    """
    Remove generated proto files.

    Returns:
        Paths that were removed
    """
    removed = []
    for f in GENERATED_FILES:
        if f.exists():
            f.unlink()
            removed.append(f)
    return removed


# Lazy imports for generated modules
def get_messages():
    """
    Get generated protobuf message classes.

    Returns:
        Module containing message classes

    Raises:
        ImportError: If proto files not generated
    """
    if not is_generated():
        raise ImportError(
            "Proto files not generated. Run 'python scripts/generate_proto.py' first."
        )
    from verify_gateway.proto import verify_pb2
    return verify_pb2


def get_services():
    """
    Get generated gRPC service classes.

    Returns:
        Module containing service stubs and servicers

    Raises:
        ImportError: If proto files not generated
    """
    if not is_generated():
        raise ImportError(
            "Proto files not generated. Run 'python scripts/generate_proto.py' first."
        )
    from verify_gateway.proto import verify_pb2_grpc
    return verify_pb2_grpc
