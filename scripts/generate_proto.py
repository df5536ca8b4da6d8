#!/usr/bin/env python3
"""
Generate Proto Script - Compile verify.proto to Python.

This script compiles verify.proto to:
- verify_pb2.py (message classes)
- verify_pb2_grpc.py (service stubs and servicers)

Usage:
    python scripts/generate_proto.py           # Generate proto files
    python scripts/generate_proto.py --verify  # Verify generation
    python scripts/generate_proto.py --clean   # Remove generated files

Author: Matthew Hong
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from verify_gateway import proto  # noqa: E402

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)


def generate_proto() -> bool:
    """
    Generate Python files from proto definition.

    Returns:
        True if generation successful
    """
    try:
        import grpc_tools.protoc  # noqa: F401
    except ImportError:
        logger.error("grpcio-tools not installed.")
        logger.error("Install with: pip install grpcio-tools")
        return False

    logger.info("Generating proto files...")
    logger.info(f"  Source: {proto.PROTO_FILE}")
    logger.info(f"  Output: {proto.PROTO_DIR}")

    try:
        proto.generate()
    except (FileNotFoundError, RuntimeError) as e:
        logger.error(f"Generation failed: {e}")
        return False

    for f in proto.GENERATED_FILES:
        if f.exists():
            logger.info(f"  ✓ Generated: {f.name}")
        else:
            logger.error(f"  ✗ Missing: {f.name}")
            return False

    return True


def verify_proto() -> bool:
    """
    Verify proto files are correctly generated.

    Returns:
        True if all files valid
    """
    logger.info("Verifying proto files...")

    for f in proto.GENERATED_FILES:
        if not f.exists():
            logger.error(f"  ✗ Missing: {f}")
            return False
        logger.info(f"  ✓ Exists: {f.name}")

    try:
        verify_pb2 = proto.get_messages()
        verify_pb2_grpc = proto.get_services()
    except ImportError as e:
        logger.error(f"  ✗ Import failed: {e}")
        return False

    services = [
        name for name in dir(verify_pb2_grpc)
        if name.endswith("Stub") or name.endswith("Servicer")
    ]
    logger.info(f"  ✓ Services: {', '.join(services)}")

    request = verify_pb2.VerifyRequest(user_id="test-user", image_data=b"fake-image-data")
    deserialized = verify_pb2.VerifyRequest()
    deserialized.ParseFromString(request.SerializeToString())
    if deserialized.user_id != "test-user":
        logger.error("  ✗ Serialization round trip lost user_id")
        return False
    logger.info("  ✓ Serialization/deserialization works")

    return True


def clean_proto() -> bool:
    """
    Remove generated proto files.

    Returns:
        True if cleanup successful
    """
    logger.info("Cleaning generated proto files...")

    removed = proto.clean()
    for f in proto.GENERATED_FILES:
        if f in removed:
            logger.info(f"  ✓ Removed: {f.name}")
        else:
            logger.info(f"  ⊘ Not found: {f.name}")

    pycache = proto.PROTO_DIR / "__pycache__"
    if pycache.exists():
        import shutil
        shutil.rmtree(pycache)
        logger.info("  ✓ Removed: __pycache__")

    return True


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Generate Python files from verify.proto",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/generate_proto.py           # Generate proto files
  python scripts/generate_proto.py --verify  # Verify generation
  python scripts/generate_proto.py --clean   # Remove generated files
        """,
    )

    parser.add_argument(
        "--verify",
        action="store_true",
        help="Verify proto files without generating",
    )
    parser.add_argument(
        "--clean",
        action="store_true",
        help="Remove generated proto files",
    )

    args = parser.parse_args()

    if args.clean:
        success = clean_proto()
    elif args.verify:
        success = verify_proto()
    else:
        success = generate_proto() and verify_proto()

    print("✓ Complete" if success else "✗ Failed")
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
