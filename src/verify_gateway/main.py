"""gRPC server for the verification gateway.

Accepts images on the ImageProcessor service and scores them on Triton.

Author: Matthew Hong
"""

import asyncio
import logging
import signal

from grpc import aio

from verify_gateway.backend import TritonVerifyClient
from verify_gateway.config import Settings, get_settings
from verify_gateway.logger import setup_logging
from verify_gateway.models import BackendConfig
from verify_gateway.pipeline import VerificationPipeline
from verify_gateway.proto import ensure_generated

logger = logging.getLogger(__name__)


async def create_server(settings: Settings, client: TritonVerifyClient) -> tuple[aio.Server, int]:
    """Build the gRPC server and bind it to the configured port.

    Returns:
        Tuple of (server, bound port)
    """
    # Generated stubs must exist before the servicer module is imported
    ensure_generated()
    from verify_gateway.proto import verify_pb2_grpc
    from verify_gateway.servicer import ImageProcessorServicer

    pipeline = VerificationPipeline(
        client,
        input_size=settings.IMAGE_SIZE,
        threshold=settings.VERIFY_THRESHOLD,
    )

    server_options = [
        ("grpc.max_send_message_length", 50 * 1024 * 1024),  # 50MB
        ("grpc.max_receive_message_length", 50 * 1024 * 1024),  # 50MB
    ]
    server = aio.server(options=server_options)
    verify_pb2_grpc.add_ImageProcessorServicer_to_server(ImageProcessorServicer(pipeline), server)

    listen_addr = f"{settings.HOST}:{settings.PORT}"
    port = server.add_insecure_port(listen_addr)
    logger.info(f"Verification gateway listening on {listen_addr}")
    return server, port


async def serve() -> None:
    """Start and run the gRPC server."""
    settings = get_settings()

    setup_logging(settings.LOG_LEVEL)
    logger.info(f"Starting verification gateway on port {settings.PORT}")

    client = TritonVerifyClient(BackendConfig.from_settings(settings))
    if settings.TRITON_WAIT_FOR_READY:
        logger.info("Waiting for Triton server...")
        await client.wait_for_server_ready(timeout=settings.TRITON_READY_TIMEOUT_SECONDS)

    server, _ = await create_server(settings, client)
    await server.start()

    # Setup graceful shutdown
    shutdown_event = asyncio.Event()

    def signal_handler(sig):
        logger.info(f"Received {sig.name}, initiating shutdown...")
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))

    logger.info("Verification gateway ready for requests", extra={"port": settings.PORT})

    await shutdown_event.wait()

    logger.info("Shutting down gRPC server...")
    await server.stop(grace=5)
    await client.close()
    logger.info("Verification gateway stopped")


def main() -> None:
    """Entry point for the verification gateway."""
    asyncio.run(serve())


if __name__ == "__main__":
    main()
