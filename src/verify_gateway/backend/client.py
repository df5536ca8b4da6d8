"""Triton gRPC client for verification inference.

This module provides a high-level async interface to Triton Inference Server.
It composes the connection lifecycle, request building and response decoding
into a single ``infer`` call.

Author: Matthew Hong
"""

import asyncio
import logging
import time

import grpc
import grpc.aio
from tritonclient.grpc import service_pb2

from verify_gateway.errors import TransportError
from verify_gateway.models import BackendConfig, Tensor

from .connection import BackendConnection
from .request_builder import build_infer_request
from .response_decoder import extract_scores

logger = logging.getLogger(__name__)


class TritonVerifyClient:
    """Async client for the verification model on Triton.

    The client is the sole owner of its BackendConnection; one instance is
    shared by every request a gateway process serves. No call is retried: a
    transport failure surfaces immediately as TransportError.

    Attributes:
        config: Backend configuration
        connection: Lazily established backend connection
    """

    def __init__(self, config: BackendConfig) -> None:
        """Initialize the client. No network I/O happens until first use.

        Args:
            config: Backend endpoint, model and tensor names, TLS settings
        """
        self.config = config
        self.connection = BackendConnection(config)
        logger.info(
            f"Triton client initialized: {config.endpoint}",
            extra={"model": config.model_name},
        )

    async def infer(self, tensor: Tensor) -> list[float]:
        """Run the verification model on a preprocessed tensor.

        Args:
            tensor: Input tensor, e.g. [1, 3, 224, 224] float32

        Returns:
            Scores decoded from the configured output

        Raises:
            ConfigurationError: If the backend connection is misconfigured
            TransportError: If connecting or the RPC fails
            InvalidResponseError: If the response cannot be decoded
        """
        stub = await self.connection.ensure_connected()
        request = build_infer_request(tensor, self.config)

        t_start = time.perf_counter()
        try:
            response = await stub.ModelInfer(request, timeout=self.config.call_timeout)
        except grpc.aio.AioRpcError as e:
            if e.code() == grpc.StatusCode.UNAVAILABLE:
                await self.connection.reset(stub)
            raise TransportError(
                f"Triton inference failed ({e.code().name}): {e.details()}"
            ) from e

        scores = extract_scores(response, self.config.output_name)
        logger.debug(
            f"Triton inference returned {len(scores)} values",
            extra={
                "model": self.config.model_name,
                "latency_ms": (time.perf_counter() - t_start) * 1000,
            },
        )
        return scores

    async def is_ready(self) -> bool:
        """Check that the Triton server and the configured model are ready.

        Raises:
            ConfigurationError: If the backend connection is misconfigured
            TransportError: If connecting or the readiness RPCs fail
        """
        stub = await self.connection.ensure_connected()
        try:
            server = await stub.ServerReady(
                service_pb2.ServerReadyRequest(),
                timeout=self.config.call_timeout,
            )
            if not server.ready:
                return False
            model = await stub.ModelReady(
                service_pb2.ModelReadyRequest(name=self.config.model_name),
                timeout=self.config.call_timeout,
            )
        except grpc.aio.AioRpcError as e:
            if e.code() == grpc.StatusCode.UNAVAILABLE:
                await self.connection.reset(stub)
            raise TransportError(
                f"Triton readiness check failed ({e.code().name}): {e.details()}"
            ) from e
        return model.ready

    async def wait_for_server_ready(self, timeout: float = 60) -> bool:
        """Wait for Triton and the model to be ready.

        Polls readiness with exponential backoff until ready or timeout.

        Args:
            timeout: Maximum wait time in seconds

        Returns:
            True if server is ready

        Raises:
            TransportError: If the server is not ready within timeout
        """
        start = time.monotonic()
        attempt = 0
        while time.monotonic() - start < timeout:
            try:
                if await self.is_ready():
                    logger.info("Triton server is ready")
                    return True
                reason = "model not ready"
            except TransportError as e:
                reason = str(e)

            attempt += 1
            remaining = timeout - (time.monotonic() - start)
            # Exponential backoff, max 10s, never past the deadline
            wait_time = min(2**attempt, 10, max(remaining, 0))
            logger.debug(f"Waiting for Triton... (attempt {attempt}, {reason})")
            await asyncio.sleep(wait_time)

        raise TransportError(f"Triton server not ready after {timeout}s")

    async def close(self) -> None:
        """Close the gRPC connection."""
        await self.connection.close()
        logger.info("Triton client closed")
