"""Lazily established gRPC channel to the Triton backend.

BackendConnection owns the single channel a gateway process uses for all
inference calls. The first caller performs the handshake while concurrent
callers wait on the same lock; once connected, the stub is handed out
without locking.

Author: Matthew Hong
"""

import asyncio
import enum
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

import grpc
import grpc.aio
from tritonclient.grpc import service_pb2_grpc

from verify_gateway.errors import ConfigurationError, TransportError
from verify_gateway.models import BackendConfig

logger = logging.getLogger(__name__)

_SCHEMES = ("http", "https", "grpc", "grpcs")

# Triton tensors can be large; match the server-side limits
CHANNEL_OPTIONS = [
    ("grpc.max_send_message_length", 50 * 1024 * 1024),  # 50MB
    ("grpc.max_receive_message_length", 50 * 1024 * 1024),  # 50MB
]


class ConnectionState(str, enum.Enum):
    UNCONNECTED = "unconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


def _split_endpoint(endpoint: str) -> tuple[str, Optional[str]]:
    """Split an endpoint into a gRPC target and its host.

    Accepts "host:port" as well as URLs with an http/https/grpc scheme.

    Returns:
        Tuple of (target without scheme, hostname or None)
    """
    endpoint = endpoint.strip()
    if "://" in endpoint:
        parts = urlsplit(endpoint)
        if parts.scheme not in _SCHEMES:
            return endpoint, None
        target = parts.netloc
    else:
        target = endpoint
        parts = urlsplit(f"//{endpoint}")

    try:
        host = parts.hostname
    except ValueError:
        host = None
    return target, host or None


class BackendConnection:
    """Connection lifecycle for the inference backend.

    States: UNCONNECTED -> CONNECTING -> CONNECTED. A failed handshake, or
    a reset after an UNAVAILABLE transport failure, returns to UNCONNECTED
    so the next call performs a fresh handshake.

    Attributes:
        config: Immutable backend configuration
        state: Current ConnectionState
        handshakes: Number of handshakes attempted so far
    """

    def __init__(self, config: BackendConfig) -> None:
        self.config = config
        self.state = ConnectionState.UNCONNECTED
        self.handshakes = 0
        self._channel: Optional[grpc.aio.Channel] = None
        self._stub: Optional[service_pb2_grpc.GRPCInferenceServiceStub] = None
        self._lock = asyncio.Lock()
        self._draining: set[asyncio.Task] = set()
        self._target, self._host = _split_endpoint(config.endpoint)
        logger.info(f"Backend connection configured for {config.endpoint}")

    async def ensure_connected(self) -> service_pb2_grpc.GRPCInferenceServiceStub:
        """Return the backend stub, performing the handshake on first use.

        Idempotent. Only one handshake is ever in flight; callers arriving
        while it runs wait for its outcome.

        Raises:
            ConfigurationError: If the endpoint or TLS setup is invalid
            TransportError: If the backend is unreachable within the
                connect timeout
        """
        stub = self._stub
        if stub is not None:
            return stub

        async with self._lock:
            if self._stub is None:
                await self._connect()
            return self._stub

    async def _connect(self) -> None:
        self.state = ConnectionState.CONNECTING
        self.handshakes += 1
        logger.info(f"Connecting to Triton at {self._target}")

        try:
            channel = self._create_channel()
        except ConfigurationError:
            self.state = ConnectionState.UNCONNECTED
            raise

        try:
            await asyncio.wait_for(
                channel.channel_ready(),
                timeout=self.config.connect_timeout,
            )
        except asyncio.TimeoutError as e:
            await channel.close()
            self.state = ConnectionState.UNCONNECTED
            raise TransportError(
                f"Timeout connecting to Triton at {self._target} "
                f"after {self.config.connect_timeout}s"
            ) from e
        except BaseException:
            await channel.close()
            self.state = ConnectionState.UNCONNECTED
            raise

        self._channel = channel
        self._stub = service_pb2_grpc.GRPCInferenceServiceStub(channel)
        self.state = ConnectionState.CONNECTED
        logger.info(f"Connected to Triton at {self._target}")

    def _create_channel(self) -> grpc.aio.Channel:
        """Build the (optionally TLS) channel without connecting it.

        Raises:
            ConfigurationError: If TLS is requested and the host cannot be
                extracted, or the CA certificate cannot be read
        """
        if not self._target:
            raise ConfigurationError(f"Invalid Triton endpoint: {self.config.endpoint!r}")

        if not self.config.use_tls:
            return grpc.aio.insecure_channel(self._target, options=CHANNEL_OPTIONS)

        if not self._host:
            raise ConfigurationError(
                f"Cannot extract host from Triton endpoint {self.config.endpoint!r} for TLS"
            )

        root_certificates = None
        if self.config.ca_certificate_path:
            try:
                root_certificates = Path(self.config.ca_certificate_path).read_bytes()
            except OSError as e:
                raise ConfigurationError(
                    f"Failed to read CA certificate {self.config.ca_certificate_path}: {e}"
                ) from e

        credentials = grpc.ssl_channel_credentials(root_certificates=root_certificates)
        options = CHANNEL_OPTIONS + [("grpc.ssl_target_name_override", self._host)]
        return grpc.aio.secure_channel(self._target, credentials, options=options)

    async def reset(
        self,
        failed_stub: Optional[service_pb2_grpc.GRPCInferenceServiceStub] = None,
    ) -> None:
        """Drop the current channel so the next call reconnects.

        Args:
            failed_stub: Stub the failing call used. If a newer connection
                has replaced it in the meantime, nothing is reset.
        """
        async with self._lock:
            if failed_stub is not None and failed_stub is not self._stub:
                return
            channel = self._detach()

        if channel is not None:
            # Other calls may still be running on the old channel
            task = asyncio.create_task(channel.close(grace=self.config.call_timeout))
            self._draining.add(task)
            task.add_done_callback(self._draining.discard)
        logger.warning(f"Triton connection to {self._target} reset")

    async def close(self) -> None:
        """Close the gRPC channel and wait for reset channels to drain."""
        async with self._lock:
            channel = self._detach()
        if channel is not None:
            await channel.close()
        if self._draining:
            await asyncio.gather(*self._draining)
        logger.info("Triton connection closed")

    def _detach(self) -> Optional[grpc.aio.Channel]:
        channel = self._channel
        self._channel = None
        self._stub = None
        self.state = ConnectionState.UNCONNECTED
        return channel
