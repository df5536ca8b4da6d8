"""
Unit Tests for the backend connection lifecycle.

Channels are replaced with mocks so handshake counting, timeouts and TLS
configuration errors can be checked without a network.

Author: Matthew Hong
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import grpc.aio
import pytest

from verify_gateway.backend.connection import (
    BackendConnection,
    ConnectionState,
    _split_endpoint,
)
from verify_gateway.errors import ConfigurationError, TransportError
from verify_gateway.models import BackendConfig


def make_config(**overrides) -> BackendConfig:
    values = {
        "endpoint": "http://triton:8001",
        "model_name": "m",
        "input_name": "input",
        "output_name": "output",
    }
    values.update(overrides)
    return BackendConfig(**values)


def fake_channel(ready_delay: float = 0.01, never_ready: bool = False) -> MagicMock:
    """Channel mock whose channel_ready() completes after ready_delay."""

    async def channel_ready():
        if never_ready:
            await asyncio.Event().wait()
        await asyncio.sleep(ready_delay)

    channel = MagicMock()
    channel.channel_ready = channel_ready
    channel.close = AsyncMock()
    return channel


# =============================================================================
# Endpoint Parsing
# =============================================================================


class TestSplitEndpoint:
    """Tests for _split_endpoint."""

    @pytest.mark.parametrize(
        "endpoint,target,host",
        [
            ("http://triton:8001", "triton:8001", "triton"),
            ("https://triton.example.com:443", "triton.example.com:443", "triton.example.com"),
            ("grpc://10.0.0.5:8001", "10.0.0.5:8001", "10.0.0.5"),
            ("triton:8001", "triton:8001", "triton"),
            ("localhost:8001", "localhost:8001", "localhost"),
            ("[::1]:8001", "[::1]:8001", "::1"),
            ("http://:8001", ":8001", None),
        ],
    )
    def test_split(self, endpoint: str, target: str, host) -> None:
        """Scheme should be stripped and the host extracted."""
        assert _split_endpoint(endpoint) == (target, host)


# =============================================================================
# Lifecycle
# =============================================================================


class TestEnsureConnected:
    """Tests for BackendConnection.ensure_connected."""

    async def test_starts_unconnected(self) -> None:
        """No handshake should happen before first use."""
        connection = BackendConnection(make_config())

        assert connection.state is ConnectionState.UNCONNECTED
        assert connection.handshakes == 0

    async def test_connects_once(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Repeated calls should reuse the established stub."""
        connection = BackendConnection(make_config())
        create = MagicMock(return_value=fake_channel())
        monkeypatch.setattr(connection, "_create_channel", create)

        first = await connection.ensure_connected()
        second = await connection.ensure_connected()

        assert first is second
        assert create.call_count == 1
        assert connection.handshakes == 1
        assert connection.state is ConnectionState.CONNECTED

    async def test_concurrent_callers_share_one_handshake(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Callers arriving during the handshake should wait for it."""
        connection = BackendConnection(make_config())
        create = MagicMock(return_value=fake_channel(ready_delay=0.05))
        monkeypatch.setattr(connection, "_create_channel", create)

        stubs = await asyncio.gather(*(connection.ensure_connected() for _ in range(20)))

        assert create.call_count == 1
        assert connection.handshakes == 1
        assert all(stub is stubs[0] for stub in stubs)

    async def test_connect_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """An unresponsive backend should fail with TransportError."""
        connection = BackendConnection(make_config(connect_timeout=0.05))
        channel = fake_channel(never_ready=True)
        monkeypatch.setattr(connection, "_create_channel", MagicMock(return_value=channel))

        with pytest.raises(TransportError, match="Timeout connecting"):
            await connection.ensure_connected()

        channel.close.assert_awaited_once()
        assert connection.state is ConnectionState.UNCONNECTED

    async def test_failed_handshake_retried_on_next_call(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """After a failed handshake the next call should try again."""
        connection = BackendConnection(make_config(connect_timeout=0.05))
        create = MagicMock(side_effect=[fake_channel(never_ready=True), fake_channel()])
        monkeypatch.setattr(connection, "_create_channel", create)

        with pytest.raises(TransportError):
            await connection.ensure_connected()
        await connection.ensure_connected()

        assert connection.handshakes == 2
        assert connection.state is ConnectionState.CONNECTED

    async def test_unreachable_backend(self) -> None:
        """A closed port should fail within the connect timeout."""
        connection = BackendConnection(
            make_config(endpoint="127.0.0.1:1", connect_timeout=0.2)
        )

        with pytest.raises(TransportError):
            await connection.ensure_connected()

        assert connection.state is ConnectionState.UNCONNECTED


class TestReset:
    """Tests for BackendConnection.reset and close."""

    async def test_reset_forces_new_handshake(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Reset should drop the channel so the next call reconnects."""
        connection = BackendConnection(make_config())
        channel = fake_channel()
        create = MagicMock(side_effect=[channel, fake_channel()])
        monkeypatch.setattr(connection, "_create_channel", create)

        stub = await connection.ensure_connected()
        await connection.reset(stub)

        assert connection.state is ConnectionState.UNCONNECTED

        await connection.ensure_connected()
        assert connection.handshakes == 2

        await connection.close()
        channel.close.assert_awaited_once_with(grace=connection.config.call_timeout)

    async def test_reset_closes_old_channel_with_grace(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """The reset channel should be closed in the background with a grace period."""
        connection = BackendConnection(make_config(call_timeout=3.0))
        channel = fake_channel()
        monkeypatch.setattr(connection, "_create_channel", MagicMock(return_value=channel))

        stub = await connection.ensure_connected()
        await connection.reset(stub)
        await asyncio.sleep(0)

        channel.close.assert_awaited_once_with(grace=3.0)

    async def test_stale_reset_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Resetting with an outdated stub should keep the newer connection."""
        connection = BackendConnection(make_config())
        monkeypatch.setattr(
            connection,
            "_create_channel",
            MagicMock(side_effect=[fake_channel(), fake_channel()]),
        )

        old_stub = await connection.ensure_connected()
        await connection.reset(old_stub)
        new_stub = await connection.ensure_connected()
        await connection.reset(old_stub)

        assert connection.state is ConnectionState.CONNECTED
        assert await connection.ensure_connected() is new_stub

    async def test_close(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Close should close the channel and return to UNCONNECTED."""
        connection = BackendConnection(make_config())
        channel = fake_channel()
        monkeypatch.setattr(connection, "_create_channel", MagicMock(return_value=channel))

        await connection.ensure_connected()
        await connection.close()

        channel.close.assert_awaited_once()
        assert connection.state is ConnectionState.UNCONNECTED

    async def test_close_without_connection(self) -> None:
        """Closing a never-connected connection should be a no-op."""
        connection = BackendConnection(make_config())

        await connection.close()

        assert connection.state is ConnectionState.UNCONNECTED


# =============================================================================
# TLS Configuration
# =============================================================================


class TestTlsConfiguration:
    """Tests for TLS channel setup."""

    async def test_tls_requires_host(self) -> None:
        """TLS without an extractable host should be a ConfigurationError."""
        connection = BackendConnection(make_config(endpoint="https://:8001", use_tls=True))

        with pytest.raises(ConfigurationError, match="Cannot extract host"):
            await connection.ensure_connected()

        assert connection.state is ConnectionState.UNCONNECTED
        assert connection.handshakes == 1

    async def test_missing_ca_certificate(self, tmp_path) -> None:
        """An unreadable CA certificate should be a ConfigurationError."""
        connection = BackendConnection(
            make_config(
                use_tls=True,
                ca_certificate_path=str(tmp_path / "missing-ca.pem"),
            )
        )

        with pytest.raises(ConfigurationError, match="Failed to read CA certificate"):
            await connection.ensure_connected()

    async def test_tls_channel_created(self) -> None:
        """TLS with a host should build a secure channel without connecting."""
        connection = BackendConnection(make_config(use_tls=True))

        channel = connection._create_channel()

        assert isinstance(channel, grpc.aio.Channel)
        await channel.close()

    async def test_insecure_channel_created(self) -> None:
        """Without TLS a plaintext channel should be built."""
        connection = BackendConnection(make_config())

        channel = connection._create_channel()

        assert isinstance(channel, grpc.aio.Channel)
        await channel.close()
