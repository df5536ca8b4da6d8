"""Error taxonomy for the verification gateway.

Every failure raised by the core is a GatewayError subclass so the inbound
servicer can map it to a gRPC status in one place.

Author: Matthew Hong
"""


class GatewayError(Exception):
    """Base class for all gateway core errors."""


class DecodeError(GatewayError, ValueError):
    """Image bytes could not be decoded into a pixel grid."""


class ConfigurationError(GatewayError):
    """Backend endpoint, TLS or certificate setup is invalid.

    Not retryable: an operator has to fix the configuration.
    """


class TransportError(GatewayError, ConnectionError):
    """Connecting to the backend or running the inference RPC failed."""


class InvalidResponseError(GatewayError):
    """The backend replied but the payload is structurally unusable."""
