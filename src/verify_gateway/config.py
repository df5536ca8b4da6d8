"""Configuration module using pydantic-settings.

This module provides environment variable management for the verification
gateway. Uses pydantic-settings for automatic validation and .env file support.

Author: Matthew Hong
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Attributes:
        HOST: Inbound gRPC bind address
        PORT: Inbound gRPC server port
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        TRITON_ENDPOINT: Triton gRPC endpoint (host:port or URL)
        TRITON_MODEL_NAME: Model to run verification on
        TRITON_INPUT_NAME: Name of the model's image input tensor
        TRITON_OUTPUT_NAME: Name of the model's score output tensor
        TRITON_USE_TLS: Secure the backend channel with TLS
        TRITON_CA_CERT_PATH: Optional PEM file used as the TLS trust root
        TRITON_CONNECT_TIMEOUT_SECONDS: Cap on the backend handshake
        TRITON_CALL_TIMEOUT_SECONDS: Cap on a single inference RPC
        TRITON_WAIT_FOR_READY: Block startup until the backend reports ready
        TRITON_READY_TIMEOUT_SECONDS: Maximum wait for backend readiness
        VERIFY_THRESHOLD: Minimum score for a successful verification
        IMAGE_SIZE: Square spatial resolution of the model input
    """

    HOST: str = "[::]"
    PORT: int = 50051
    LOG_LEVEL: str = "INFO"

    TRITON_ENDPOINT: str = "http://triton:8001"
    TRITON_MODEL_NAME: str = "face_verification"
    TRITON_INPUT_NAME: str = "input"
    TRITON_OUTPUT_NAME: str = "output"
    TRITON_USE_TLS: bool = False
    TRITON_CA_CERT_PATH: Optional[str] = None
    TRITON_CONNECT_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)
    TRITON_CALL_TIMEOUT_SECONDS: float = Field(default=15.0, gt=0)
    TRITON_WAIT_FOR_READY: bool = False
    TRITON_READY_TIMEOUT_SECONDS: int = 60

    VERIFY_THRESHOLD: float = 0.5
    IMAGE_SIZE: int = Field(default=224, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings instance (singleton pattern).

    Returns:
        Settings instance loaded from environment
    """
    return Settings()
