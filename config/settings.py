"""Pydantic settings for Geyserwatch configuration."""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Yellowstone gRPC
    geyser_endpoint: str = Field(
        default="https://api.mainnet-beta.solana.com:443",
        description="Yellowstone gRPC endpoint"
    )
    geyser_token: Optional[str] = Field(
        default=None,
        description="X-Token for authentication (if required)"
    )

    # Connection tuning
    geyser_connect_timeout_seconds: float = Field(
        default=10.0,
        description="Time allowed for the channel to become ready"
    )
    geyser_timeout_seconds: float = Field(
        default=10.0,
        description="Per-request timeout for unary calls"
    )
    geyser_keepalive_timeout_seconds: float = Field(
        default=3.0,
        description="Keep-alive ping acknowledgement timeout"
    )
    geyser_keepalive_while_idle: bool = Field(
        default=True,
        description="Send keep-alive pings with no active calls"
    )
    geyser_max_message_mb: int = Field(
        default=64,
        description="Max inbound message size in MiB"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore"
    }


# Global settings instance
settings = Settings()
