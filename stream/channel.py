"""Yellowstone gRPC channel: connection setup and per-item decoding."""

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Callable, List, Optional, Tuple, Union

import grpc
from google.protobuf.message import DecodeError
from grpc import aio as grpc_aio

from config.settings import Settings, settings as default_settings
from . import geyser_pb2

logger = logging.getLogger(__name__)

SUBSCRIBE_METHOD = "/geyser.Geyser/Subscribe"


class ChannelSetupError(RuntimeError):
    """The channel could not be opened or the subscription could not start."""


@dataclass
class ConnectionConfig:
    """All parameters needed to reach a Yellowstone endpoint."""
    endpoint: str
    token: Optional[str] = None
    connect_timeout: float = 10.0
    timeout: float = 10.0
    keepalive_interval: float = 10.0
    keepalive_timeout: float = 3.0
    keepalive_while_idle: bool = True
    max_receive_message_length: int = 64 * 1024 * 1024

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        endpoint: Optional[str] = None,
        token: Optional[str] = None,
    ) -> "ConnectionConfig":
        """Build from settings, letting explicit endpoint/token win."""
        s = settings or default_settings
        return cls(
            endpoint=endpoint or s.geyser_endpoint,
            token=token or s.geyser_token,
            connect_timeout=s.geyser_connect_timeout_seconds,
            timeout=s.geyser_timeout_seconds,
            keepalive_timeout=s.geyser_keepalive_timeout_seconds,
            keepalive_while_idle=s.geyser_keepalive_while_idle,
            max_receive_message_length=s.geyser_max_message_mb * 1024 * 1024,
        )

    @property
    def secure(self) -> bool:
        return not self.endpoint.startswith("http://")

    @property
    def target(self) -> str:
        """gRPC target (host:port) without URL scheme."""
        target = self.endpoint.split("://", 1)[-1].rstrip("/")
        if ":" not in target:
            target = f"{target}:{443 if self.secure else 80}"
        return target

    def channel_options(self) -> List[Tuple[str, int]]:
        return [
            ("grpc.max_receive_message_length", self.max_receive_message_length),
            ("grpc.keepalive_time_ms", int(self.keepalive_interval * 1000)),
            ("grpc.keepalive_timeout_ms", int(self.keepalive_timeout * 1000)),
            ("grpc.keepalive_permit_without_calls", int(self.keepalive_while_idle)),
        ]


@dataclass
class UndecodableUpdate:
    """A stream item that arrived but could not be decoded."""
    raw: bytes
    error: Exception


StreamItem = Union[geyser_pb2.SubscribeUpdate, UndecodableUpdate]


def _serialize_request(request) -> bytes:
    return request.SerializeToString()


class EventStream:
    """
    Lazy, non-restartable sequence of decoded updates from one Subscribe call.

    Items that fail to decode are yielded as ``UndecodableUpdate`` so the
    consumer can skip them without losing the call.
    """

    def __init__(
        self,
        call,
        decode: Callable[[bytes], geyser_pb2.SubscribeUpdate] = geyser_pb2.SubscribeUpdate.FromString,
    ):
        self._call = call
        self._decode = decode
        self._consumed = False

    def __aiter__(self) -> AsyncIterator[StreamItem]:
        if self._consumed:
            raise RuntimeError("Event stream can only be iterated once")
        self._consumed = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[StreamItem]:
        async for raw in self._call:
            try:
                yield self._decode(raw)
            except DecodeError as e:
                yield UndecodableUpdate(raw=raw, error=e)

    def cancel(self) -> bool:
        """Cancel the underlying call."""
        return self._call.cancel()


class GeyserChannel:
    """
    Connection to a Yellowstone gRPC endpoint.

    Owns one gRPC aio channel; ``subscribe`` opens the bidirectional
    Subscribe call and submits the request exactly once.
    """

    def __init__(self, config: ConnectionConfig):
        self.config = config
        self._channel: Optional[grpc_aio.Channel] = None

    @property
    def is_open(self) -> bool:
        return self._channel is not None

    def _create_channel(self) -> grpc_aio.Channel:
        options = self.config.channel_options()
        if not self.config.secure:
            return grpc_aio.insecure_channel(self.config.target, options=options)

        credentials = grpc.ssl_channel_credentials()
        if self.config.token:
            token = self.config.token
            call_credentials = grpc.metadata_call_credentials(
                lambda context, callback: callback(
                    [("x-token", token)],
                    None
                )
            )
            credentials = grpc.composite_channel_credentials(
                credentials, call_credentials
            )
        return grpc_aio.secure_channel(self.config.target, credentials, options=options)

    async def connect(self):
        """Open the channel and wait until it is ready."""
        self._channel = self._create_channel()
        try:
            await asyncio.wait_for(
                self._channel.channel_ready(),
                timeout=self.config.connect_timeout,
            )
        except asyncio.TimeoutError:
            await self.close()
            raise ChannelSetupError(
                f"Timed out after {self.config.connect_timeout}s connecting to {self.config.endpoint}"
            )
        logger.info(f"Connected to Yellowstone at {self.config.endpoint}")

    async def close(self):
        """Close gRPC connection."""
        if self._channel:
            await self._channel.close()
            self._channel = None
            logger.info("Disconnected from Yellowstone")

    async def __aenter__(self) -> "GeyserChannel":
        if not self.is_open:
            await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _call_metadata(self) -> Optional[List[Tuple[str, str]]]:
        # Secure channels attach the token through call credentials
        if self.config.token and not self.config.secure:
            return [("x-token", self.config.token)]
        return None

    async def subscribe(self, request: geyser_pb2.SubscribeRequest) -> EventStream:
        """
        Open the Subscribe call carrying a single request.

        Waits for the server's response headers (up to the request timeout)
        so that rejected subscriptions fail here rather than mid-stream.
        """
        if self._channel is None:
            raise ChannelSetupError("Channel is not open")

        async def request_iterator():
            yield request

        # No response deserializer: items are decoded one by one in EventStream
        subscribe = self._channel.stream_stream(
            SUBSCRIBE_METHOD,
            request_serializer=_serialize_request,
        )
        call = subscribe(request_iterator(), metadata=self._call_metadata())

        try:
            await asyncio.wait_for(call.initial_metadata(), timeout=self.config.timeout)
        except asyncio.TimeoutError:
            call.cancel()
            raise ChannelSetupError(
                f"No response to subscribe request within {self.config.timeout}s"
            )

        return EventStream(call)


async def open_channel(config: ConnectionConfig) -> GeyserChannel:
    """Open a ready channel or raise ChannelSetupError."""
    channel = GeyserChannel(config)
    await channel.connect()
    return channel
