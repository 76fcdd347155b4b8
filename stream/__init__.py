"""Stream module for Yellowstone gRPC subscriptions."""

from .channel import (
    ChannelSetupError,
    ConnectionConfig,
    EventStream,
    GeyserChannel,
    UndecodableUpdate,
    open_channel,
)
from .dispatcher import UpdateDispatcher
from .mock import MockGeyserChannel
from .subscription import SubscriptionBuilder, build_subscribe_request

__all__ = [
    "ChannelSetupError",
    "ConnectionConfig",
    "EventStream",
    "GeyserChannel",
    "UndecodableUpdate",
    "open_channel",
    "UpdateDispatcher",
    "MockGeyserChannel",
    "SubscriptionBuilder",
    "build_subscribe_request",
]
