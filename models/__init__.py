"""Data models for Geyserwatch."""

from .filters import (
    FilterSelection,
    SlotReport,
    StreamState,
    UpdateKind,
)

__all__ = [
    "FilterSelection",
    "SlotReport",
    "StreamState",
    "UpdateKind",
]
