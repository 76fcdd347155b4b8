"""Filter selection and update-stream value types."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class UpdateKind(str, Enum):
    """
    Update variants delivered by the Geyser stream.

    Values are the field names of the ``update_oneof`` group in
    ``SubscribeUpdate``.
    """
    ACCOUNT = "account"
    SLOT = "slot"
    TRANSACTION = "transaction"
    TRANSACTION_STATUS = "transaction_status"
    BLOCK = "block"
    BLOCK_META = "block_meta"
    ENTRY = "entry"
    PING = "ping"
    PONG = "pong"


class StreamState(str, Enum):
    """Subscription lifecycle states."""
    DISCONNECTED = "disconnected"
    SUBSCRIBING = "subscribing"
    STREAMING = "streaming"
    CLOSED = "closed"  # Terminal


@dataclass(frozen=True)
class FilterSelection:
    """
    Caller's choice of update categories.

    The toggles are independent; any combination (including none) is valid.
    ``label`` is only used to name filters when several selections share
    one subscription.
    """
    account: Optional[str] = None
    blocks: bool = False
    transactions: bool = False
    label: Optional[str] = None


@dataclass(frozen=True)
class SlotReport:
    """Slot number observed on the stream with its local capture time."""
    slot: int
    captured_at: datetime

    def format_time(self) -> str:
        # Millisecond precision
        return self.captured_at.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
