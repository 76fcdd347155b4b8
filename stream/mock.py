"""Mock Geyser channel for running without a real connection."""

import asyncio
import logging
import random
import time
from typing import AsyncIterator, Optional

import base58

from . import geyser_pb2

logger = logging.getLogger(__name__)


class MockEventStream:
    """Synthetic update stream; slots increase by one per update."""

    def __init__(
        self,
        request: geyser_pb2.SubscribeRequest,
        start_slot: int,
        max_updates: Optional[int] = None,
        min_delay: float = 0.05,
        max_delay: float = 0.4,
    ):
        self.request = request
        self.max_updates = max_updates
        self.min_delay = min_delay
        self.max_delay = max_delay
        self._slot = start_slot
        self._cancelled = False

    def __aiter__(self) -> AsyncIterator[geyser_pb2.SubscribeUpdate]:
        return self._generate()

    async def _generate(self) -> AsyncIterator[geyser_pb2.SubscribeUpdate]:
        emitted = 0
        while not self._cancelled:
            if self.max_updates is not None and emitted >= self.max_updates:
                break

            yield self._next_update()
            emitted += 1

            # Random delay to simulate slot cadence
            await asyncio.sleep(random.uniform(self.min_delay, self.max_delay))

    def _next_update(self) -> geyser_pb2.SubscribeUpdate:
        roll = random.random()
        if roll < 0.05:
            update = geyser_pb2.SubscribeUpdate()
            update.ping.SetInParent()
            return update

        if self.request.accounts and roll < 0.3:
            filter_name = random.choice(list(self.request.accounts))
            return geyser_pb2.SubscribeUpdate(
                filters=[filter_name],
                account=self._generate_mock_account(filter_name),
            )

        self._slot += 1
        return geyser_pb2.SubscribeUpdate(
            filters=list(self.request.slots),
            slot=geyser_pb2.SubscribeUpdateSlot(
                slot=self._slot,
                parent=self._slot - 1,
                status=geyser_pb2.SlotStatus.SLOT_PROCESSED,
            ),
        )

    def _generate_mock_account(self, filter_name: str) -> geyser_pb2.SubscribeUpdateAccount:
        accounts = self.request.accounts[filter_name].account
        try:
            pubkey = base58.b58decode(accounts[0]) if accounts else None
        except ValueError:
            pubkey = None
        if pubkey is None:
            pubkey = bytes(random.getrandbits(8) for _ in range(32))

        return geyser_pb2.SubscribeUpdateAccount(
            account=geyser_pb2.SubscribeUpdateAccountInfo(
                pubkey=pubkey,
                lamports=int(random.uniform(0.01, 100) * 1e9),
                owner=bytes(random.getrandbits(8) for _ in range(32)),
                data=bytes(random.getrandbits(8) for _ in range(random.randint(0, 165))),
                write_version=random.getrandbits(32),
            ),
            slot=self._slot,
        )

    def cancel(self) -> bool:
        self._cancelled = True
        return True


class MockGeyserChannel:
    """
    Mock channel for testing without a real connection.

    Records the submitted request and returns a synthetic stream.
    """

    def __init__(self, max_updates: Optional[int] = None, start_slot: Optional[int] = None):
        self.max_updates = max_updates
        # Roughly mainnet-sized slot numbers
        self.start_slot = start_slot if start_slot is not None else 250_000_000 + int(time.time()) % 1_000_000
        self.requests = []

    async def connect(self):
        """Mock connection."""
        logger.info("Mock Geyser channel connected")

    async def close(self):
        """Mock disconnect."""
        logger.info("Mock Geyser channel disconnected")

    async def subscribe(self, request: geyser_pb2.SubscribeRequest) -> MockEventStream:
        self.requests.append(request)
        return MockEventStream(request, self.start_slot, max_updates=self.max_updates)
