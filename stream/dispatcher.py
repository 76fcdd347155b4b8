"""Update stream dispatch loop for a single Geyser subscription."""

import asyncio
import inspect
import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional

import grpc

from models.filters import SlotReport, StreamState, UpdateKind
from . import geyser_pb2
from .channel import UndecodableUpdate

logger = logging.getLogger(__name__)


def log_slot_report(report: SlotReport):
    """Default slot reporter."""
    logger.info(f"Slot update {report.slot} time {report.format_time()}")


async def _invoke(handler: Callable, arg: Any):
    result = handler(arg)
    if inspect.isawaitable(result):
        await result


class UpdateDispatcher:
    """
    Drives one subscription: submits the request, then consumes the update
    stream in delivery order until it ends or ``stop()`` is called.

    Slot updates are turned into ``SlotReport`` values and passed to
    ``on_slot``. Every other kind is a no-op unless a handler is registered
    for it. Items that failed to decode are skipped.

    States: DISCONNECTED -> SUBSCRIBING -> STREAMING -> CLOSED (terminal).
    """

    def __init__(
        self,
        channel,
        request: geyser_pb2.SubscribeRequest,
        on_slot: Optional[Callable[[SlotReport], Any]] = None,
        handlers: Optional[Dict[UpdateKind, Callable]] = None,
        stop_event: Optional[asyncio.Event] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.channel = channel
        self.request = request
        self._on_slot = on_slot or log_slot_report
        self._handlers: Dict[UpdateKind, Callable] = dict(handlers or {})
        self._stop_event = stop_event or asyncio.Event()
        self._clock = clock

        self._state = StreamState.DISCONNECTED
        self._stream = None

        # Stats
        self._counts: Dict[UpdateKind, int] = {kind: 0 for kind in UpdateKind}
        self._skipped_count = 0
        self._unknown_count = 0
        self._last_slot = 0
        self._start_time = 0

    @property
    def state(self) -> StreamState:
        """Get current lifecycle state."""
        return self._state

    def register(self, kind: UpdateKind, handler: Callable):
        """Attach a handler receiving the payload of every ``kind`` update."""
        self._handlers[kind] = handler

    def stop(self):
        """Signal to stop streaming."""
        self._stop_event.set()

    async def _cancel_on_stop(self):
        await self._stop_event.wait()
        if self._stream is not None:
            self._stream.cancel()

    async def run(self):
        """
        Subscribe and process updates until the stream closes.

        Errors raised while subscribing propagate. Once streaming, a gRPC
        error ends the run without retry.
        """
        if self._state != StreamState.DISCONNECTED:
            raise RuntimeError(f"Dispatcher cannot run from state {self._state.value}")

        self._state = StreamState.SUBSCRIBING
        try:
            self._stream = await self.channel.subscribe(self.request)
        except BaseException:
            self._state = StreamState.CLOSED
            raise

        self._state = StreamState.STREAMING
        self._start_time = time.time()
        logger.info("Subscription open, streaming updates")

        watcher = asyncio.create_task(self._cancel_on_stop())
        try:
            async for item in self._stream:
                if self._stop_event.is_set():
                    break

                if isinstance(item, UndecodableUpdate):
                    self._skipped_count += 1
                    logger.debug(f"Skipping undecodable update ({len(item.raw)} bytes): {item.error}")
                    continue

                await self.dispatch(item)

            if not self._stop_event.is_set():
                logger.info("Update stream closed by server")

        except asyncio.CancelledError:
            # Cancelled call after stop() is an orderly exit
            if not self._stop_event.is_set():
                raise

        except grpc.RpcError as e:
            logger.error(f"gRPC error: {e.code()} - {e.details()}")

        finally:
            self._state = StreamState.CLOSED
            watcher.cancel()
            await asyncio.gather(watcher, return_exceptions=True)
            logger.info("Dispatcher closed")

    async def dispatch(self, update: geyser_pb2.SubscribeUpdate) -> Optional[UpdateKind]:
        """
        Route one update by kind.

        Returns the kind handled, or None for updates carrying no known
        variant.
        """
        name = update.WhichOneof("update_oneof")
        if name is None:
            logger.debug("Ignoring update with no payload")
            return None

        try:
            kind = UpdateKind(name)
        except ValueError:
            self._unknown_count += 1
            logger.debug(f"Ignoring unknown update kind: {name}")
            return None

        self._counts[kind] += 1
        payload = getattr(update, name)

        if kind == UpdateKind.SLOT:
            self._last_slot = payload.slot
            await _invoke(self._on_slot, SlotReport(slot=payload.slot, captured_at=self._clock()))
        elif kind == UpdateKind.PING:
            logger.debug("Received ping")
        elif kind == UpdateKind.PONG:
            logger.debug(f"Received pong: {payload.id}")

        handler = self._handlers.get(kind)
        if handler is not None:
            await _invoke(handler, payload)

        return kind

    def get_stats(self) -> dict:
        """Get streaming statistics."""
        uptime = time.time() - self._start_time if self._start_time > 0 else 0
        total = sum(self._counts.values())

        return {
            "state": self._state.value,
            "updates": {kind.value: count for kind, count in self._counts.items()},
            "total_updates": total,
            "skipped_count": self._skipped_count,
            "unknown_count": self._unknown_count,
            "last_slot": self._last_slot,
            "uptime_seconds": uptime,
            "updates_per_second": total / uptime if uptime > 0 else 0,
        }
