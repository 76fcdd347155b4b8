"""
Geyserwatch: Yellowstone gRPC subscription client

Main entry point for the application.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional, Union

from config.filters import check_solana_address, load_filter_selections
from config.settings import settings
from models.filters import FilterSelection
from stream.channel import ConnectionConfig, GeyserChannel, open_channel
from stream.dispatcher import UpdateDispatcher
from stream.mock import MockGeyserChannel
from stream.subscription import SubscriptionBuilder, request_categories

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)

logger = logging.getLogger("geyserwatch")


class Application:
    """Opens the channel, submits the subscription and runs the dispatcher."""

    def __init__(
        self,
        config: ConnectionConfig,
        selections: List[FilterSelection],
        use_mock: bool = False,
        max_updates: Optional[int] = None,
    ):
        self.config = config
        self.selections = selections
        self.use_mock = use_mock
        self.max_updates = max_updates

        self.channel: Optional[Union[GeyserChannel, MockGeyserChannel]] = None
        self.dispatcher: Optional[UpdateDispatcher] = None
        self._stop_requested = False

    async def start(self):
        """Build the request and open the channel."""
        request = SubscriptionBuilder().add_all(self.selections).build()
        categories = request_categories(request)
        if not categories:
            logger.warning("No filters selected; only keep-alive updates will arrive")
        else:
            logger.info(f"Subscribing to {categories}")

        if self.use_mock:
            self.channel = MockGeyserChannel(max_updates=self.max_updates)
            await self.channel.connect()
        else:
            self.channel = await open_channel(self.config)

        self.dispatcher = UpdateDispatcher(self.channel, request)
        if self._stop_requested:
            self.dispatcher.stop()

        logger.info(f"Connected to Yellowstone gRPC at {self.config.endpoint}")

    async def run(self):
        """Stream until the server closes the subscription or stop() is called."""
        await self.dispatcher.run()
        logger.info(f"Final stats: {self.dispatcher.get_stats()}")

    def stop(self):
        """Request a graceful stop."""
        self._stop_requested = True
        if self.dispatcher:
            self.dispatcher.stop()

    async def close(self):
        if self.channel:
            await self.channel.close()
            self.channel = None


def setup_signal_handlers(app: Application):
    """Setup cross-platform signal handlers for graceful shutdown."""
    def handler(signum, frame):
        sig_name = signal.Signals(signum).name
        logger.info(f"Received {sig_name}, initiating graceful shutdown...")
        try:
            loop = asyncio.get_running_loop()
            loop.call_soon_threadsafe(app.stop)
        except RuntimeError:
            # No running loop yet
            app.stop()

    signal.signal(signal.SIGINT, handler)
    signal.signal(signal.SIGTERM, handler)

    # Windows-specific: SIGBREAK (Ctrl+Break)
    if hasattr(signal, 'SIGBREAK'):
        signal.signal(signal.SIGBREAK, handler)


def solana_address(value: str) -> str:
    """argparse type: base58 string decoding to a 32-byte public key."""
    try:
        return check_solana_address(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Geyserwatch - Yellowstone gRPC subscription client")
    parser.add_argument(
        "--endpoint",
        type=str,
        default=None,
        help="Yellowstone gRPC endpoint (default: GEYSER_ENDPOINT or settings)"
    )
    parser.add_argument(
        "--token",
        type=str,
        default=None,
        help="X-Token for authentication (default: GEYSER_TOKEN)"
    )
    parser.add_argument(
        "--account",
        type=solana_address,
        default=None,
        help="Account address to subscribe to"
    )
    parser.add_argument(
        "--blocks",
        action="store_true",
        help="Subscribe to blocks (also subscribes to slots)"
    )
    parser.add_argument(
        "--transactions",
        action="store_true",
        help="Subscribe to non-vote, successful transactions"
    )
    parser.add_argument(
        "--filters-file",
        type=str,
        default=None,
        help="YAML file with additional named filter selections"
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use mock stream instead of real Yellowstone connection"
    )
    parser.add_argument(
        "--max-updates",
        type=int,
        default=None,
        help="Stop the mock stream after this many updates"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )
    return parser.parse_args(argv)


def selections_from_args(args: argparse.Namespace) -> List[FilterSelection]:
    """Command-line toggles first, then any selections from the filters file."""
    selections = [
        FilterSelection(
            account=args.account,
            blocks=args.blocks,
            transactions=args.transactions,
        )
    ]
    if args.filters_file:
        selections.extend(load_filter_selections(args.filters_file))
    return selections


async def main(args: argparse.Namespace):
    """Main entry point."""
    config = ConnectionConfig.from_settings(endpoint=args.endpoint, token=args.token)
    app = Application(
        config=config,
        selections=selections_from_args(args),
        use_mock=args.mock,
        max_updates=args.max_updates,
    )

    setup_signal_handlers(app)

    try:
        await app.start()
        await app.run()
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        raise
    finally:
        await app.close()


def cli():
    args = parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    asyncio.run(main(args))


if __name__ == "__main__":
    cli()
