"""
Main entry point for RSS Relay.

Runs the async loop that polls the feed and publishes new entries.
"""

import argparse
import asyncio
import io
import logging
import signal
import sys
from functools import partial
from pathlib import Path
from urllib.parse import urlparse

import coloredlogs
import yaml

from rss_relay import __version__
from rss_relay.config import load_config
from rss_relay.console import ConsolePublisher
from rss_relay.filters import ExclusionList
from rss_relay.formatter import format_message
from rss_relay.notifier import Notify
from rss_relay.publisher import Publisher, PublishError
from rss_relay.rss_parser import FeedEvent, FeedParser
from rss_relay.telegram import TelegramPublisher
from rss_relay.twitter import TwitterPublisher

logger = logging.getLogger(__name__)


def redact_proxy_url(proxy_url: str) -> str:
    """
    Redact credentials from a proxy URL for safe logging.

    Parameters
    ----------
    proxy_url : str
        The proxy URL potentially containing credentials.

    Returns
    -------
    str
        The proxy URL with password redacted.
    """
    try:
        parsed = urlparse(proxy_url)
        if parsed.password:
            netloc = parsed.hostname or ""
            if parsed.port:
                netloc = f"{netloc}:{parsed.port}"
            if parsed.username:
                netloc = f"{parsed.username}:****@{netloc}"
            return f"{parsed.scheme}://{netloc}{parsed.path}"
        return proxy_url
    except ValueError:
        return "<proxy url>"


def get_dump() -> str:
    """
    Return the stacks of all running asyncio tasks.

    Must be called from within the event loop.
    """
    buf = io.StringIO()
    for task in asyncio.all_tasks():
        buf.write(f"{task!r}\n")
        task.print_stack(file=buf)
    return buf.getvalue()


def dump_tasks() -> None:
    """Log the stacks of all running asyncio tasks."""
    logger.info("SIGQUIT detected, dump:\n%s", get_dump())


class RSSRelay:
    """
    Main RSS relay application.

    Wires the feed notifier to the publishers and runs the consume loop.
    """

    def __init__(self, config_path: str | Path, dry_run: bool = False):
        """
        Initialize the RSS relay.

        Parameters
        ----------
        config_path : str | Path
            Path to the YAML configuration file.
        dry_run : bool
            Log messages instead of posting them, whatever the config says.
        """
        self.config = load_config(config_path, dry_run=dry_run)
        self.parser: FeedParser | None = None
        self.notifier: Notify | None = None
        self.publishers: list[Publisher] = []
        self._stop = asyncio.Event()

    def build_publishers(self) -> list[Publisher]:
        """
        Create the publishers selected by the configuration.

        Returns
        -------
        list[Publisher]
            The console publisher in dry mode, otherwise every configured
            remote publisher.
        """
        exclusions = ExclusionList.from_file(self.config.exclusion_patterns_file)

        if self.config.dry_run:
            logger.info("Dry mode, messages are only logged")
            return [ConsolePublisher(exclusions)]

        publishers: list[Publisher] = []
        if self.config.twitter:
            publishers.append(TwitterPublisher(self.config.twitter, exclusions))
        if self.config.telegram:
            publishers.append(
                TelegramPublisher(
                    self.config.telegram,
                    exclusions,
                    proxy_url=self.config.feed.proxy,
                )
            )
        return publishers

    async def start(self) -> None:
        """Start the RSS relay and run until stopped."""
        logger.info("Starting RSS Relay %s", __version__)

        feed = self.config.feed
        if feed.proxy:
            logger.info("Using proxy: %s", redact_proxy_url(feed.proxy))

        self.parser = FeedParser(
            timeout=feed.request_timeout,
            user_agent=feed.user_agent,
            proxy_url=feed.proxy,
        )
        self.notifier = Notify(self.parser, feed.url, feed.refresh_interval)
        self.publishers = self.build_publishers()

        for publisher in self.publishers:
            if not await publisher.test_connection():
                logger.error("Failed to connect to %s, exiting", publisher.name)
                await self.stop()
                sys.exit(1)

        await self.run()

    async def run(self) -> None:
        """Publish every event the notifier emits until the stream ends."""
        if not self.notifier:
            raise RuntimeError("Components not initialized")

        logger.info("Message template - %r", self.config.template)
        async for event in self.notifier.go(self._stop):
            await self.publish(event)
        logger.info("Event stream closed")

    async def publish(self, event: FeedEvent) -> None:
        """
        Deliver one event to every publisher.

        Publish failures are logged and do not stop the relay.

        Parameters
        ----------
        event : FeedEvent
            The event to deliver.
        """
        for publisher in self.publishers:
            formatter = partial(
                format_message,
                template=self.config.template,
                max_length=publisher.max_length,
                link_length=publisher.link_length,
            )
            try:
                await publisher.publish(event, formatter)
            except PublishError as e:
                logger.warning("Failed to publish to %s: %s", publisher.name, e)
            except Exception as e:
                logger.error("Unexpected error publishing to %s: %s", publisher.name, e)

    def shutdown(self) -> None:
        """Ask the notifier to stop after its current poll."""
        logger.warning("Interrupt signal")
        self._stop.set()

    async def stop(self) -> None:
        """Stop the RSS relay and close its components."""
        self._stop.set()

        if self.parser:
            await self.parser.close()
        for publisher in self.publishers:
            await publisher.close()
        self.publishers = []

        logger.info("RSS Relay stopped")


def setup_logging(verbose: bool = False) -> None:
    """
    Configure application logging.

    Parameters
    ----------
    verbose : bool
        If True, set log level to DEBUG.
    """
    level = logging.DEBUG if verbose else logging.INFO

    coloredlogs.install(
        level=level,
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    for name in ("aiohttp", "httpx", "httpcore", "telegram", "tweepy"):
        logging.getLogger(name).setLevel(logging.WARNING)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Forward new RSS entries to Twitter or Telegram",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "-c",
        "--config",
        default="config.yaml",
        help="Path to configuration file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--dry",
        action="store_true",
        help="Log messages instead of publishing them",
    )
    args = parser.parse_args()

    setup_logging(args.verbose)

    config_path = Path(args.config)
    if not config_path.exists():
        logger.error("Configuration file not found: %s", config_path)
        sys.exit(1)

    try:
        relay = RSSRelay(config_path, dry_run=args.dry)
    except (ValueError, yaml.YAMLError) as e:
        logger.error("Failed to setup: %s", e)
        sys.exit(1)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, relay.shutdown)
    if hasattr(signal, "SIGQUIT"):
        loop.add_signal_handler(signal.SIGQUIT, dump_tasks)

    try:
        loop.run_until_complete(relay.start())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        loop.run_until_complete(relay.stop())
        loop.close()

    logger.info("Terminated")


if __name__ == "__main__":
    main()
