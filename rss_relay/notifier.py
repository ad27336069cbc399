"""
Feed change notifier.

Polls a feed on a fixed interval and emits its newest entry whenever
the entry's guid changes.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Protocol

from rss_relay.rss_parser import FeedEvent

logger = logging.getLogger(__name__)


class LatestEntryFetcher(Protocol):
    """Anything able to return the newest entry of a feed."""

    async def fetch_latest(self, url: str) -> FeedEvent:
        ...


class Notify:
    """
    Poll loop for a single feed.

    Only the newest entry is examined on each poll, so several entries
    published between two polls are reported as the latest one only.
    The first successful poll records a baseline and emits nothing.
    """

    def __init__(self, fetcher: LatestEntryFetcher, url: str, interval: float):
        """
        Initialize the notifier.

        Parameters
        ----------
        fetcher : LatestEntryFetcher
            Source of the newest feed entry (usually a FeedParser).
        url : str
            URL of the feed to poll.
        interval : float
            Seconds to wait between two polls.
        """
        self.fetcher = fetcher
        self.url = url
        self.interval = interval
        self.last_guid = ""

    async def check(self) -> FeedEvent | None:
        """
        Run one fetch-and-compare cycle.

        Returns
        -------
        FeedEvent | None
            The newest entry if it changed since the previous poll,
            None on the first poll, on repeats and on fetch failures.
        """
        try:
            event = await self.fetcher.fetch_latest(self.url)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Failed to fetch/parse feed %s: %s", self.url, e)
            return None

        if event.guid == self.last_guid:
            logger.debug("No new entry in %s", self.url)
            return None

        first_poll = self.last_guid == ""
        self.last_guid = event.guid
        if first_poll:
            logger.info("Ignore first event %s - %s", event.guid, event.title)
            return None

        logger.info("New event %s - %s", event.guid, event.title)
        return event

    async def go(self, stop: asyncio.Event) -> AsyncIterator[FeedEvent]:
        """
        Start polling and yield every detected change.

        The poll loop runs in its own task and hands events over through a
        single-slot queue, so it waits while the consumer is still busy with
        the previous event. The stream ends once ``stop`` is set.

        Parameters
        ----------
        stop : asyncio.Event
            Cancellation signal, observed at each wait between polls.

        Yields
        ------
        FeedEvent
            Newly detected feed entries.
        """
        logger.info("Start notifier for %s, every %ss", self.url, self.interval)
        queue: asyncio.Queue[FeedEvent | None] = asyncio.Queue(maxsize=1)
        task = asyncio.create_task(self._poll(queue, stop))

        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield event
        finally:
            if not task.done():
                task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def _poll(self, queue: "asyncio.Queue[FeedEvent | None]", stop: asyncio.Event) -> None:
        """Poll until stopped, then close the stream."""
        while not stop.is_set():
            event = await self.check()
            if event is not None:
                await queue.put(event)
            if not await self._wait(stop):
                logger.warning("Notifier canceled")
                break
        await queue.put(None)

    async def _wait(self, stop: asyncio.Event) -> bool:
        """
        Wait for the poll interval.

        Returns
        -------
        bool
            True if the interval elapsed, False if ``stop`` was set.
        """
        try:
            await asyncio.wait_for(stop.wait(), timeout=self.interval)
        except asyncio.TimeoutError:
            return True
        return False
