"""
Console publisher used in dry mode.
"""

import logging

from rss_relay.filters import ExclusionList
from rss_relay.formatter import SHORT_LINK_LENGTH, TWEET_MAX_LENGTH
from rss_relay.publisher import MessageFormatter
from rss_relay.rss_parser import FeedEvent

logger = logging.getLogger(__name__)


class ConsolePublisher:
    """Write messages to the log instead of posting them."""

    name = "console"

    def __init__(
        self,
        exclusions: ExclusionList | None = None,
        max_length: int = TWEET_MAX_LENGTH,
        link_length: int | None = SHORT_LINK_LENGTH,
    ):
        self.exclusions = exclusions or ExclusionList()
        self.max_length = max_length
        self.link_length = link_length

    async def test_connection(self) -> bool:
        return True

    async def publish(self, event: FeedEvent, formatter: MessageFormatter) -> bool:
        message = formatter(event)
        if self.exclusions.matches(message):
            return False
        logger.info("Event - %s", message)
        return True

    async def close(self) -> None:
        pass
