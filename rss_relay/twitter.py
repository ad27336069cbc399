"""
Twitter (X) publisher.

Posts messages as tweets through the Twitter API v2 using tweepy's
asynchronous client.
"""

import asyncio
import logging

import aiohttp
from tweepy.asynchronous import AsyncClient
from tweepy.errors import TweepyException

from rss_relay.config import TwitterConfig
from rss_relay.filters import ExclusionList
from rss_relay.formatter import SHORT_LINK_LENGTH, TWEET_MAX_LENGTH
from rss_relay.publisher import MessageFormatter, PublishError
from rss_relay.rss_parser import FeedEvent

logger = logging.getLogger(__name__)


class TwitterPublisher:
    """
    Twitter publishing client.

    Posts each message as a tweet with OAuth 1.0a user credentials.
    Links are counted at the length of Twitter's shortened links.
    """

    name = "twitter"
    max_length = TWEET_MAX_LENGTH
    link_length: int | None = SHORT_LINK_LENGTH

    def __init__(self, config: TwitterConfig, exclusions: ExclusionList | None = None):
        """
        Initialize the Twitter publisher.

        Parameters
        ----------
        config : TwitterConfig
            Consumer and access credentials.
        exclusions : ExclusionList | None
            Patterns of messages that must not be posted.
        """
        self.config = config
        self.exclusions = exclusions or ExclusionList()
        self._client = AsyncClient(
            consumer_key=config.consumer_key,
            consumer_secret=config.consumer_secret,
            access_token=config.access_token,
            access_token_secret=config.access_secret,
        )

    async def publish(self, event: FeedEvent, formatter: MessageFormatter) -> bool:
        """
        Post an event as a tweet.

        Parameters
        ----------
        event : FeedEvent
            The event to post.
        formatter : MessageFormatter
            Turns the event into the tweet text.

        Returns
        -------
        bool
            True if the tweet was posted, False if it was excluded.

        Raises
        ------
        PublishError
            If Twitter rejected the tweet or could not be reached.
        """
        logger.info("Publish to twitter: %s", event.title)
        message = formatter(event)
        if self.exclusions.matches(message):
            return False

        try:
            response = await self._client.create_tweet(text=message)
        except (TweepyException, aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise PublishError(f"Can't send to twitter: {e}") from e

        logger.debug(
            "Published to twitter (id %s): %s",
            (response.data or {}).get("id"),
            message.replace("\n", " "),
        )
        return True

    async def test_connection(self) -> bool:
        """
        Test the Twitter credentials.

        Returns
        -------
        bool
            True if the authenticated user could be fetched.
        """
        try:
            response = await self._client.get_me(user_auth=True)
        except (TweepyException, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Failed to connect to Twitter: %s", e)
            return False

        if response.data is None:
            logger.error("Failed to connect to Twitter: no user returned")
            return False

        logger.info("Connected to Twitter as @%s", response.data.username)
        return True

    async def close(self) -> None:
        """Close the HTTP session of the Twitter client."""
        session = getattr(self._client, "session", None)
        if session is not None and not session.closed:
            await session.close()
        logger.debug("Twitter client closed")
