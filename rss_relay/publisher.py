"""
Protocol definition for publishing backends.

Defines the common interface that all publishers must implement.
"""

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from rss_relay.rss_parser import FeedEvent

MessageFormatter = Callable[[FeedEvent], str]


class PublishError(Exception):
    """Raised when a message could not be delivered to a remote sink."""

    pass


@runtime_checkable
class Publisher(Protocol):
    """
    Protocol defining the interface for publishing backends.

    All publishers (console, Twitter, Telegram) must implement these
    methods to receive feed events.

    Attributes
    ----------
    name : str
        Short name used in logs.
    max_length : int
        Character budget of a message on this platform.
    link_length : int | None
        Length the platform counts for a link, None for the real length.
    """

    name: str
    max_length: int
    link_length: int | None

    async def test_connection(self) -> bool:
        """
        Test the connection to the publishing backend.

        Returns
        -------
        bool
            True if the connection is working and messages can be sent.
        """
        ...

    async def publish(self, event: FeedEvent, formatter: MessageFormatter) -> bool:
        """
        Format an event and deliver it unless it is excluded.

        Parameters
        ----------
        event : FeedEvent
            The event to publish.
        formatter : MessageFormatter
            Turns the event into the message text.

        Returns
        -------
        bool
            True if the message was delivered, False if it was excluded.

        Raises
        ------
        PublishError
            If delivery failed.
        """
        ...

    async def close(self) -> None:
        """Close the publisher and release any resources."""
        ...
