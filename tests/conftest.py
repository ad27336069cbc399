"""
Shared fixtures for RSS Relay tests.

Provides common test fixtures for use across all test modules.
"""

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from rss_relay.config import AppConfig, FeedConfig, TelegramConfig, TwitterConfig
from rss_relay.rss_parser import FeedEvent


# Path to test fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def sample_rss_content(fixtures_dir: Path) -> str:
    """Return contents of sample RSS feed."""
    return (fixtures_dir / "sample_rss.xml").read_text()


@pytest.fixture
def updated_rss_content(fixtures_dir: Path) -> str:
    """Return contents of the sample RSS feed with one more entry on top."""
    return (fixtures_dir / "sample_rss_updated.xml").read_text()


@pytest.fixture
def sample_atom_content(fixtures_dir: Path) -> str:
    """Return contents of sample Atom feed."""
    return (fixtures_dir / "sample_atom.xml").read_text()


@pytest.fixture
def sample_config_path(fixtures_dir: Path) -> Path:
    """Return path to sample config file."""
    return fixtures_dir / "sample_config.yaml"


@pytest.fixture
def sample_event() -> FeedEvent:
    """
    Create a sample feed event for testing.

    Returns
    -------
    FeedEvent
        A fully populated event.
    """
    return FeedEvent(
        channel_title="Test Podcast",
        title="Episode 626",
        link="https://example.com/p/626",
        text="<p>Topics of the <b>week</b></p>",
        guid="https://example.com/p/626",
    )


@pytest.fixture
def minimal_twitter_config() -> TwitterConfig:
    """Create a minimal valid Twitter configuration."""
    return TwitterConfig(
        consumer_key="ck",
        consumer_secret="cs",
        access_token="at",
        access_secret="as",
    )


@pytest.fixture
def minimal_telegram_config() -> TelegramConfig:
    """Create a minimal valid Telegram configuration."""
    return TelegramConfig(
        bot_token="1234567890:ABCdefGHIjklMNOpqrsTUVwxyz",
        chat_id="-1001234567890",
    )


@pytest.fixture
def minimal_config_dict() -> dict[str, Any]:
    """
    Create a minimal valid configuration dictionary.

    Returns
    -------
    dict
        Configuration dictionary that can be used to create AppConfig.
    """
    return {
        "feed": {"url": "https://example.com/feed.xml"},
        "twitter": {
            "consumer_key": "ck",
            "consumer_secret": "cs",
            "access_token": "at",
            "access_secret": "as",
        },
    }


@pytest.fixture
def dry_app_config() -> AppConfig:
    """Create a dry-run app configuration without credentials."""
    return AppConfig(
        feed=FeedConfig(url="https://example.com/feed.xml"),
        dry_run=True,
    )


@pytest.fixture
def mock_publisher() -> MagicMock:
    """
    Create a mock publisher that records formatted messages.

    Returns
    -------
    MagicMock
        A publisher whose ``messages`` list collects what it was asked to send.
    """
    publisher = MagicMock()
    publisher.name = "mock"
    publisher.max_length = 279
    publisher.link_length = 23
    publisher.messages = []

    async def publish(event, formatter):
        publisher.messages.append(formatter(event))
        return True

    publisher.publish = AsyncMock(side_effect=publish)
    publisher.test_connection = AsyncMock(return_value=True)
    publisher.close = AsyncMock()
    return publisher


@pytest.fixture
def mock_telegram_bot() -> MagicMock:
    """
    Create a mock Telegram bot.

    Returns
    -------
    MagicMock
        A mock Bot instance with common methods mocked.
    """
    bot = MagicMock()
    bot.send_message = AsyncMock()
    bot.get_me = AsyncMock(return_value=MagicMock(username="test_bot"))
    bot.shutdown = AsyncMock()
    return bot


@pytest.fixture
def feedparser_entry() -> dict[str, Any]:
    """
    Create a sample feedparser entry dictionary.

    Returns
    -------
    dict
        A dictionary mimicking feedparser entry structure.
    """
    return {
        "title": "Test Entry",
        "link": "https://example.com/entry",
        "id": "urn:entry:1",
        "summary": "This is a test summary",
    }
