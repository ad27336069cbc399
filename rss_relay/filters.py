"""
Exclusion filtering for outgoing messages.

Messages matching any configured pattern are dropped before delivery.
"""

import logging
import re
import signal
import threading
from collections.abc import Iterable
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

# Maximum length for regex patterns to prevent DoS
MAX_REGEX_PATTERN_LENGTH = 1000

# Timeout for regex operations in seconds (ReDoS protection)
REGEX_TIMEOUT_SECONDS = 2


class RegexTimeoutError(Exception):
    """Raised when a regex operation times out."""

    pass


@contextmanager
def regex_timeout(seconds: int):
    """
    Context manager to limit regex execution time (ReDoS protection).

    Note: This uses SIGALRM which only works on Unix-like systems
    and in the main thread. Elsewhere this is a no-op.

    Parameters
    ----------
    seconds : int
        Maximum time in seconds before timeout.

    Raises
    ------
    RegexTimeoutError
        If the operation exceeds the timeout.
    """

    def timeout_handler(signum, frame):
        raise RegexTimeoutError(f"Regex operation timed out after {seconds} seconds")

    if not hasattr(signal, "SIGALRM") or threading.current_thread() is not threading.main_thread():
        yield
        return

    old_handler = signal.signal(signal.SIGALRM, timeout_handler)
    signal.alarm(seconds)
    try:
        yield
    finally:
        signal.alarm(0)
        signal.signal(signal.SIGALRM, old_handler)


class ExclusionList:
    """
    Ordered list of case-insensitive exclusion patterns.

    Blank lines and lines starting with ``#`` are comments. The first
    matching pattern wins.
    """

    def __init__(self, patterns: Iterable[str] = ()):
        """
        Compile the exclusion patterns.

        Parameters
        ----------
        patterns : Iterable[str]
            Regular expressions, one per item. Invalid ones are logged and skipped.
        """
        self.patterns: list[re.Pattern] = []
        for line in patterns:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            compiled = self._safe_compile_regex(line)
            if compiled is not None:
                self.patterns.append(compiled)

    @classmethod
    def from_file(cls, path: str | Path) -> "ExclusionList":
        """
        Load patterns from a file, one per line.

        A missing or unreadable file gives an empty list.

        Parameters
        ----------
        path : str | Path
            Path to the patterns file.

        Returns
        -------
        ExclusionList
            The loaded exclusion list.
        """
        try:
            content = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Could not read exclusion patterns from '%s': %s", path, e)
            return cls()

        exclusions = cls(content.splitlines())
        logger.info("Loaded %d exclusion pattern(s) from %s", len(exclusions), path)
        return exclusions

    def __len__(self) -> int:
        return len(self.patterns)

    def _safe_compile_regex(self, pattern: str) -> re.Pattern | None:
        """
        Safely compile a regex pattern with a length limit.

        Parameters
        ----------
        pattern : str
            The regex pattern to compile.

        Returns
        -------
        re.Pattern | None
            Compiled pattern or None if compilation failed.
        """
        if len(pattern) > MAX_REGEX_PATTERN_LENGTH:
            logger.error(
                "Exclusion pattern exceeds max length (%d > %d chars)",
                len(pattern),
                MAX_REGEX_PATTERN_LENGTH,
            )
            return None

        try:
            return re.compile(pattern, re.IGNORECASE)
        except re.error as e:
            logger.error("Invalid exclusion pattern '%s': %s", pattern, e)
            return None

    def matches(self, message: str) -> bool:
        """
        Check whether a message matches any exclusion pattern.

        Parameters
        ----------
        message : str
            The formatted message.

        Returns
        -------
        bool
            True if the message must be dropped.
        """
        for pattern in self.patterns:
            if self._safe_regex_search(pattern, message):
                logger.info("Excluded, matched: %s - %s", pattern.pattern, message)
                return True
        return False

    def _safe_regex_search(self, pattern: re.Pattern, text: str) -> bool:
        """
        Execute a regex search with timeout protection.

        Returns
        -------
        bool
            True if the pattern matches, False otherwise or on timeout.
        """
        try:
            with regex_timeout(REGEX_TIMEOUT_SECONDS):
                return pattern.search(text) is not None
        except RegexTimeoutError:
            logger.warning(
                "Exclusion pattern '%s' timed out, treating as non-match",
                pattern.pattern[:100],
            )
            return False
