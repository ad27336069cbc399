"""
RSS Relay - Forward the newest RSS entry to social media.

A Python application that polls a single RSS/Atom feed, detects new
entries and posts a short, length-budgeted message to Twitter, Telegram
or the console.
"""

__version__ = "1.0.0"
