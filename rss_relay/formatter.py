"""
Message formatting for feed events.

Renders a user template such as ``"{Title} - {Link}"`` against an event
and fits the result into a platform character budget.
"""

import html
import logging
import re

from rss_relay.rss_parser import FeedEvent

logger = logging.getLogger(__name__)

# Twitter replaces any URL with a t.co link of this length
SHORT_LINK_LENGTH = 23

# Maximum tweet length left for the message
TWEET_MAX_LENGTH = 279

FALLBACK_TEMPLATE = "{Title} - {Link}"

_TEMPLATE_ERRORS = (KeyError, IndexError, ValueError, AttributeError)


def strip_html(content: str) -> str:
    """
    Clean HTML content for display.

    Parameters
    ----------
    content : str
        Raw content possibly containing HTML.

    Returns
    -------
    str
        Plain text with tags removed, entities decoded and whitespace collapsed.
    """
    text = re.sub(r"<[^>]+>", "", content)
    text = html.unescape(text)
    text = re.sub(r"\s+", " ", text).strip()
    return text


def trim_with_dots(text: str, limit: int) -> str:
    """
    Shorten text to ``limit`` characters on a word boundary.

    The text is cut at ``limit - 4`` characters, then back to the last
    space, and ``"... "`` is appended. Text already within the limit, or
    a limit with no room for the ellipsis, leaves the text unchanged.

    Parameters
    ----------
    text : str
        Text to shorten.
    limit : int
        Maximum length of the result.

    Returns
    -------
    str
        The possibly shortened text.
    """
    if len(text) <= limit or limit < 4:
        return text

    snippet = text[: limit - 4]
    space = snippet.rfind(" ")
    if space >= 0:
        snippet = snippet[:space]
    return snippet + "... "


def _apply_template(fields: dict[str, str], template: str, max_length: int) -> str:
    """Render the template, falling back to the default format on errors."""
    try:
        result = template.format(**fields)
    except _TEMPLATE_ERRORS as e:
        logger.warning("Failed to apply template %r: %s", template, e)
        result = trim_with_dots(FALLBACK_TEMPLATE.format(**fields), max_length)
    # templates from config or env carry "\n" as two characters
    return result.replace("\\n", "\n")


def format_message(
    event: FeedEvent,
    template: str,
    max_length: int,
    link_length: int | None = SHORT_LINK_LENGTH,
) -> str:
    """
    Make a message from a feed event.

    HTML is stripped from the title and text. When the template has no
    ``{Link}`` the whole rendered message is shortened. Otherwise the link
    is counted as ``link_length`` characters and kept intact, and only the
    text (or the title, if the template has no text) is shortened to what
    is left of the budget. A title too long to leave room for the text is
    shortened as well.

    Parameters
    ----------
    event : FeedEvent
        The event to render.
    template : str
        Template with ``{ChannelTitle}``, ``{Title}``, ``{Link}``,
        ``{Text}`` and ``{GUID}`` placeholders.
    max_length : int
        Character budget of the target platform.
    link_length : int | None
        Length the platform counts for any link, None to count the real link.

    Returns
    -------
    str
        The rendered message.
    """
    fields = event.template_fields()
    fields["Title"] = strip_html(fields["Title"])
    fields["Text"] = strip_html(fields["Text"])

    if "{Link}" not in template:
        return trim_with_dots(_apply_template(fields, template, max_length), max_length)

    if link_length is None:
        link_length = len(fields["Link"])

    for name in ("Text", "Title"):
        placeholder = "{" + name + "}"
        if placeholder in template:
            break
    else:
        return _apply_template(fields, template, max_length)

    # length of everything but the links and the field being shortened
    try:
        fixed = template.format(**{**fields, "Link": "", name: ""})
    except _TEMPLATE_ERRORS:
        return _apply_template(fields, template, max_length)

    links = link_length * template.count("{Link}")
    count = template.count(placeholder)
    budget = max_length - links - len(fixed)

    if name == "Text" and "{Title}" in template and budget // count < 4:
        # the title leaves no room for the text, both share what is left
        try:
            fixed = template.format(**{**fields, "Link": "", "Title": "", "Text": ""})
        except _TEMPLATE_ERRORS:
            return _apply_template(fields, template, max_length)
        budget = max_length - links - len(fixed)
        title_count = template.count("{Title}")
        title_budget = max(budget - len(fields["Text"]) * count, budget // 2)
        fields["Title"] = trim_with_dots(fields["Title"], title_budget // title_count)
        budget -= len(fields["Title"]) * title_count

    fields[name] = trim_with_dots(fields[name], budget // count)

    return _apply_template(fields, template, max_length)
