"""Search result excerpts.

Two flavours: one for content already carrying highlight markers from the
search index, one for plain content searched locally by query.
"""

import re

from docshelf.core.text import limit, strip_tags

HIGHLIGHT_PRE_TAG = "<mark>"
HIGHLIGHT_POST_TAG = "</mark>"
ELLIPSIS = "..."

HIGHLIGHT_EXCERPT_LENGTH = 200
HIGHLIGHT_LEAD = 75
TAG_REALIGN_WINDOW = 10

QUERY_EXCERPT_LENGTH = 150
QUERY_LEAD = 50

_PARTIAL_TAG_RE = re.compile(r"</?[a-zA-Z]*$")


def highlighted_excerpt(content: str, length: int = HIGHLIGHT_EXCERPT_LENGTH) -> str:
    """Build an excerpt around the first highlight marker.

    The window starts HIGHLIGHT_LEAD characters before the first opening
    marker. Markers are never left broken: a window starting just inside a
    tag is moved to the next tag, a tag cut at the window end is dropped and
    an unclosed marker is closed.

    Args:
        content: Text containing <mark>...</mark> highlights
        length: Window length in characters

    Returns:
        Excerpt with ellipses marking truncation
    """
    position = content.lower().find(HIGHLIGHT_PRE_TAG)
    if position == -1:
        return limit(strip_tags(content), length)

    start = max(0, position - HIGHLIGHT_LEAD)
    excerpt = content[start : start + length]

    if start > 0 and not excerpt.startswith(HIGHLIGHT_PRE_TAG):
        first_tag = excerpt.find("<")
        if first_tag != -1 and first_tag < TAG_REALIGN_WINDOW:
            excerpt = excerpt[first_tag:]

    excerpt = _balance_markers(excerpt)
    return (ELLIPSIS if start > 0 else "") + excerpt + ELLIPSIS


def _balance_markers(excerpt: str) -> str:
    """Drop a trailing partial tag and close an open highlight."""
    excerpt = _PARTIAL_TAG_RE.sub("", excerpt)

    lowered = excerpt.lower()
    if lowered.count(HIGHLIGHT_PRE_TAG) > lowered.count(HIGHLIGHT_POST_TAG):
        excerpt += HIGHLIGHT_POST_TAG
    return excerpt


def query_excerpt(content: str, query: str, length: int = QUERY_EXCERPT_LENGTH) -> str:
    """Build an excerpt around the first case-insensitive match of query.

    Args:
        content: Raw document content (HTML tags are stripped)
        query: Search query
        length: Window length in characters

    Returns:
        Excerpt with ellipses marking truncation, or a plain prefix when the
        query does not occur in the content
    """
    content = strip_tags(content)
    position = content.lower().find(query.lower()) if query else -1

    if position == -1:
        return limit(content, length)

    start = max(0, position - QUERY_LEAD)
    excerpt = content[start : start + length]
    return (ELLIPSIS if start > 0 else "") + excerpt + ELLIPSIS
