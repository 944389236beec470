"""Text helpers shared by navigation, rendering and search.

Slugs produced here are used for navigation paths, TOC anchors and heading
permalinks, so all three stay in agreement.
"""

import re
import string
import unicodedata

_SLUG_INVALID_RE = re.compile(r"[^a-z0-9\s-]")
_SLUG_SEPARATOR_RE = re.compile(r"[\s-]+")

_HTML_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_HTML_TAG_RE = re.compile(r"</?[a-zA-Z!][^>]*>")

_MARKDOWN_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"```[\s\S]*?```"), ""),
    (re.compile(r"`[^`]+`"), ""),
    (re.compile(r"^#{1,6}\s+", re.MULTILINE), ""),
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),
    (re.compile(r"__([^_]+)__"), r"\1"),
    (re.compile(r"\*([^*]+)\*"), r"\1"),
    (re.compile(r"_([^_]+)_"), r"\1"),
    # Images before links, otherwise the link rule leaves a stray "!"
    (re.compile(r"!\[([^\]]*)\]\([^)]+\)"), ""),
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),
]
_BLANK_LINES_RE = re.compile(r"\n{3,}")

TOC_PLACEHOLDER = "[TOC]"


def slugify(text: str) -> str:
    """Convert text to a URL-safe, lowercase, hyphenated slug.

    Args:
        text: Title, heading or filename

    Returns:
        Slug such as "input-group", empty when nothing usable remains
    """
    value = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    value = value.replace("_", "-").replace("@", "-at-").lower()
    value = _SLUG_INVALID_RE.sub("", value)
    value = _SLUG_SEPARATOR_RE.sub("-", value)
    return value.strip("-")


def format_title(name: str) -> str:
    """Convert kebab-case or snake_case name to Title Case."""
    return string.capwords(name.replace("-", " ").replace("_", " "))


def strip_tags(text: str) -> str:
    """Remove HTML comments and tags, keeping their text content."""
    return _HTML_TAG_RE.sub("", _HTML_COMMENT_RE.sub("", text))


def limit(text: str, length: int, end: str = "...") -> str:
    """Truncate text to length characters, appending end when truncated."""
    if len(text) <= length:
        return text
    return text[:length].rstrip() + end


def strip_markdown(text: str | None) -> str:
    """Reduce markdown source to plain text for search indexing.

    Code is dropped entirely; emphasis and link syntax are unwrapped to their
    visible text.

    Args:
        text: Markdown source (None is treated as empty)

    Returns:
        Plain text with collapsed blank lines
    """
    if text is None:
        return ""

    for pattern, replacement in _MARKDOWN_RULES:
        text = pattern.sub(replacement, text)

    text = strip_tags(text)
    text = text.replace(TOC_PLACEHOLDER, "")
    text = _BLANK_LINES_RE.sub("\n\n", text)
    return text.strip()
