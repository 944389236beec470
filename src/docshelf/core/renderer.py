"""Markdown document rendering.

Converts a markdown source into a Document: title, HTML body with heading
permalinks, table of contents, raw source and modification time.
"""

import html
import logging
import re
import uuid
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypedDict, cast

import mistune

from docshelf.core.store import ContentStore
from docshelf.core.text import TOC_PLACEHOLDER, format_title, slugify, strip_tags

logger = logging.getLogger(__name__)

TOC_MIN_LEVEL = 2
TOC_MAX_LEVEL = 4

MARKDOWN_PLUGINS = ["strikethrough", "table", "url", "task_lists", "footnotes"]

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+?)(?:\s+#+)?\s*$")
_FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})")
_PREVIEW_RE = re.compile(r":::preview\s+(.*?)\s+:::", re.DOTALL)

PREVIEW_TEMPLATE = """<div class="component-preview card">
<div class="card-header">
<h4 class="card-title">Preview</h4>
</div>
<div class="card-body">
<div class="preview-output">
{code}
</div>
</div>
<div class="card-footer">
<details>
<summary>View Code</summary>
<pre><code class="language-html">{escaped}</code></pre>
</details>
</div>
</div>
"""


class TocEntryDict(TypedDict):
    """Dictionary representation of a TOC entry."""

    level: int
    title: str
    anchor: str


@dataclass(frozen=True)
class TocEntry:
    """Table of contents entry for a level 2-4 heading."""

    level: int
    title: str
    anchor: str

    def to_dict(self) -> TocEntryDict:
        """Convert to dictionary for JSON serialization."""
        return {"level": self.level, "title": self.title, "anchor": self.anchor}


@dataclass(frozen=True)
class Document:
    """Rendered markdown document."""

    slug: str
    title: str
    html: str
    raw: str
    toc: tuple[TocEntry, ...]
    updated_at: int
    source_path: Path


class PermalinkRenderer(mistune.HTMLRenderer):
    """HTML renderer that prefixes every heading with a permalink anchor.

    The anchor id is the slug of the heading's plain text. Rendered headings
    are recorded in `headings` as (level, plain text, anchor) so the table of
    contents uses exactly the ids present in the HTML.
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.headings: list[tuple[int, str, str]] = []

    def heading(self, text: str, level: int, **attrs: Any) -> str:
        plain = html.unescape(strip_tags(text)).strip()
        anchor = slugify(plain)
        self.headings.append((level, plain, anchor))
        tag = f"h{level}"
        if not anchor:
            return f"<{tag}>{text}</{tag}>\n"
        permalink = (
            f'<a id="{anchor}" href="#{anchor}" class="heading-permalink" '
            f'aria-hidden="true" title="Permalink">#</a>'
        )
        return f"<{tag}>{permalink}{text}</{tag}>\n"


def create_markdown(renderer: PermalinkRenderer | None = None) -> mistune.Markdown:
    """Create a GitHub-flavoured markdown parser with raw HTML enabled."""
    return mistune.create_markdown(
        renderer=renderer or PermalinkRenderer(escape=False),
        plugins=MARKDOWN_PLUGINS,
    )


class DocumentRenderer:
    """Renders documents resolved through a ContentStore.

    Rendering is uncached here; see Documentation for the caching layer.
    """

    def __init__(self, store: ContentStore) -> None:
        """Initialize renderer.

        Args:
            store: Content store used to resolve slugs
        """
        self._store = store

    @property
    def store(self) -> ContentStore:
        """Content store used to resolve slugs."""
        return self._store

    def render(self, slug: str) -> Document | None:
        """Render a document by slug.

        Args:
            slug: Document slug (e.g., "forms/input")

        Returns:
            Document, or None when no source file exists for the slug

        Raises:
            OSError: If the source file exists but cannot be read
        """
        source_path = self._store.resolve(slug)
        if source_path is None:
            return None

        raw = source_path.read_text(encoding="utf-8")
        updated_at = int(source_path.stat().st_mtime)
        body, toc = convert_markdown(raw)

        document = Document(
            slug=slug,
            title=extract_title(raw, slug),
            html=body,
            raw=raw,
            toc=tuple(toc),
            updated_at=updated_at,
            source_path=source_path,
        )
        logger.debug(f"Rendered {slug or '/'} from {source_path}")
        return document

    def render_html(self, markdown_text: str) -> str:
        """Convert markdown to HTML (see convert_markdown)."""
        return convert_markdown(markdown_text)[0]


def convert_markdown(markdown_text: str) -> tuple[str, list[TocEntry]]:
    """Convert markdown to HTML and collect its table of contents.

    The [TOC] placeholder is removed (the TOC is shown separately) and
    preview blocks are swapped for placeholders before conversion, then
    substituted with the preview widget afterwards. TOC entries are taken
    from the headings as rendered, so each anchor matches a heading id.

    Returns:
        HTML body, and TOC entries for level 2-4 headings in document order
    """
    markdown_text = markdown_text.replace(TOC_PLACEHOLDER, "")
    markdown_text, previews = _extract_previews(markdown_text)

    renderer = PermalinkRenderer(escape=False)
    body = cast(str, create_markdown(renderer)(markdown_text))

    for token, block in previews.items():
        body = body.replace(f"<p>{token}</p>", block).replace(token, block)

    toc = [
        TocEntry(level=level, title=title, anchor=anchor)
        for level, title, anchor in renderer.headings
        if TOC_MIN_LEVEL <= level <= TOC_MAX_LEVEL
    ]
    return body, toc


def _extract_previews(markdown_text: str) -> tuple[str, dict[str, str]]:
    """Replace preview blocks with placeholder tokens.

    Returns:
        Markdown with placeholders, and a mapping of token to widget HTML
    """
    nonce = uuid.uuid4().hex
    previews: dict[str, str] = {}

    def replace(match: re.Match[str]) -> str:
        code = match.group(1).strip()
        token = f"docshelfpreview{nonce}n{len(previews)}"
        previews[token] = PREVIEW_TEMPLATE.format(code=code, escaped=html.escape(code))
        return f"\n\n{token}\n\n"

    return _PREVIEW_RE.sub(replace, markdown_text), previews


def _iter_headings(markdown_text: str) -> Iterator[tuple[int, str]]:
    """Yield (level, text) for ATX headings outside fenced code blocks."""
    fence: str | None = None
    for line in markdown_text.splitlines():
        fence_match = _FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(1)
            if fence is None:
                fence = marker
            elif marker[0] == fence[0] and len(marker) >= len(fence):
                fence = None
            continue
        if fence is not None:
            continue

        match = _HEADING_RE.match(line)
        if match:
            yield len(match.group(1)), match.group(2).strip()


def extract_title(markdown_text: str, slug: str) -> str:
    """Return the first level-1 heading, or a title derived from the slug."""
    for level, text in _iter_headings(markdown_text):
        if level == 1:
            return text
    last_segment = slug.rstrip("/").rsplit("/", 1)[-1] or "index"
    return format_title(last_segment)


def extract_toc(markdown_text: str) -> list[TocEntry]:
    """Collect level 2-4 headings in document order, as rendered."""
    return convert_markdown(markdown_text)[1]
