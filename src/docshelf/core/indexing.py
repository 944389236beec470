"""Search index records.

Documents are submitted to the search index as flat records keyed by a
stable hash of the slug.
"""

import hashlib
from typing import Any, TypedDict

from docshelf.core.cache import Documentation
from docshelf.core.renderer import Document
from docshelf.core.text import strip_markdown

INDEX_SETTINGS: dict[str, Any] = {
    "searchableAttributes": ["title", "headings", "content"],
    "displayedAttributes": ["id", "slug", "title", "content", "category", "updated_at"],
    "filterableAttributes": ["category"],
    "sortableAttributes": ["updated_at"],
}


class SearchRecord(TypedDict):
    """Record submitted to the search index for one document."""

    id: str
    slug: str
    title: str
    content: str
    category: str
    headings: str
    updated_at: int | None


def record_id(slug: str) -> str:
    """Stable index id for a slug (slugs contain "/", which ids may not)."""
    return hashlib.md5(slug.encode("utf-8"), usedforsecurity=False).hexdigest()


def build_record(document: Document, category: str) -> SearchRecord:
    """Build the index record for a document.

    Args:
        document: Rendered document
        category: Display title of the containing directory

    Returns:
        Record with markdown-stripped content and space-joined headings
    """
    return {
        "id": record_id(document.slug),
        "slug": document.slug,
        "title": document.title,
        "content": strip_markdown(document.raw),
        "category": category,
        "headings": " ".join(entry.title for entry in document.toc),
        "updated_at": document.updated_at or None,
    }


def build_records(documentation: Documentation) -> list[SearchRecord]:
    """Build records for every document in the navigation tree."""
    return [build_record(document, category) for document, category in documentation.documents()]
