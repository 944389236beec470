"""In-memory cache for navigation and rendered documents.

Cache keys:
    navigation        # Full nav tree
    doc:<slug>        # Rendered Document

Entries expire after a TTL; stale entries are rebuilt on the next read.
Invalidation walks a freshly built navigation tree to find document keys
rather than tracking which keys were stored.
"""

import logging
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from docshelf.core.navigation import NavNode, build_navigation, iter_directories, iter_files
from docshelf.core.renderer import Document, DocumentRenderer
from docshelf.core.store import INDEX_SLUG, ContentStore

logger = logging.getLogger(__name__)

DEFAULT_TTL = 3600.0
NAVIGATION_KEY = "navigation"
DOCUMENT_KEY_PREFIX = "doc:"


def document_key(slug: str) -> str:
    """Cache key for a document slug."""
    return f"{DOCUMENT_KEY_PREFIX}{slug}"


@dataclass
class _Entry:
    value: Any
    expires_at: float


class MemoryCache:
    """Process-wide key/value cache with per-entry expiry.

    No locking: concurrent misses may both rebuild, and the last write wins.
    Values are replaced whole, never mutated in place.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize cache.

        Args:
            ttl: Seconds before an entry is considered stale
            clock: Monotonic time source (injectable for tests)
        """
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    @property
    def ttl(self) -> float:
        """Seconds before an entry is considered stale."""
        return self._ttl

    def get(self, key: str) -> Any | None:
        """Return a live entry, or None when missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: Any) -> None:
        """Store a value for the configured TTL."""
        self._entries[key] = _Entry(value=value, expires_at=self._clock() + self._ttl)

    def forget(self, key: str) -> None:
        """Remove an entry if present."""
        self._entries.pop(key, None)

    def remember(self, key: str, factory: Callable[[], Any]) -> Any:
        """Return the cached value or build and store it.

        None results are returned but not stored, and a factory that raises
        stores nothing.
        """
        value = self.get(key)
        if value is not None:
            logger.debug(f"Cache hit: {key}")
            return value

        logger.debug(f"Cache miss: {key}")
        value = factory()
        if value is not None:
            self.set(key, value)
        return value

    def clear(self) -> None:
        """Remove all entries."""
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)


class Documentation:
    """Cached access to the navigation tree and rendered documents.

    Injected into request handlers, indexing and search in place of
    module-level state.
    """

    def __init__(
        self,
        source_dir: Path,
        cache: MemoryCache,
        *,
        renderer: DocumentRenderer | None = None,
    ) -> None:
        """Initialize documentation service.

        Args:
            source_dir: Content root directory
            cache: Cache for navigation and documents
            renderer: Document renderer (default: one over source_dir)
        """
        self._source_dir = source_dir
        self._cache = cache
        self._renderer = renderer or DocumentRenderer(ContentStore(source_dir))

    @property
    def source_dir(self) -> Path:
        """Content root directory."""
        return self._source_dir

    @property
    def cache(self) -> MemoryCache:
        """Underlying cache."""
        return self._cache

    def navigation(self) -> list[NavNode]:
        """Return the navigation tree, building it on a cache miss."""
        result: list[NavNode] = self._cache.remember(
            NAVIGATION_KEY,
            lambda: build_navigation(self._source_dir),
        )
        return result

    def document(self, slug: str) -> Document | None:
        """Return a rendered document, or None if the slug does not resolve.

        Raises:
            OSError: If the source exists but cannot be read
        """
        slug = slug.strip("/")
        result: Document | None = self._cache.remember(
            document_key(slug),
            lambda: self._renderer.render(slug),
        )
        return result

    def documents(self) -> Iterator[tuple[Document, str]]:
        """Yield every navigable document with its category, in tree order.

        A document whose source cannot be read or decoded is logged and
        skipped; the remaining documents are still yielded.
        """
        for node, category in iter_files(self.navigation()):
            try:
                document = self.document(node.slug)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping {node.slug}: cannot read {node.source_path}: {e}")
                continue
            if document is not None:
                yield document, category

    def invalidate_all(self) -> None:
        """Drop the navigation tree and every document reachable from it.

        The tree is rebuilt from disk to discover document keys, so entries
        for files that still exist are removed even if they were cached under
        an older tree.
        """
        self._cache.forget(NAVIGATION_KEY)

        tree = build_navigation(self._source_dir)
        slugs = [INDEX_SLUG, ""]
        slugs.extend(node.slug for node, _ in iter_files(tree))
        slugs.extend(node.slug for node in iter_directories(tree))

        for slug in slugs:
            self._cache.forget(document_key(slug))
        logger.info(f"Invalidated navigation and {len(slugs)} document entries")
