"""Content store: slug to markdown source resolution."""

import os
from pathlib import Path

from docshelf.core.text import slugify

INDEX_SLUG = "index"
MARKDOWN_SUFFIX = ".md"


class ContentStore:
    """Maps document slugs to markdown files beneath a root directory.

    Resolution tries, in order:
        1. ``<root>/<slug>.md``
        2. ``<root>/<slug with "-" replaced by "_">.md``
        3. ``<root>/<slug>/index.md`` (directory landing page)
        4. the entry whose slugified name matches, segment by segment, the
           way navigation derives slugs (``Getting Started.md`` for
           ``getting-started``)

    The empty slug addresses the root landing page ``<root>/index.md``.
    """

    def __init__(self, root: Path) -> None:
        """Initialize store.

        Args:
            root: Directory containing markdown sources
        """
        self._root = root

    @property
    def root(self) -> Path:
        """Root directory containing markdown sources."""
        return self._root

    def resolve(self, slug: str) -> Path | None:
        """Resolve a slug to an existing markdown file.

        Args:
            slug: Document slug (e.g., "forms/input")

        Returns:
            Path to the source file, or None when no candidate exists
        """
        segments = self._split(slug)
        if segments is None:
            return None

        for candidate in self.candidates(segments):
            if candidate.is_file():
                return candidate
        return self._match_slugified(segments)

    def candidates(self, segments: list[str]) -> list[Path]:
        """List literal candidate source paths for slug segments, in priority order."""
        base = self._root.joinpath(*segments)
        underscored = self._root.joinpath(*(s.replace("-", "_") for s in segments))

        paths = [base.with_name(f"{base.name}{MARKDOWN_SUFFIX}")]
        underscored_path = underscored.with_name(f"{underscored.name}{MARKDOWN_SUFFIX}")
        if underscored_path != paths[0]:
            paths.append(underscored_path)
        paths.append(base / f"{INDEX_SLUG}{MARKDOWN_SUFFIX}")
        return paths

    def _match_slugified(self, segments: list[str]) -> Path | None:
        """Walk the tree matching each segment against slugified entry names."""
        directory = self._root
        for segment in segments[:-1]:
            child = _find_child(directory, segment, directories=True)
            if child is None:
                return None
            directory = child

        source = _find_child(directory, segments[-1], directories=False)
        if source is not None:
            return source

        landing = _find_child(directory, segments[-1], directories=True)
        if landing is None:
            return None
        return _find_child(landing, INDEX_SLUG, directories=False)

    def _split(self, slug: str) -> list[str] | None:
        """Split slug into path segments, rejecting anything unsafe."""
        slug = slug.strip("/")
        if not slug:
            return [INDEX_SLUG]

        if "\\" in slug or "\x00" in slug:
            return None

        segments = slug.split("/")
        for segment in segments:
            if segment in ("", ".", ".."):
                return None
        return segments


def _find_child(directory: Path, segment: str, *, directories: bool) -> Path | None:
    """Return the first visible child, by name, whose slug equals segment.

    Markdown files are matched on their stem, directories on their name.
    """
    if not directory.is_dir():
        return None

    with os.scandir(directory) as entries:
        children = sorted(entries, key=lambda entry: entry.name)

    for entry in children:
        if entry.name.startswith("."):
            continue
        if directories:
            if entry.is_dir() and slugify(entry.name) == segment:
                return Path(entry.path)
        elif entry.is_file():
            path = Path(entry.path)
            if path.suffix == MARKDOWN_SUFFIX and slugify(path.stem) == segment:
                return path
    return None
