"""Navigation tree builder.

Builds the documentation navigation tree from the content directory.
Directories come before files; each group is sorted by base name.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypedDict

from docshelf.core.store import INDEX_SLUG, MARKDOWN_SUFFIX
from docshelf.core.text import format_title, slugify

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "General"


class NavNodeDict(TypedDict, total=False):
    """Dictionary representation of a navigation node."""

    type: str
    title: str
    slug: str
    path: str
    children: list[NavNodeDict]


@dataclass(frozen=True)
class FileNode:
    """Markdown document in the navigation tree."""

    title: str
    slug: str
    source_path: Path

    def to_dict(self) -> NavNodeDict:
        """Convert to dictionary for JSON serialization."""
        return {
            "type": "file",
            "title": self.title,
            "slug": self.slug,
            "path": str(self.source_path),
        }


@dataclass(frozen=True)
class DirectoryNode:
    """Directory in the navigation tree."""

    title: str
    slug: str
    children: tuple[NavNode, ...] = field(default_factory=tuple)

    def to_dict(self) -> NavNodeDict:
        """Convert to dictionary for JSON serialization."""
        return {
            "type": "directory",
            "title": self.title,
            "slug": self.slug,
            "children": [child.to_dict() for child in self.children],
        }


NavNode = DirectoryNode | FileNode


@dataclass(frozen=True)
class Breadcrumb:
    """Breadcrumb navigation item."""

    title: str
    slug: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"title": self.title, "slug": self.slug}


def build_navigation(root: Path) -> list[NavNode]:
    """Build navigation tree from a content directory.

    Args:
        root: Content root directory

    Returns:
        Ordered list of top-level nodes, empty if root is not a directory
    """
    if not root.is_dir():
        return []
    return _build_level(root, "", frozenset({root.resolve()}))


def _build_level(directory: Path, prefix: str, ancestors: frozenset[Path]) -> list[NavNode]:
    """Build the nodes of one directory level.

    Args:
        directory: Directory to list
        prefix: Slug of the directory ("" for the root)
        ancestors: Resolved paths of directories on the current branch
    """
    directories: list[Path] = []
    files: list[Path] = []
    with os.scandir(directory) as entries:
        for entry in entries:
            if entry.name.startswith("."):
                continue
            if entry.is_dir():
                directories.append(Path(entry.path))
            elif entry.is_file() and Path(entry.name).suffix == MARKDOWN_SUFFIX:
                files.append(Path(entry.path))

    nodes: list[NavNode] = []
    seen: set[str] = set()

    for path in sorted(directories, key=lambda p: p.name):
        local_slug = slugify(path.name)
        if not _claim_slug(local_slug, path, seen):
            continue

        resolved = path.resolve()
        if resolved in ancestors:
            logger.warning(f"Skipping {path}: directory cycle via symlink")
            continue

        slug = _join(prefix, local_slug)
        children = _build_level(path, slug, ancestors | {resolved})
        nodes.append(
            DirectoryNode(
                title=format_title(path.name),
                slug=slug,
                children=tuple(children),
            )
        )

    for path in sorted(files, key=lambda p: p.name):
        local_slug = slugify(path.stem)
        # Landing pages are addressed by their directory's slug
        if local_slug == INDEX_SLUG:
            continue
        if not _claim_slug(local_slug, path, seen):
            continue

        nodes.append(
            FileNode(
                title=format_title(path.stem),
                slug=_join(prefix, local_slug),
                source_path=path,
            )
        )

    return nodes


def _claim_slug(local_slug: str, path: Path, seen: set[str]) -> bool:
    """Record a sibling slug, returning False if it is empty or taken."""
    if not local_slug:
        logger.warning(f"Skipping {path}: name produces an empty slug")
        return False
    if local_slug in seen:
        logger.warning(f"Skipping {path}: slug {local_slug!r} already used by a sibling")
        return False
    seen.add(local_slug)
    return True


def _join(prefix: str, slug: str) -> str:
    return f"{prefix}/{slug}" if prefix else slug


def iter_files(
    nodes: list[NavNode] | tuple[NavNode, ...],
    category: str = DEFAULT_CATEGORY,
) -> Iterator[tuple[FileNode, str]]:
    """Walk the tree yielding file nodes with their category.

    The category is the title of the innermost containing directory, or
    DEFAULT_CATEGORY for documents at the root.

    Args:
        nodes: Navigation nodes to walk
        category: Category for files directly within nodes

    Yields:
        (FileNode, category) pairs in navigation order
    """
    for node in nodes:
        if isinstance(node, DirectoryNode):
            yield from iter_files(node.children, node.title)
        else:
            yield node, category


def iter_directories(nodes: list[NavNode] | tuple[NavNode, ...]) -> Iterator[DirectoryNode]:
    """Walk the tree yielding every directory node, depth first."""
    for node in nodes:
        if isinstance(node, DirectoryNode):
            yield node
            yield from iter_directories(node.children)


def find_trail(nodes: list[NavNode], slug: str) -> list[Breadcrumb]:
    """Build breadcrumbs for a slug.

    Titles come from the navigation tree where the ancestor exists there,
    otherwise from the slug segment itself. The current page is not included.

    Args:
        nodes: Navigation tree
        slug: Document slug (e.g., "forms/input")

    Returns:
        Breadcrumbs for ancestors of the slug, root first
    """
    segments = [segment for segment in slug.strip("/").split("/") if segment]
    trail: list[Breadcrumb] = []
    level: tuple[NavNode, ...] | list[NavNode] = nodes
    path = ""
    for segment in segments[:-1]:
        path = _join(path, segment)
        match = next(
            (n for n in level if isinstance(n, DirectoryNode) and n.slug == path),
            None,
        )
        if match is None:
            trail.append(Breadcrumb(title=format_title(segment), slug=path))
            level = ()
        else:
            trail.append(Breadcrumb(title=match.title, slug=match.slug))
            level = match.children
    return trail
