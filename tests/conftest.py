"""Shared test fixtures."""

from pathlib import Path

import pytest

from docshelf.config import Config, DocsConfig, SearchConfig, ServerConfig
from docshelf.core.cache import Documentation, MemoryCache


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    """Create an empty content root."""
    docs = tmp_path / "docs"
    docs.mkdir(exist_ok=True)
    return docs


@pytest.fixture
def sample_docs(docs_dir: Path) -> Path:
    """Create a small content tree.

    docs/
    ├── index.md
    ├── button.md
    ├── forms/
    │   ├── index.md
    │   ├── input.md
    │   └── select.md
    └── layout/
        └── grid.md
    """
    (docs_dir / "index.md").write_text("# Documentation\n\nWelcome to the components.")
    (docs_dir / "button.md").write_text(
        "# Button\n\n[TOC]\n\nButtons trigger actions.\n\n## Variants\n\nPrimary and secondary.\n"
    )
    forms = docs_dir / "forms"
    forms.mkdir()
    (forms / "index.md").write_text("# Forms\n\nForm controls.")
    (forms / "input.md").write_text("# Input\n\nText input field.\n\n## Validation\n\nShows errors.\n")
    (forms / "select.md").write_text("# Select\n\nDropdown select with an input filter.\n")
    layout = docs_dir / "layout"
    layout.mkdir()
    (layout / "grid.md").write_text("# Grid\n\nTwelve column grid.\n")
    return docs_dir


@pytest.fixture
def test_config(docs_dir: Path) -> Config:
    """Create a test configuration with local search only."""
    return Config(
        server=ServerConfig(),
        docs=DocsConfig(source_dir=docs_dir),
        search=SearchConfig(),
    )


@pytest.fixture
def documentation(docs_dir: Path) -> Documentation:
    """Create a documentation service over docs_dir."""
    return Documentation(docs_dir, MemoryCache())
