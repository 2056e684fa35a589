"""Shared fixtures for Obsidian Site tests."""

from pathlib import Path, PurePosixPath
from typing import Dict, Iterable

import pytest

from obsidian_site.core.index import DocumentIndex
from obsidian_site.core.models import EntryKind, VaultEntry
from obsidian_site.core.paths import PathMapper


def make_index(documents: Dict[str, str], assets: Iterable[str] = ()) -> DocumentIndex:
    """Build an index from in-memory documents, without touching the disk."""
    entries = [
        VaultEntry(PurePosixPath(p), EntryKind.DOCUMENT, Path("/vault") / p, text=text)
        for p, text in documents.items()
    ]
    entries += [
        VaultEntry(PurePosixPath(p), EntryKind.ASSET, Path("/vault") / p)
        for p in assets
    ]
    return DocumentIndex.build(entries, PathMapper())


def write_vault(root: Path, files: Dict[str, object]) -> Path:
    """Create files under ``root``; str values are written as text, bytes as-is."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def vault(tmp_path):
    path = tmp_path / "vault"
    path.mkdir()
    return path
