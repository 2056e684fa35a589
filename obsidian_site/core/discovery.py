"""Vault traversal: finds documents and assets in an Obsidian vault."""

import fnmatch
import logging
import os
from pathlib import Path, PurePosixPath
from typing import Iterable, Iterator, List, Optional, Sequence

from obsidian_site.core.models import EntryKind, VaultEntry
from obsidian_site.core.paths import DEFAULT_MARKDOWN_SUFFIXES

logger = logging.getLogger(__name__)


class VaultWalker:
    """Walks an Obsidian vault and classifies every file it finds.

    Iterating a walker traverses the vault from scratch, so the same walker
    can be iterated more than once. Order is depth-first with each
    directory's entries sorted by name, which keeps builds reproducible.
    """

    def __init__(
        self,
        vault_path: Path,
        markdown_suffixes: Sequence[str] = DEFAULT_MARKDOWN_SUFFIXES,
        ignore: Optional[List[str]] = None,
        exclude: Optional[Iterable[Path]] = None,
    ):
        """Initialize VaultWalker.

        Args:
            vault_path: Path to the Obsidian vault root
            markdown_suffixes: File suffixes classified as documents
            ignore: Glob patterns (matched against names and vault-relative
                paths) for entries to skip
            exclude: Absolute directories never entered, e.g. an output
                directory inside the vault
        """
        self.vault_path = Path(vault_path)
        self.markdown_suffixes = tuple(s.lower() for s in markdown_suffixes)
        self.ignore = list(ignore or [])
        self.exclude = {Path(p).resolve() for p in (exclude or [])}

    def __iter__(self) -> Iterator[VaultEntry]:
        return self._walk(self.vault_path, PurePosixPath())

    def _walk(self, directory: Path, relative: PurePosixPath) -> Iterator[VaultEntry]:
        try:
            with os.scandir(directory) as it:
                children = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.warning("Cannot list %s: %s", directory, e)
            yield VaultEntry(
                source_path=relative,
                kind=EntryKind.IGNORED,
                path=directory,
                error=f"Cannot list directory: {e}",
            )
            return

        for child in children:
            source_path = relative / child.name
            path = Path(child.path)

            if self._is_ignored(child.name, source_path):
                logger.debug("Ignoring %s", source_path)
                yield VaultEntry(source_path=source_path, kind=EntryKind.IGNORED, path=path)
                continue

            try:
                is_dir = child.is_dir(follow_symlinks=False)
            except OSError as e:
                yield VaultEntry(source_path, EntryKind.IGNORED, path, error=str(e))
                continue

            if is_dir:
                if path.resolve() in self.exclude:
                    continue
                yield from self._walk(path, source_path)
            elif child.is_symlink() and child.is_dir():
                logger.debug("Not following directory symlink %s", source_path)
                yield VaultEntry(source_path=source_path, kind=EntryKind.IGNORED, path=path)
            elif self._is_markdown(child.name):
                yield self._read_document(path, source_path)
            else:
                yield VaultEntry(source_path=source_path, kind=EntryKind.ASSET, path=path)

    def _read_document(self, path: Path, source_path: PurePosixPath) -> VaultEntry:
        try:
            text = self._read_text(path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read %s: %s", source_path, e)
            return VaultEntry(source_path, EntryKind.DOCUMENT, path, error=str(e))
        return VaultEntry(source_path, EntryKind.DOCUMENT, path, text=text)

    def _read_text(self, path: Path) -> str:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def _is_markdown(self, name: str) -> bool:
        return os.path.splitext(name)[1].lower() in self.markdown_suffixes

    def _is_ignored(self, name: str, source_path: PurePosixPath) -> bool:
        if name.startswith('.'):
            return True
        rel = source_path.as_posix()
        return any(
            fnmatch.fnmatch(name, pattern) or fnmatch.fnmatch(rel, pattern)
            for pattern in self.ignore
        )
