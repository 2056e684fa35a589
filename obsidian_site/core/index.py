"""Run-wide index of vault documents and assets."""

from collections import defaultdict
from dataclasses import dataclass
from pathlib import PurePosixPath
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from obsidian_site.core.models import EntryKind, VaultEntry
from obsidian_site.core.paths import PathMapper
from obsidian_site.transforms.frontmatter import split_frontmatter


@dataclass(frozen=True, eq=False)
class IndexedDocument:
    """A readable vault document with everything needed to link to it."""
    entry: VaultEntry
    output_path: PurePosixPath
    title: str
    body: str
    frontmatter: Mapping[str, Any]
    tags: Tuple[str, ...] = ()
    date: str = ""
    frontmatter_error: Optional[str] = None

    @property
    def source_path(self) -> PurePosixPath:
        return self.entry.source_path

    @property
    def path_key(self) -> str:
        """Vault-relative path without its suffix, e.g. ``notes/today``."""
        return self.source_path.with_suffix('').as_posix()

    @classmethod
    def from_entry(cls, entry: VaultEntry, mapper: PathMapper) -> "IndexedDocument":
        fm = split_frontmatter(entry.text or "")
        return cls(
            entry=entry,
            output_path=mapper.map(entry.source_path),
            title=fm.title or entry.source_path.stem,
            body=fm.body,
            frontmatter=MappingProxyType(dict(fm.data)),
            tags=tuple(fm.tags),
            date=fm.date,
            frontmatter_error=fm.error,
        )


def _freeze(groups: Dict[str, List]) -> Mapping[str, Tuple]:
    return MappingProxyType({k: tuple(v) for k, v in groups.items()})


class DocumentIndex:
    """Immutable lookup of documents by path and title, and assets by path and name.

    Built once, after traversal and before any rendering, so that any document
    can resolve links to any other regardless of processing order.
    """

    def __init__(
        self,
        documents: Iterable[IndexedDocument],
        assets: Mapping[PurePosixPath, PurePosixPath],
    ):
        self.documents: Tuple[IndexedDocument, ...] = tuple(documents)

        by_source: Dict[PurePosixPath, IndexedDocument] = {}
        by_path: Dict[str, IndexedDocument] = {}
        by_title: Dict[str, List[IndexedDocument]] = defaultdict(list)
        for doc in self.documents:
            by_source[doc.source_path] = doc
            by_path[doc.path_key] = doc
            by_title[doc.title.casefold()].append(doc)

        assets_by_name: Dict[str, List[PurePosixPath]] = defaultdict(list)
        for source in assets:
            assets_by_name[source.name.casefold()].append(source)

        self._by_source = MappingProxyType(by_source)
        self._by_path = MappingProxyType(by_path)
        self._by_title = _freeze(by_title)
        self._assets = MappingProxyType(dict(assets))
        self._assets_by_name = _freeze(assets_by_name)

    @classmethod
    def build(cls, entries: Iterable[VaultEntry], mapper: PathMapper) -> "DocumentIndex":
        """Build an index from walker entries, skipping failed and ignored ones."""
        documents = []
        assets = {}
        for entry in entries:
            if entry.failed:
                continue
            if entry.kind is EntryKind.DOCUMENT:
                documents.append(IndexedDocument.from_entry(entry, mapper))
            elif entry.kind is EntryKind.ASSET:
                assets[entry.source_path] = mapper.map(entry.source_path)
        return cls(documents, assets)

    def __len__(self) -> int:
        return len(self.documents)

    def __iter__(self) -> Iterator[IndexedDocument]:
        return iter(self.documents)

    def get(self, source_path: PurePosixPath) -> Optional[IndexedDocument]:
        """Get a document by its exact vault-relative source path."""
        return self._by_source.get(PurePosixPath(source_path))

    def by_path(self, path_key: str) -> Optional[IndexedDocument]:
        """Get a document by vault-relative path without suffix."""
        return self._by_path.get(path_key)

    def by_title(self, title: str) -> Tuple[IndexedDocument, ...]:
        """All documents with this title, case-insensitive."""
        return self._by_title.get(title.casefold(), ())

    def asset_output(self, source_path: PurePosixPath) -> Optional[PurePosixPath]:
        return self._assets.get(PurePosixPath(source_path))

    def assets_named(self, name: str) -> Tuple[PurePosixPath, ...]:
        """Asset source paths whose filename matches, case-insensitive."""
        return self._assets_by_name.get(name.casefold(), ())

    @property
    def assets(self) -> Mapping[PurePosixPath, PurePosixPath]:
        return self._assets
