"""Data models for Obsidian Site."""

import enum
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, List, Optional, Tuple, Union

if TYPE_CHECKING:
    from obsidian_site.core.index import IndexedDocument


class FatalRunError(Exception):
    """The run cannot proceed at all (bad vault path, unwritable output, ...)."""


class PathCollisionError(FatalRunError):
    """Two source paths map to the same output path."""

    def __init__(self, collisions: List[Tuple[PurePosixPath, ...]]):
        self.collisions = collisions
        lines = ', '.join(
            ' <-> '.join(str(p) for p in group) for group in collisions
        )
        super().__init__(f"Output path collision: {lines}")


class ConfigError(FatalRunError):
    """Invalid site configuration."""


class EntryKind(enum.Enum):
    DOCUMENT = "document"
    ASSET = "asset"
    IGNORED = "ignored"


@dataclass(frozen=True)
class VaultEntry:
    """One file (or skipped directory) found while walking the vault.

    Document text is read during traversal so the index can see front matter;
    asset bytes are only read when the asset is copied.
    """
    source_path: PurePosixPath
    kind: EntryKind
    path: Path
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class LinkKind(enum.Enum):
    WIKI_LINK = "wikilink"
    EMBED = "embed"
    MARKDOWN_LINK = "markdown"
    EXTERNAL_URL = "external"


@dataclass(frozen=True)
class LinkReference:
    """A link target exactly as written in a document."""
    raw_target: str
    kind: LinkKind

    @classmethod
    def classify(cls, raw_target: str, kind: LinkKind) -> "LinkReference":
        """Build a reference, promoting real URLs to EXTERNAL_URL."""
        if is_external(raw_target):
            return cls(raw_target, LinkKind.EXTERNAL_URL)
        return cls(raw_target, kind)


# Schemes written without "//" that still name something outside the site
OPAQUE_SCHEMES = frozenset({'mailto', 'tel', 'sms', 'data', 'news', 'urn', 'magnet'})

SCHEME_RE = re.compile(r'^([A-Za-z][A-Za-z0-9+.-]+):(.*)$', re.DOTALL)


def is_external(target: str) -> bool:
    """True for real URLs; ``Project: Plan`` or ``Re:Zero`` are note names."""
    if target.startswith('//'):
        return True
    m = SCHEME_RE.match(target)
    if not m:
        return False
    return m.group(2).startswith('//') or m.group(1).lower() in OPAQUE_SCHEMES


@dataclass(frozen=True)
class ResolvedLink:
    """A link that points at a Document or Asset inside the site."""
    source_path: PurePosixPath
    output_path: PurePosixPath
    fragment: str = ""
    document: Optional["IndexedDocument"] = None

    @property
    def is_document(self) -> bool:
        return self.document is not None


@dataclass(frozen=True)
class ExternalTarget:
    url: str


@dataclass(frozen=True)
class Unresolved:
    raw_target: str
    reason: str


Resolution = Union[ResolvedLink, ExternalTarget, Unresolved]


@dataclass(frozen=True)
class RenderWarning:
    """Something degraded while rendering, without failing the item."""
    source_path: PurePosixPath
    message: str

    def __str__(self) -> str:
        return f"{self.source_path}: {self.message}"


@dataclass(frozen=True)
class ItemError:
    """A single document or asset that could not be processed."""
    source_path: PurePosixPath
    error: str

    def __str__(self) -> str:
        return f"{self.source_path}: {self.error}"


@dataclass
class RenderedPage:
    """Result of rendering one document, before templating."""
    source_path: PurePosixPath
    output_path: PurePosixPath
    title: str
    html_body: str
    tags: List[str] = field(default_factory=list)
    date: str = ""
    warnings: List[RenderWarning] = field(default_factory=list)


@dataclass
class RunReport:
    """Result of a site build."""
    succeeded: List[PurePosixPath] = field(default_factory=list)
    failed: List[ItemError] = field(default_factory=list)
    warnings: List[RenderWarning] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def merge(self, other: "RunReport") -> None:
        self.succeeded.extend(other.succeeded)
        self.failed.extend(other.failed)
        self.warnings.extend(other.warnings)
