"""Core components for Obsidian Site."""

from obsidian_site.core.models import (
    ExternalTarget,
    FatalRunError,
    ItemError,
    LinkKind,
    LinkReference,
    RenderedPage,
    RenderWarning,
    ResolvedLink,
    RunReport,
    Unresolved,
    VaultEntry,
)
from obsidian_site.core.paths import PathMapper
from obsidian_site.core.index import DocumentIndex, IndexedDocument
from obsidian_site.core.resolver import ReferenceResolver
from obsidian_site.core.processor import MarkdownRenderer
from obsidian_site.core.discovery import VaultWalker
from obsidian_site.core.pipeline import SitePipeline

__all__ = [
    "ExternalTarget",
    "FatalRunError",
    "ItemError",
    "LinkKind",
    "LinkReference",
    "RenderedPage",
    "RenderWarning",
    "ResolvedLink",
    "RunReport",
    "Unresolved",
    "VaultEntry",
    "PathMapper",
    "DocumentIndex",
    "IndexedDocument",
    "ReferenceResolver",
    "MarkdownRenderer",
    "VaultWalker",
    "SitePipeline",
]
