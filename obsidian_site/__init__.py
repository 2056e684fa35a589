"""
Obsidian Site - Turn an Obsidian vault into a static HTML website

A small library and command line tool that mirrors a vault's folders
into a browsable site, with support for:
- Wiki-links and embeds, resolved across the whole vault
- Relative Markdown links rewritten to the generated pages
- Front matter titles, tags and dates
- Verbatim copying of images and other attachments
"""

from obsidian_site.core.models import (
    ConfigError,
    EntryKind,
    FatalRunError,
    ItemError,
    LinkKind,
    LinkReference,
    PathCollisionError,
    RenderedPage,
    RenderWarning,
    RunReport,
    VaultEntry,
)
from obsidian_site.core.paths import PathMapper
from obsidian_site.core.index import DocumentIndex, IndexedDocument
from obsidian_site.core.resolver import ReferenceResolver
from obsidian_site.core.processor import MarkdownRenderer
from obsidian_site.core.discovery import VaultWalker
from obsidian_site.core.pipeline import SitePipeline
from obsidian_site.config import SiteConfig, load_config
from obsidian_site.templates import NavContext, Theme

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "EntryKind",
    "FatalRunError",
    "ItemError",
    "LinkKind",
    "LinkReference",
    "PathCollisionError",
    "RenderedPage",
    "RenderWarning",
    "RunReport",
    "VaultEntry",
    "PathMapper",
    "DocumentIndex",
    "IndexedDocument",
    "ReferenceResolver",
    "MarkdownRenderer",
    "VaultWalker",
    "SitePipeline",
    "SiteConfig",
    "load_config",
    "NavContext",
    "Theme",
]
