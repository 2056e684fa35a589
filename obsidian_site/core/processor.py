"""Markdown renderer for Obsidian documents."""

import html
import logging
import re
import xml.etree.ElementTree as etree
from dataclasses import dataclass, field, replace
from pathlib import PurePosixPath
from typing import FrozenSet, List, Optional, Tuple, Union

import markdown
from markdown import util
from markdown.extensions import Extension
from markdown.inlinepatterns import InlineProcessor
from markdown.treeprocessors import Treeprocessor

from obsidian_site.core.index import DocumentIndex, IndexedDocument
from obsidian_site.core.models import (
    ExternalTarget,
    LinkKind,
    LinkReference,
    RenderedPage,
    RenderWarning,
    Resolution,
    ResolvedLink,
    Unresolved,
    VaultEntry,
    is_external,
)
from obsidian_site.core.resolver import ReferenceResolver
from obsidian_site.transforms.links import LinkTransform, heading_slug, relative_link

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = {'.png', '.jpg', '.jpeg', '.gif', '.webp', '.svg', '.bmp', '.avif'}
AUDIO_SUFFIXES = {'.mp3', '.wav', '.ogg', '.m4a', '.flac', '.webm'}
VIDEO_SUFFIXES = {'.mp4', '.mov', '.ogv', '.mkv'}

# Wiki-links cannot contain brackets or span lines
WIKILINK_RE = r'\[\[([^\[\]\n]+)\]\]'
EMBED_RE = r'!\[\[([^\[\]\n]+)\]\]'

SIZE_RE = re.compile(r'^(\d+)(?:x(\d+))?$')
HEADING_RE = re.compile(r'^(#{1,6})\s+(.*?)\s*#*\s*$')
FENCE_RE = re.compile(r'^\s*(```|~~~)')

# Backslash escapes as left by the inline escape processor
ESCAPED_CHAR_RE = re.compile(f'{util.STX}([0-9]+){util.ETX}')

MARKDOWN_EXTENSIONS = [
    'fenced_code',
    'tables',
    'sane_lists',
    'smarty',
    'toc',
    'pymdownx.tilde',
    'pymdownx.tasklist',
    'pymdownx.magiclink',
]


def extract_section(body: str, slug: str) -> Optional[str]:
    """Return the part of ``body`` under the heading whose slug is ``slug``.

    The section runs until the next heading of the same or a higher level.
    Headings inside fenced code are ignored.
    """
    lines = body.splitlines(keepends=True)
    start = level = None
    in_fence = False

    for i, line in enumerate(lines):
        if FENCE_RE.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        m = HEADING_RE.match(line)
        if not m:
            continue
        if start is None:
            if heading_slug(m.group(2)) == slug:
                start, level = i, len(m.group(1))
        elif len(m.group(1)) <= level:
            return ''.join(lines[start:i])

    if start is None:
        return None
    return ''.join(lines[start:])


@dataclass
class RenderContext:
    """State for one (possibly nested) render of a document body.

    ``document`` is the document whose links are being resolved, ``page`` is
    where the HTML ends up, and ``visited`` holds the (source, section) pairs
    already being expanded on the current embed chain.
    """
    root: IndexedDocument
    document: IndexedDocument
    page: PurePosixPath
    visited: FrozenSet[Tuple[PurePosixPath, str]]
    warnings: List[RenderWarning] = field(default_factory=list)

    def warn(self, message: str) -> None:
        if self.document is not self.root:
            message = f"{message} (in embedded {self.document.source_path})"
        logger.warning("%s: %s", self.root.source_path, message)
        self.warnings.append(RenderWarning(self.root.source_path, message))


class ObsidianInlineProcessor(InlineProcessor):
    """Shared parsing of ``Target|Alias`` inside double brackets."""

    def __init__(self, pattern, md, renderer: "MarkdownRenderer", context: RenderContext):
        super().__init__(pattern, md)
        self.renderer = renderer
        self.context = context

    def plain(self, text: str) -> str:
        """Undo inline stashing and backslash escapes (``\\|`` in tables)."""
        text = self.unescape(text)
        return ESCAPED_CHAR_RE.sub(lambda m: chr(int(m.group(1))), text)

    def split_target(self, m) -> Tuple[str, str]:
        target, _, alias = self.plain(m.group(1)).partition('|')
        return target.strip(), alias.strip()


class WikiLinkInlineProcessor(ObsidianInlineProcessor):
    """``[[Target]]``, ``[[Target|Alias]]`` and ``[[Target#Heading]]``."""

    def handleMatch(self, m, data):
        target, alias = self.split_target(m)

        if not target.strip('#').strip():
            self.context.warn(f"Malformed wiki-link {self.plain(m.group(0))!r}")
            return self.plain(m.group(0)), m.start(0), m.end(0)

        display = alias or ' > '.join(p.strip() for p in target.split('#') if p.strip())
        link = LinkReference.classify(target, LinkKind.WIKI_LINK)
        resolution = self.renderer.resolve(link, self.context)

        if isinstance(resolution, Unresolved):
            return target, m.start(0), m.end(0)

        el = etree.Element('a')
        el.set('href', self.renderer.href(resolution, self.context))
        if isinstance(resolution, ResolvedLink):
            el.set('class', 'internal-link')
        el.text = display
        return el, m.start(0), m.end(0)


class EmbedInlineProcessor(ObsidianInlineProcessor):
    """``![[Target]]``: transclude a document or embed an asset."""

    def handleMatch(self, m, data):
        target, alias = self.split_target(m)

        if not target.strip('#').strip():
            self.context.warn(f"Malformed embed {self.plain(m.group(0))!r}")
            return self.plain(m.group(0)), m.start(0), m.end(0)

        link = LinkReference.classify(target, LinkKind.EMBED)
        resolution = self.renderer.resolve(link, self.context)

        if isinstance(resolution, Unresolved):
            return target, m.start(0), m.end(0)
        if isinstance(resolution, ExternalTarget):
            return self._media(resolution.url, PurePosixPath(resolution.url), alias), m.start(0), m.end(0)
        if resolution.is_document:
            return self._transclude(resolution, target), m.start(0), m.end(0)

        href = self.renderer.href(resolution, self.context)
        return self._media(href, resolution.source_path, alias), m.start(0), m.end(0)

    def _transclude(self, resolution: ResolvedLink, target: str):
        key = (resolution.source_path, resolution.fragment)
        if key in self.context.visited or (resolution.source_path, "") in self.context.visited:
            self.context.warn(f"Circular embed of '{target}'")
            el = etree.Element('span')
            el.set('class', 'circular-reference')
            el.text = f"Circular reference: {target}"
            return el

        body = self.renderer.embed_html(resolution, self.context)
        if body is None:
            return target
        return self.md.htmlStash.store(body)

    @staticmethod
    def _media(src: str, path: PurePosixPath, alias: str):
        suffix = path.suffix.lower()
        if suffix in IMAGE_SUFFIXES:
            el = etree.Element('img')
            el.set('src', src)
            el.set('class', 'internal-embed')
            size = SIZE_RE.match(alias)
            if size:
                el.set('alt', path.stem)
                el.set('width', size.group(1))
                if size.group(2):
                    el.set('height', size.group(2))
            else:
                el.set('alt', alias or path.stem)
            return el

        if suffix in AUDIO_SUFFIXES or suffix in VIDEO_SUFFIXES:
            el = etree.Element('audio' if suffix in AUDIO_SUFFIXES else 'video')
            el.set('controls', 'controls')
            el.set('class', 'internal-embed')
            el.set('src', src)
            return el

        el = etree.Element('a')
        el.set('href', src)
        el.set('class', 'internal-link')
        el.text = alias or path.name
        return el


class LinkRewriteTreeprocessor(Treeprocessor):
    """Rewrite hrefs and srcs of standard Markdown links and images.

    Internal targets are mapped to their output paths. Anchors that cannot be
    resolved are replaced by their text, images by their alt text.
    """

    def __init__(self, md, renderer: "MarkdownRenderer", context: RenderContext):
        super().__init__(md)
        self.renderer = renderer
        self.context = context

    def run(self, root):
        images, anchors = [], []
        for parent in root.iter():
            for child in parent:
                if child.tag == 'img':
                    images.append((parent, child))
                elif child.tag == 'a':
                    anchors.append((parent, child))

        for parent, img in images:
            self._rewrite(parent, img, 'src')
        for parent, a in anchors:
            self._rewrite(parent, a, 'href')

    def _rewrite(self, parent, el, attr: str) -> None:
        target = el.get(attr)
        if not target or target.startswith('#') or el.get('class', '').startswith('internal-'):
            return
        if is_external(target):
            return

        link = LinkReference.classify(target, LinkKind.MARKDOWN_LINK)
        resolution = self.renderer.resolve(link, self.context)

        if isinstance(resolution, ResolvedLink):
            el.set(attr, self.renderer.href(resolution, self.context))
            if el.tag == 'a':
                el.set('class', 'internal-link')
        elif isinstance(resolution, Unresolved):
            if el.tag == 'img':
                el.text = el.get('alt', '')
            _unwrap(parent, el)


def _unwrap(parent, el) -> None:
    """Replace ``el`` in ``parent`` by its text and children."""
    index = list(parent).index(el)
    children = list(el)
    text, tail = el.text or '', el.tail or ''
    parent.remove(el)

    def append_text(position: int, value: str) -> None:
        if not value:
            return
        if position == 0:
            parent.text = (parent.text or '') + value
        else:
            prev = parent[position - 1]
            prev.tail = (prev.tail or '') + value

    append_text(index, text)
    for offset, child in enumerate(children):
        parent.insert(index + offset, child)
    append_text(index + len(children), tail)


class ObsidianExtension(Extension):
    """Registers wiki-link, embed and link rewriting for one render."""

    def __init__(self, renderer: "MarkdownRenderer", context: RenderContext, **kwargs):
        self.renderer = renderer
        self.context = context
        super().__init__(**kwargs)

    def extendMarkdown(self, md):
        # Above the standard link patterns, below escapes and code spans
        md.inlinePatterns.register(
            EmbedInlineProcessor(EMBED_RE, md, self.renderer, self.context), 'obsidian_embed', 176
        )
        md.inlinePatterns.register(
            WikiLinkInlineProcessor(WIKILINK_RE, md, self.renderer, self.context), 'obsidian_wikilink', 175
        )
        md.treeprocessors.register(
            LinkRewriteTreeprocessor(md, self.renderer, self.context), 'obsidian_links', 12
        )


class MarkdownRenderer:
    """Renders vault documents to HTML body fragments.

    Handles:
    - CommonMark-style blocks plus tables, task lists and strikethrough
    - Wiki-links and embeds, resolved against the DocumentIndex
    - Rewriting of relative Markdown links to output paths
    - Front matter (stripped, title/tags/date kept on the page)
    """

    def __init__(
        self,
        index: DocumentIndex,
        resolver: Optional[ReferenceResolver] = None,
        link_transform: Optional[LinkTransform] = None,
    ):
        """Initialize MarkdownRenderer.

        Args:
            index: Index of all documents and assets in the run
            resolver: Resolver for link targets (default: one over ``index``)
            link_transform: Builds hrefs from output paths (default: relative)
        """
        self.index = index
        self.resolver = resolver or ReferenceResolver(index)
        self.link_transform = link_transform or relative_link()

    def render(self, document: Union[VaultEntry, IndexedDocument]) -> RenderedPage:
        """Render one document's body.

        Args:
            document: A walker entry or an already indexed document

        Returns:
            RenderedPage with the HTML fragment and any warnings

        Raises:
            ValueError: if the document could not be read or is not indexed
        """
        doc = self._lookup(document)
        context = RenderContext(
            root=doc,
            document=doc,
            page=doc.output_path,
            visited=frozenset({(doc.source_path, "")}),
        )
        if doc.frontmatter_error:
            context.warn(doc.frontmatter_error)

        html_body = self._convert(doc.body, context)
        logger.debug("Rendered %s -> %s", doc.source_path, doc.output_path)

        return RenderedPage(
            source_path=doc.source_path,
            output_path=doc.output_path,
            title=doc.title,
            html_body=html_body,
            tags=list(doc.tags),
            date=doc.date,
            warnings=context.warnings,
        )

    def resolve(self, link: LinkReference, context: RenderContext) -> Resolution:
        """Resolve a link relative to the document being rendered, recording warnings."""
        resolution = self.resolver.resolve(link, context.document.source_path)
        if isinstance(resolution, Unresolved):
            context.warn(f"Unresolved link '{link.raw_target}': {resolution.reason}")
        return resolution

    def href(self, resolution: Union[ResolvedLink, ExternalTarget], context: RenderContext) -> str:
        if isinstance(resolution, ExternalTarget):
            return resolution.url
        return self.link_transform(context.page, resolution.output_path, resolution.fragment)

    def embed_html(self, resolution: ResolvedLink, context: RenderContext) -> Optional[str]:
        """Render an embedded document (or one of its sections) for the current page."""
        doc = resolution.document
        body = doc.body
        if resolution.fragment:
            body = extract_section(doc.body, resolution.fragment)
            if body is None:
                context.warn(f"No section '{resolution.fragment}' in {doc.source_path}")
                return None

        nested = replace(
            context,
            document=doc,
            visited=context.visited | {(doc.source_path, resolution.fragment)},
        )
        inner = self._convert(body, nested)
        return (
            f'<div class="embed" data-source="{html.escape(doc.source_path.as_posix())}">\n'
            f'{inner}\n</div>'
        )

    def _convert(self, text: str, context: RenderContext) -> str:
        md = markdown.Markdown(
            extensions=MARKDOWN_EXTENSIONS + [ObsidianExtension(self, context)],
            extension_configs={
                'toc': {'slugify': heading_slug},
                'pymdownx.tilde': {'subscript': False},
            },
        )
        return md.convert(text)

    def _lookup(self, document: Union[VaultEntry, IndexedDocument]) -> IndexedDocument:
        if isinstance(document, IndexedDocument):
            return document
        if document.failed:
            raise ValueError(f"{document.source_path} could not be read: {document.error}")
        doc = self.index.get(document.source_path)
        if doc is None:
            raise ValueError(f"{document.source_path} is not an indexed document")
        return doc
