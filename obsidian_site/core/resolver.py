"""Resolution of link targets found in vault documents."""

import logging
import posixpath
from pathlib import PurePosixPath
from typing import Optional, Sequence, Tuple, TypeVar, Union
from urllib.parse import unquote, urlsplit

from obsidian_site.core.index import DocumentIndex, IndexedDocument
from obsidian_site.core.models import (
    ExternalTarget,
    LinkKind,
    LinkReference,
    Resolution,
    ResolvedLink,
    Unresolved,
)
from obsidian_site.core.paths import PathMapper
from obsidian_site.transforms.links import heading_slug

logger = logging.getLogger(__name__)

T = TypeVar('T')


def split_wiki_target(raw: str) -> Tuple[str, str]:
    """Split ``Note#Heading`` into ``("Note", "heading")``.

    Nested headings (``Note#A#B``) link to the last one. Block references
    (``Note#^id``) keep only the note.
    """
    target, _, section = raw.partition('#')
    section = section.split('#')[-1].strip()
    if section.startswith('^'):
        section = ""
    return target.strip(), heading_slug(section) if section else ""


def _depth(path: PurePosixPath) -> int:
    return len(path.parts)


class ReferenceResolver:
    """Resolves link targets to output paths using a DocumentIndex.

    Handles:
    - Wiki-links and embeds: exact path, then title across the vault,
      then path suffix, then asset filename
    - Markdown links: paths relative to the referencing document
    - External URLs: passed through
    """

    def __init__(self, index: DocumentIndex, mapper: Optional[PathMapper] = None):
        self.index = index
        self.mapper = mapper or PathMapper()

    def resolve(self, link: LinkReference, from_path: PurePosixPath) -> Resolution:
        """Resolve a link written inside ``from_path``.

        Args:
            link: The reference as written in the source
            from_path: Vault-relative path of the referencing document

        Returns:
            ResolvedLink, ExternalTarget or Unresolved
        """
        from_path = PurePosixPath(from_path)

        if link.kind is LinkKind.EXTERNAL_URL:
            return ExternalTarget(link.raw_target)
        if link.kind is LinkKind.MARKDOWN_LINK:
            return self._resolve_markdown(link.raw_target, from_path)
        if link.kind in (LinkKind.WIKI_LINK, LinkKind.EMBED):
            return self._resolve_wiki(link.raw_target, from_path)

        raise ValueError(f"Unknown link kind: {link.kind}")

    def _resolve_wiki(self, raw: str, from_path: PurePosixPath) -> Resolution:
        target, fragment = split_wiki_target(raw)

        if not target:
            return self._self_link(from_path, fragment, raw)

        key = posixpath.normpath(target.replace('\\', '/').lstrip('/'))

        doc = self._document_at(key)
        if doc is not None:
            return self._link_to(doc, fragment)

        title = PurePosixPath(key).stem if self.mapper.is_markdown(PurePosixPath(key)) else target
        candidates = self.index.by_title(title)
        if candidates:
            return self._pick_document(candidates, raw, fragment, "title")

        if '/' in key:
            suffix = '/' + (PurePosixPath(key).with_suffix('').as_posix()
                            if self.mapper.is_markdown(PurePosixPath(key)) else key)
            candidates = tuple(d for d in self.index if ('/' + d.path_key).endswith(suffix))
            if candidates:
                return self._pick_document(candidates, raw, fragment, "path")

        asset = self._asset_by_name(key, raw)
        if asset is not None:
            return asset

        return Unresolved(raw, f"no document or asset matches '{target}'")

    def _resolve_markdown(self, raw: str, from_path: PurePosixPath) -> Resolution:
        parts = urlsplit(raw)
        path = unquote(parts.path)
        fragment = heading_slug(unquote(parts.fragment)) if parts.fragment else ""

        if not path:
            return self._self_link(from_path, fragment, raw)

        if path.startswith('/'):
            candidates = [path.lstrip('/')]
        else:
            candidates = [posixpath.join(posixpath.dirname(from_path.as_posix()), path), path]

        for candidate in candidates:
            normalized = posixpath.normpath(candidate)
            if normalized == '.' or normalized == '..' or normalized.startswith('../'):
                continue

            doc = self._document_at(normalized)
            if doc is not None:
                return self._link_to(doc, fragment)

            output = self.index.asset_output(PurePosixPath(normalized))
            if output is not None:
                return ResolvedLink(PurePosixPath(normalized), output, fragment)

        return Unresolved(raw, f"'{path}' is not in the vault")

    def _document_at(self, key: str) -> Optional[IndexedDocument]:
        path = PurePosixPath(key)
        if self.mapper.is_markdown(path):
            return self.index.get(path)
        return self.index.by_path(key)

    def _asset_by_name(self, key: str, raw: str) -> Optional[Resolution]:
        path = PurePosixPath(key)
        output = self.index.asset_output(path)
        if output is not None:
            return ResolvedLink(path, output)

        candidates = self.index.assets_named(path.name)
        if '/' in key:
            candidates = tuple(c for c in candidates if ('/' + c.as_posix()).endswith('/' + key))
        if not candidates:
            return None

        winner = self._shortest(candidates, lambda p: p)
        if isinstance(winner, Unresolved):
            return Unresolved(raw, winner.reason)
        return ResolvedLink(winner, self.index.assets[winner])

    def _pick_document(
        self,
        candidates: Sequence[IndexedDocument],
        raw: str,
        fragment: str,
        matched_on: str,
    ) -> Resolution:
        winner = self._shortest(candidates, lambda d: d.source_path)
        if isinstance(winner, Unresolved):
            logger.debug("Ambiguous %s match for '%s': %s", matched_on, raw, winner.reason)
            return Unresolved(raw, winner.reason)
        return self._link_to(winner, fragment)

    def _shortest(self, candidates: Sequence[T], path_of) -> Union[T, Unresolved]:
        """Pick the candidate nearest the vault root; a tie is ambiguous.

        "Nearest" counts path components, not characters: ``b/x.md`` and
        ``aa/x.md`` tie.
        """
        best = min(_depth(path_of(c)) for c in candidates)
        nearest = [c for c in candidates if _depth(path_of(c)) == best]
        if len(nearest) == 1:
            return nearest[0]
        names = ', '.join(sorted(path_of(c).as_posix() for c in nearest))
        return Unresolved("", f"ambiguous target, candidates: {names}")

    def _self_link(self, from_path: PurePosixPath, fragment: str, raw: str) -> Resolution:
        doc = self.index.get(from_path)
        if doc is None:
            return Unresolved(raw, "referencing document is not indexed")
        return self._link_to(doc, fragment)

    @staticmethod
    def _link_to(doc: IndexedDocument, fragment: str) -> ResolvedLink:
        return ResolvedLink(doc.source_path, doc.output_path, fragment, doc)
