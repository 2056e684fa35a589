"""Link transform factories for Obsidian Site.

A link transform turns the output path of the page being written and the
output path of the link target into the ``href`` placed in the HTML.
"""

import posixpath
import re
import unicodedata
from pathlib import PurePosixPath
from typing import Callable
from urllib.parse import quote

import inflection

LinkTransform = Callable[[PurePosixPath, PurePosixPath, str], str]


def _with_fragment(href: str, fragment: str) -> str:
    if fragment:
        return f"{href}#{fragment}"
    return href


def relative_link() -> LinkTransform:
    """Create a transform producing hrefs relative to the current page.

    The generated site can then be opened straight from disk.

    Returns:
        A transform function (page, target, fragment) -> href
    """
    def transform(page: PurePosixPath, target: PurePosixPath, fragment: str = "") -> str:
        if page == target and fragment:
            return f"#{fragment}"
        start = posixpath.dirname(page.as_posix()) or '.'
        href = posixpath.relpath(target.as_posix(), start)
        return _with_fragment(quote(href), fragment)
    return transform


def absolute_link(prefix: str = "/") -> LinkTransform:
    """Create a transform producing site-absolute hrefs.

    Args:
        prefix: URL prefix the site is served under (e.g. "/notes")

    Returns:
        A transform function (page, target, fragment) -> href
    """
    prefix = prefix.rstrip('/')

    def transform(page: PurePosixPath, target: PurePosixPath, fragment: str = "") -> str:
        return _with_fragment(f"{prefix}/{quote(target.as_posix())}", fragment)
    return transform


def root_prefix(page: PurePosixPath) -> str:
    """Relative path from a page back to the site root ("." at top level)."""
    depth = len(page.parent.parts)
    if depth == 0:
        return "."
    return "/".join([".."] * depth)


def _has_ascii_form(char: str) -> bool:
    return bool(unicodedata.normalize('NFKD', char).encode('ascii', 'ignore'))


def heading_slug(value: str, separator: str = "-") -> str:
    """Anchor id for a heading; used both for heading ids and link fragments.

    Latin text is transliterated ("Café" -> "cafe"). Text with letters that
    have no ASCII form (CJK, Cyrillic, ...) keeps them, so such headings get
    distinct ids instead of all collapsing to the fallback.
    """
    value = value.strip()
    if all(_has_ascii_form(c) for c in value if c.isalnum()):
        return inflection.parameterize(value, separator) or "section"
    slug = re.sub(r'\W+', separator, value.lower()).strip(separator)
    return slug or "section"
