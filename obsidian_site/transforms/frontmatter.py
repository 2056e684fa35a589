"""Front-matter helpers for Obsidian Site.

A document may start with a YAML block delimited by ``---`` lines. The block
is parsed for metadata (title, tags, date) and never rendered into the page.
"""

import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

DELIMITER = '---'


@dataclass
class FrontMatter:
    """Parsed front matter and the Markdown body that follows it."""
    data: Dict[str, Any] = field(default_factory=dict)
    body: str = ""
    error: Optional[str] = None

    @property
    def title(self) -> Optional[str]:
        title = self.data.get('title')
        if title is None or str(title).strip() == "":
            return None
        return str(title).strip()

    @property
    def tags(self) -> List[str]:
        return extract_tags(self.data)

    @property
    def date(self) -> str:
        return get_date_string(self.data.get('date'))


def split_frontmatter(text: str) -> FrontMatter:
    """Separate the front-matter block from the document body.

    A block that is never closed is treated as ordinary content. A closed
    block with invalid YAML is still stripped, with ``error`` set.

    Args:
        text: Full document text

    Returns:
        FrontMatter with the parsed mapping (empty if absent) and the body
    """
    if text.startswith('\ufeff'):
        text = text[1:]

    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != DELIMITER:
        return FrontMatter(body=text)

    for i, line in enumerate(lines[1:], start=1):
        if line.rstrip() in (DELIMITER, '...'):
            raw = ''.join(lines[1:i])
            body = ''.join(lines[i + 1:])
            break
    else:
        return FrontMatter(body=text)

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        return FrontMatter(body=body, error=f"Invalid front matter: {e}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        return FrontMatter(body=body, error="Front matter is not a mapping")

    return FrontMatter(data=data, body=body)


def extract_tags(frontmatter: Dict) -> List[str]:
    """Extract all tags from frontmatter.

    Handles both list and string formats, with or without a leading ``#``.
    """
    tags = []

    tag_data = frontmatter.get('tags')
    if isinstance(tag_data, list):
        tags.extend(str(tag) for tag in tag_data if tag is not None)
    elif isinstance(tag_data, str):
        tags.extend(t for t in tag_data.replace(',', ' ').split() if t)

    return [tag.lstrip('#') for tag in tags]


def get_date_string(date_value) -> str:
    """Display form of a ``date`` value; YAML has already parsed ISO dates."""
    if date_value is None:
        return ""
    if isinstance(date_value, datetime.datetime):
        return date_value.strftime('%Y-%m-%d %H:%M:%S%z')
    if isinstance(date_value, datetime.date):
        return date_value.isoformat()
    return str(date_value)
