"""Site configuration, optionally loaded from a YAML file."""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import titlecase as tc
import yaml

from obsidian_site.core.models import ConfigError
from obsidian_site.core.paths import DEFAULT_MARKDOWN_SUFFIXES
from obsidian_site.transforms.links import LinkTransform, absolute_link, relative_link

LINK_STYLES = ('relative', 'absolute')


@dataclass
class SiteConfig:
    """Options for a site build.

    Attributes:
        site_title: Title shown in page titles and on the index page
        markdown_suffixes: File suffixes treated as documents
        ignore: Glob patterns for vault entries to skip
        link_style: "relative" (browsable from disk) or "absolute"
        base_url: URL prefix used when link_style is "absolute"
        workers: Number of threads rendering documents
        template_dir: Directory overriding the bundled theme templates
        titlecase_folders: Show folder names in title case on the index page
        case_insensitive_paths: Treat outputs differing only by case as clashing
        site_index: Write index.html listing every page
        stylesheet: Write the theme's style.css
    """
    site_title: str = ""
    markdown_suffixes: List[str] = field(default_factory=lambda: list(DEFAULT_MARKDOWN_SUFFIXES))
    ignore: List[str] = field(default_factory=list)
    link_style: str = "relative"
    base_url: str = "/"
    workers: int = 1
    template_dir: Optional[Path] = None
    titlecase_folders: bool = False
    case_insensitive_paths: bool = True
    site_index: bool = True
    stylesheet: bool = True

    def __post_init__(self):
        if self.link_style not in LINK_STYLES:
            raise ConfigError(
                f"link_style must be one of {', '.join(LINK_STYLES)}, got {self.link_style!r}"
            )
        if not isinstance(self.workers, int) or self.workers < 1:
            raise ConfigError(f"workers must be a positive integer, got {self.workers!r}")
        if isinstance(self.markdown_suffixes, str):
            self.markdown_suffixes = [self.markdown_suffixes]
        self.markdown_suffixes = [
            s if s.startswith('.') else f".{s}" for s in self.markdown_suffixes
        ]
        if not self.markdown_suffixes:
            raise ConfigError("markdown_suffixes must not be empty")
        if self.template_dir is not None:
            self.template_dir = Path(self.template_dir)

    def link_transform(self) -> LinkTransform:
        if self.link_style == "absolute":
            return absolute_link(self.base_url)
        return relative_link()

    def title_for(self, vault_path: Path) -> str:
        """Configured site title, or the vault folder name in title case."""
        if self.site_title:
            return self.site_title
        name = Path(vault_path).resolve().name.replace('-', ' ').replace('_', ' ')
        return tc.titlecase(name)

    def with_overrides(self, **overrides: Any) -> "SiteConfig":
        """Copy with the given non-None values replaced (e.g. from CLI flags)."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return SiteConfig(**values)


def config_from_dict(data: Dict[str, Any]) -> SiteConfig:
    """Build a SiteConfig from a mapping, rejecting unknown keys."""
    known = {f.name for f in fields(SiteConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
    try:
        return SiteConfig(**data)
    except (TypeError, AttributeError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_config(path: Path) -> SiteConfig:
    """Load site configuration from a YAML file.

    Args:
        path: Path to the YAML config file

    Returns:
        SiteConfig

    Raises:
        ConfigError: if the file is missing, unreadable or invalid
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return SiteConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    return config_from_dict(data)
