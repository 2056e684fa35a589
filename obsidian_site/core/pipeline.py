"""Site build pipeline: vault in, static HTML site out."""

import logging
import os
import shutil
import uuid
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional

from obsidian_site.config import SiteConfig
from obsidian_site.core.discovery import VaultWalker
from obsidian_site.core.index import DocumentIndex
from obsidian_site.core.models import (
    EntryKind,
    FatalRunError,
    ItemError,
    RunReport,
    VaultEntry,
)
from obsidian_site.core.paths import PathMapper
from obsidian_site.core.processor import MarkdownRenderer
from obsidian_site.core.resolver import ReferenceResolver
from obsidian_site.templates import NavContext, PageTemplate, Theme, build_tree
from obsidian_site.transforms.links import root_prefix

logger = logging.getLogger(__name__)

INDEX_PAGE = PurePosixPath("index.html")
STYLESHEET = PurePosixPath("style.css")


def _temp_path(target: Path) -> Path:
    return target.with_name(f".{target.name}.{uuid.uuid4().hex}.tmp")


def _write_atomic(target: Path, data: bytes) -> None:
    """Write ``data`` to ``target`` through a temporary sibling file."""
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = _temp_path(target)
    try:
        with open(tmp, 'wb') as f:
            f.write(data)
        os.replace(tmp, target)
    finally:
        if tmp.exists():
            tmp.unlink()


def _copy_atomic(source: Path, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = _temp_path(target)
    try:
        shutil.copyfile(source, tmp)
        os.replace(tmp, target)
    finally:
        if tmp.exists():
            tmp.unlink()


class SitePipeline:
    """Builds a static site from an Obsidian vault.

    Walks the vault, indexes every document, then renders documents and copies
    assets into ``output_dir``. A failing item is recorded in the RunReport
    and the build carries on; only an unusable vault or output directory, or
    an output path collision, stops the run.
    """

    def __init__(
        self,
        vault_path: Path,
        output_dir: Path,
        config: Optional[SiteConfig] = None,
        template: Optional[PageTemplate] = None,
    ):
        """Initialize SitePipeline.

        Args:
            vault_path: Path to the Obsidian vault root
            output_dir: Directory the site is written to (created if absent)
            config: Build options (default: SiteConfig())
            template: Page template (default: Theme from config.template_dir)
        """
        self.vault_path = Path(vault_path)
        self.output_dir = Path(output_dir)
        self.config = config or SiteConfig()
        self.theme = Theme(self.config.template_dir)
        self.template: PageTemplate = template or self.theme
        self.mapper = PathMapper(
            markdown_suffixes=self.config.markdown_suffixes,
            case_insensitive=self.config.case_insensitive_paths,
        )
        self.link_transform = self.config.link_transform()
        self.site_title = self.config.title_for(self.vault_path)

    def run(self) -> RunReport:
        """Build the site.

        Returns:
            RunReport of succeeded and failed items and render warnings

        Raises:
            FatalRunError: vault unusable, output unwritable, or path collision
        """
        self._check_vault()

        walker = VaultWalker(
            self.vault_path,
            markdown_suffixes=self.config.markdown_suffixes,
            ignore=self.config.ignore,
            exclude=[self.output_dir],
        )
        entries = [e for e in walker if e.kind is not EntryKind.IGNORED or e.failed]
        logger.info("Found %d entries in %s", len(entries), self.vault_path)

        self.mapper.check_injective(e.source_path for e in entries if not e.failed)
        self._prepare_output()

        index = DocumentIndex.build(entries, self.mapper)
        renderer = MarkdownRenderer(
            index,
            resolver=ReferenceResolver(index, self.mapper),
            link_transform=self.link_transform,
        )

        process = partial(self._process, renderer=renderer)
        report = RunReport()
        if self.config.workers > 1:
            with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
                outcomes = list(pool.map(process, entries))
        else:
            outcomes = [process(e) for e in entries]
        for outcome in outcomes:
            report.merge(outcome)

        self._write_extras(index, entries, report)

        logger.info(
            "Built %d items, %d failed, %d warnings",
            len(report.succeeded), len(report.failed), len(report.warnings),
        )
        return report

    def _check_vault(self) -> None:
        if not self.vault_path.exists():
            raise FatalRunError(f"Vault path does not exist: {self.vault_path}")
        if not self.vault_path.is_dir():
            raise FatalRunError(f"Vault path is not a directory: {self.vault_path}")
        try:
            with os.scandir(self.vault_path):
                pass
        except OSError as e:
            raise FatalRunError(f"Cannot read vault {self.vault_path}: {e}") from e
        if self.output_dir.resolve() == self.vault_path.resolve():
            raise FatalRunError(f"Output directory must not be the vault itself: {self.output_dir}")

    def _prepare_output(self) -> None:
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FatalRunError(f"Cannot create output directory {self.output_dir}: {e}") from e
        if not os.access(self.output_dir, os.W_OK | os.X_OK):
            raise FatalRunError(f"Output directory is not writable: {self.output_dir}")

    def _process(self, entry: VaultEntry, renderer: MarkdownRenderer) -> RunReport:
        """Handle one entry; never raises."""
        report = RunReport()
        if entry.failed:
            report.failed.append(ItemError(entry.source_path, entry.error))
            return report

        try:
            if entry.kind is EntryKind.DOCUMENT:
                self._write_document(entry, renderer, report)
            else:
                target = self.output_dir / self.mapper.map(entry.source_path)
                _copy_atomic(entry.path, target)
                logger.debug("Copied %s", entry.source_path)
        except Exception as e:
            logger.warning("Failed to process %s: %s", entry.source_path, e)
            report.failed.append(ItemError(entry.source_path, str(e)))
            return report

        report.succeeded.append(entry.source_path)
        return report

    def _write_document(self, entry: VaultEntry, renderer: MarkdownRenderer, report: RunReport) -> None:
        page = renderer.render(entry)
        report.warnings.extend(page.warnings)

        nav = NavContext(
            root=self._root_for(page.output_path),
            page_path=page.output_path.as_posix(),
            site_title=self.site_title,
            home=self._home_for(page.output_path),
            tags=page.tags,
            date=page.date,
        )
        html = self.template(page.title, page.html_body, nav)
        _write_atomic(self.output_dir / page.output_path, html.encode('utf-8'))
        logger.debug("Wrote %s", page.output_path)

    def _write_extras(self, index: DocumentIndex, entries: List[VaultEntry], report: RunReport) -> None:
        """Write the site index page and stylesheet unless the vault provides them."""
        taken = {self.mapper.map(e.source_path).as_posix().casefold() for e in entries}

        if self.config.site_index and INDEX_PAGE.as_posix() not in taken:
            written = set(report.succeeded)
            pages = [
                (doc.title, doc.output_path, self.link_transform(INDEX_PAGE, doc.output_path, ""))
                for doc in index if doc.source_path in written
            ]
            tree = build_tree(pages, self.site_title, self.config.titlecase_folders)
            nav = NavContext(root=self._root_for(INDEX_PAGE), page_path=INDEX_PAGE.as_posix(),
                             site_title=self.site_title)
            self._write_extra(INDEX_PAGE, lambda: self.theme.render_index(tree, nav), report)

        if self.config.stylesheet and STYLESHEET.as_posix() not in taken:
            self._write_extra(STYLESHEET, self.theme.stylesheet, report)

    def _write_extra(self, output: PurePosixPath, build: Callable[[], str], report: RunReport) -> None:
        try:
            _write_atomic(self.output_dir / output, build().encode('utf-8'))
        except Exception as e:
            logger.warning("Failed to write %s: %s", output, e)
            report.failed.append(ItemError(output, str(e)))

    def _root_for(self, output_path: PurePosixPath) -> str:
        if self.config.link_style == "absolute":
            return self.config.base_url.rstrip('/')
        return root_prefix(output_path)

    def _home_for(self, output_path: PurePosixPath) -> Optional[str]:
        if not self.config.site_index:
            return None
        return self.link_transform(output_path, INDEX_PAGE, "")
