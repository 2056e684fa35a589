"""Mapping from vault source paths to site output paths."""

from collections import defaultdict
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Sequence, Tuple

from obsidian_site.core.models import PathCollisionError

DEFAULT_MARKDOWN_SUFFIXES = ('.md', '.markdown')
HTML_SUFFIX = '.html'


class PathMapper:
    """Maps vault-relative source paths to site-relative output paths.

    Markdown documents keep their directory and stem and get an ``.html``
    suffix; every other path maps to itself.
    """

    def __init__(
        self,
        markdown_suffixes: Sequence[str] = DEFAULT_MARKDOWN_SUFFIXES,
        case_insensitive: bool = True,
    ):
        """Initialize PathMapper.

        Args:
            markdown_suffixes: File suffixes treated as Markdown documents
            case_insensitive: Treat outputs differing only by case as a clash
        """
        self.markdown_suffixes = tuple(s.lower() for s in markdown_suffixes)
        self.case_insensitive = case_insensitive

    def is_markdown(self, path: PurePosixPath) -> bool:
        return PurePosixPath(path).suffix.lower() in self.markdown_suffixes

    def map(self, source_path: PurePosixPath) -> PurePosixPath:
        source_path = PurePosixPath(source_path)
        if self.is_markdown(source_path):
            return source_path.with_suffix(HTML_SUFFIX)
        return source_path

    def check_injective(
        self, source_paths: Iterable[PurePosixPath]
    ) -> Dict[PurePosixPath, PurePosixPath]:
        """Map every path, failing if any two land on the same output.

        Args:
            source_paths: All vault-relative paths that will be written

        Returns:
            Mapping of source path to output path

        Raises:
            PathCollisionError: listing every clashing group at once
        """
        mapping: Dict[PurePosixPath, PurePosixPath] = {}
        by_output: Dict[str, List[PurePosixPath]] = defaultdict(list)

        for source in source_paths:
            output = self.map(source)
            mapping[PurePosixPath(source)] = output
            by_output[self._key(output)].append(PurePosixPath(source))

        collisions: List[Tuple[PurePosixPath, ...]] = [
            tuple(sources) for sources in by_output.values() if len(sources) > 1
        ]
        if collisions:
            raise PathCollisionError(collisions)

        return mapping

    def _key(self, output: PurePosixPath) -> str:
        key = output.as_posix()
        return key.casefold() if self.case_insensitive else key
