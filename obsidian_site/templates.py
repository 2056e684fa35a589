"""HTML templating for generated pages.

Rendered document bodies are wrapped into full pages by a ``PageTemplate``,
any callable ``(title, body_html, nav) -> page``. ``Theme`` is the default,
backed by the Jinja2 templates in ``obsidian_site/theme``.
"""

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Callable, Iterable, List, Optional, Tuple

import titlecase as tc
from jinja2 import ChoiceLoader, Environment, FileSystemLoader, select_autoescape

THEME_DIR = Path(__file__).resolve().parent / "theme"


@dataclass
class NavContext:
    """Navigation data handed to the template alongside each page."""
    root: str
    page_path: str
    site_title: str = ""
    home: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    date: str = ""


PageTemplate = Callable[[str, str, NavContext], str]


@dataclass
class TreeNode:
    """A folder in the site index, holding (title, href) pairs for its pages."""
    title: str
    nodes: List["TreeNode"] = field(default_factory=list)
    pages: List[Tuple[str, str]] = field(default_factory=list)

    def child(self, title: str) -> "TreeNode":
        for node in self.nodes:
            if node.title == title:
                return node
        node = TreeNode(title)
        self.nodes.append(node)
        return node


def build_tree(
    pages: Iterable[Tuple[str, PurePosixPath, str]],
    root_title: str = "",
    titlecase_folders: bool = False,
) -> TreeNode:
    """Arrange pages into a folder tree mirroring the vault.

    Args:
        pages: (title, output_path, href) in traversal order
        root_title: Title of the top node
        titlecase_folders: Display folder names in title case

    Returns:
        The root TreeNode
    """
    root = TreeNode(root_title)
    for title, output_path, href in pages:
        node = root
        for folder in output_path.parent.parts:
            node = node.child(tc.titlecase(folder) if titlecase_folders else folder)
        node.pages.append((title, href))
    return root


class Theme:
    """Jinja2-backed page template.

    A ``template_dir`` may override any of ``base.html``, ``index.html`` or
    ``style.css``; missing files fall back to the bundled theme.
    """

    def __init__(self, template_dir: Optional[Path] = None):
        loaders = [FileSystemLoader(str(THEME_DIR))]
        if template_dir is not None:
            loaders.insert(0, FileSystemLoader(str(template_dir)))
        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(),
            keep_trailing_newline=True,
        )

    def __call__(self, title: str, body: str, nav: NavContext) -> str:
        return self.render_page(title, body, nav)

    def render_page(self, title: str, body: str, nav: NavContext) -> str:
        return self.env.get_template("base.html").render(title=title, body=body, nav=nav)

    def render_index(self, tree: TreeNode, nav: NavContext) -> str:
        return self.env.get_template("index.html").render(title=nav.site_title, tree=tree, nav=nav)

    def stylesheet(self) -> str:
        source, _, _ = self.env.loader.get_source(self.env, "style.css")
        return source
