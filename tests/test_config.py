"""Tests for configuration, templates and the command line."""

import pytest
from pathlib import Path, PurePosixPath

from obsidian_site.cli import EXIT_FATAL, EXIT_ITEM_FAILURES, EXIT_OK, main
from obsidian_site.config import SiteConfig, config_from_dict, load_config
from obsidian_site.core.discovery import VaultWalker
from obsidian_site.core.models import ConfigError
from obsidian_site.templates import NavContext, Theme, build_tree

from conftest import write_vault


class TestSiteConfig:
    """Tests for SiteConfig class."""

    def test_defaults(self):
        config = SiteConfig()

        assert config.markdown_suffixes == [".md", ".markdown"]
        assert config.link_style == "relative"
        assert config.workers == 1

    def test_suffixes_normalized(self):
        assert SiteConfig(markdown_suffixes="txt").markdown_suffixes == [".txt"]

    @pytest.mark.parametrize("values", [
        {"link_style": "weird"},
        {"workers": 0},
        {"markdown_suffixes": []},
    ])
    def test_invalid_values(self, values):
        with pytest.raises(ConfigError):
            SiteConfig(**values)

    def test_title_from_vault_folder(self):
        assert SiteConfig().title_for(Path("/somewhere/my_research-notes")) == "My Research Notes"

    def test_explicit_title(self):
        assert SiteConfig(site_title="Garden").title_for(Path("/x/vault")) == "Garden"

    def test_overrides_skip_none(self):
        config = SiteConfig(workers=3).with_overrides(workers=None, site_title="T")

        assert config.workers == 3
        assert config.site_title == "T"


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load(self, tmp_path):
        path = tmp_path / "site.yml"
        path.write_text("site_title: Garden\nworkers: 2\nignore:\n  - drafts\n")

        config = load_config(path)

        assert config.site_title == "Garden"
        assert config.workers == 2
        assert config.ignore == ["drafts"]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "site.yml"
        path.write_text("")
        assert load_config(path) == SiteConfig()

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="colour"):
            config_from_dict({"colour": "blue"})

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "site.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "site.yml"
        path.write_text("site_title: [oops\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "nope.yml")


class TestTheme:
    """Tests for the default Jinja2 theme."""

    def test_page_escapes_title_not_body(self):
        nav = NavContext(root=".", page_path="a.html", site_title="Site")
        page = Theme()("A <b>", "<p>body</p>", nav)

        assert "A &lt;b&gt;" in page
        assert "<p>body</p>" in page
        assert 'href="./style.css"' in page

    def test_template_dir_overrides(self, tmp_path):
        (tmp_path / "base.html").write_text("{{ title }}::{{ body | safe }}")
        theme = Theme(tmp_path)

        assert theme("T", "<p>x</p>", NavContext(root=".", page_path="t.html")) == "T::<p>x</p>"
        assert "body" in theme.stylesheet()

    def test_build_tree(self):
        tree = build_tree([
            ("A", PurePosixPath("a.html"), "a.html"),
            ("C", PurePosixPath("my-notes/c.html"), "my-notes/c.html"),
            ("D", PurePosixPath("my-notes/deep/d.html"), "my-notes/deep/d.html"),
        ], "Root", titlecase_folders=True)

        assert tree.pages == [("A", "a.html")]
        assert [n.title for n in tree.nodes] == ["My-Notes"]
        assert tree.nodes[0].nodes[0].pages == [("D", "my-notes/deep/d.html")]


class TestCli:
    """Tests for the command line entry point."""

    def test_success(self, vault, tmp_path, capsys):
        write_vault(vault, {"a.md": "[[Missing]]"})
        out = tmp_path / "site"

        code = main(["-v", str(vault), "-o", str(out)])

        assert code == EXIT_OK
        captured = capsys.readouterr()
        assert "Built 1 items, 0 failed, 1 warnings." in captured.out
        assert "Warning: a.md:" in captured.out
        assert (out / "a.html").is_file()

    def test_item_failure(self, vault, tmp_path, capsys, monkeypatch):
        write_vault(vault, {"a.md": "A", "b.md": "B"})
        original = VaultWalker._read_text

        def read_text(self, path):
            if path.name == "b.md":
                raise PermissionError(13, "Permission denied", str(path))
            return original(self, path)

        monkeypatch.setattr(VaultWalker, "_read_text", read_text)
        code = main(["-v", str(vault), "-o", str(tmp_path / "site")])

        assert code == EXIT_ITEM_FAILURES
        assert "Error: b.md:" in capsys.readouterr().err

    def test_missing_vault(self, tmp_path, capsys):
        code = main(["-v", str(tmp_path / "nope"), "-o", str(tmp_path / "site")])

        assert code == EXIT_FATAL
        assert "nope" in capsys.readouterr().err
        assert not (tmp_path / "site").exists()

    def test_config_file_and_flags(self, vault, tmp_path):
        write_vault(vault, {"a.md": "A"})
        config = tmp_path / "site.yml"
        config.write_text("site_title: From File\nstylesheet: false\n")
        out = tmp_path / "site"

        code = main(["-v", str(vault), "-o", str(out), "-c", str(config), "--title", "From Flag", "-j", "2"])

        assert code == EXIT_OK
        assert "From Flag" in (out / "a.html").read_text(encoding="utf-8")
        assert not (out / "style.css").exists()

    def test_bad_config_is_fatal(self, vault, tmp_path):
        config = tmp_path / "site.yml"
        config.write_text("workers: -1\n")

        assert main(["-v", str(vault), "-o", str(tmp_path / "site"), "-c", str(config)]) == EXIT_FATAL
