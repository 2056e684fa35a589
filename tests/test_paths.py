"""Tests for PathMapper class."""

import pytest
from pathlib import PurePosixPath

from obsidian_site.core.models import FatalRunError, PathCollisionError
from obsidian_site.core.paths import PathMapper


class TestPathMapper:
    """Tests for mapping source paths to output paths."""

    @pytest.mark.parametrize("source,expected", [
        ("a.md", "a.html"),
        ("notes/today.md", "notes/today.html"),
        ("deep/er/still/Note Title.md", "deep/er/still/Note Title.html"),
        ("old.markdown", "old.html"),
        ("SHOUT.MD", "SHOUT.html"),
    ])
    def test_documents_change_only_extension(self, source, expected):
        mapper = PathMapper()
        output = mapper.map(PurePosixPath(source))

        assert output == PurePosixPath(expected)
        assert output.parent == PurePosixPath(source).parent
        assert output.stem == PurePosixPath(source).stem

    @pytest.mark.parametrize("source", ["img.png", "files/report.pdf", "a.html", "notes/data.json"])
    def test_assets_map_to_themselves(self, source):
        assert PathMapper().map(PurePosixPath(source)) == PurePosixPath(source)

    def test_accepts_strings(self):
        assert PathMapper().map("x/y.md") == PurePosixPath("x/y.html")

    def test_custom_suffixes(self):
        mapper = PathMapper(markdown_suffixes=[".txt"])
        assert mapper.map(PurePosixPath("a.txt")) == PurePosixPath("a.html")
        assert mapper.map(PurePosixPath("a.md")) == PurePosixPath("a.md")


class TestInjectivity:
    """Tests for collision detection over a whole vault."""

    def test_distinct_paths_pass(self):
        mapping = PathMapper().check_injective([
            PurePosixPath("a.md"),
            PurePosixPath("b.md"),
            PurePosixPath("sub/a.md"),
            PurePosixPath("img.png"),
        ])
        assert mapping[PurePosixPath("sub/a.md")] == PurePosixPath("sub/a.html")
        assert len(set(mapping.values())) == 4

    def test_document_and_asset_collide(self):
        with pytest.raises(PathCollisionError) as exc:
            PathMapper().check_injective([PurePosixPath("a.md"), PurePosixPath("a.html")])
        assert exc.value.collisions == [(PurePosixPath("a.md"), PurePosixPath("a.html"))]

    def test_two_markdown_suffixes_collide(self):
        with pytest.raises(PathCollisionError):
            PathMapper().check_injective([PurePosixPath("a.md"), PurePosixPath("a.markdown")])

    def test_case_insensitive_collision(self):
        with pytest.raises(FatalRunError) as exc:
            PathMapper().check_injective([PurePosixPath("Note.md"), PurePosixPath("note.md")])
        assert "Note.md" in str(exc.value)
        assert "note.md" in str(exc.value)

    def test_case_sensitive_mode_allows_case_variants(self):
        mapper = PathMapper(case_insensitive=False)
        mapping = mapper.check_injective([PurePosixPath("Note.md"), PurePosixPath("note.md")])
        assert len(mapping) == 2

    def test_all_collisions_reported_at_once(self):
        with pytest.raises(PathCollisionError) as exc:
            PathMapper().check_injective([
                PurePosixPath("a.md"), PurePosixPath("A.md"),
                PurePosixPath("b.md"), PurePosixPath("b.html"),
            ])
        assert len(exc.value.collisions) == 2
