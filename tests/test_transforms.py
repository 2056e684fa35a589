"""Tests for transform functions."""

import datetime
import pytest
from pathlib import PurePosixPath

from obsidian_site.transforms.frontmatter import (
    extract_tags,
    get_date_string,
    split_frontmatter,
)
from obsidian_site.transforms.links import (
    absolute_link,
    heading_slug,
    relative_link,
    root_prefix,
)


class TestSplitFrontmatter:
    """Tests for split_frontmatter function."""

    def test_no_frontmatter(self):
        fm = split_frontmatter("# Title\n\nBody")

        assert fm.data == {}
        assert fm.body == "# Title\n\nBody"
        assert fm.error is None

    def test_basic(self):
        fm = split_frontmatter("---\ntitle: Test\ntags: [a, b]\n---\nBody\n")

        assert fm.title == "Test"
        assert fm.tags == ["a", "b"]
        assert fm.body == "Body\n"

    def test_dots_close_block(self):
        fm = split_frontmatter("---\ntitle: Test\n...\nBody")
        assert fm.title == "Test"
        assert fm.body == "Body"

    def test_empty_block(self):
        fm = split_frontmatter("---\n---\nBody")

        assert fm.data == {}
        assert fm.body == "Body"

    def test_byte_order_mark(self):
        fm = split_frontmatter("\ufeff---\ntitle: Test\n---\nBody")
        assert fm.title == "Test"

    def test_unclosed_block_is_content(self):
        text = "---\ntitle: Test\nno closing line"
        fm = split_frontmatter(text)

        assert fm.data == {}
        assert fm.body == text
        assert fm.error is None

    def test_invalid_yaml_is_stripped(self):
        fm = split_frontmatter("---\ntitle: [oops\n---\nBody")

        assert fm.body == "Body"
        assert fm.data == {}
        assert fm.error.startswith("Invalid front matter")

    def test_non_mapping(self):
        fm = split_frontmatter("---\n- a\n- b\n---\nBody")

        assert fm.body == "Body"
        assert fm.error == "Front matter is not a mapping"

    def test_blank_title_ignored(self):
        assert split_frontmatter("---\ntitle: '  '\n---\n").title is None

    def test_numeric_title(self):
        assert split_frontmatter("---\ntitle: 2024\n---\n").title == "2024"

    def test_horizontal_rule_later_in_body(self):
        fm = split_frontmatter("Intro\n\n---\n\nMore")
        assert fm.body == "Intro\n\n---\n\nMore"


class TestExtractTags:
    """Tests for extract_tags function."""

    def test_list_format(self):
        assert extract_tags({'tags': ['tag1', 'tag2']}) == ['tag1', 'tag2']

    def test_string_format(self):
        assert extract_tags({'tags': 'tag1, tag2 tag3'}) == ['tag1', 'tag2', 'tag3']

    def test_hash_prefix_stripped(self):
        assert extract_tags({'tags': ['#one', 'two']}) == ['one', 'two']

    def test_none_entries_skipped(self):
        assert extract_tags({'tags': ['a', None]}) == ['a']

    def test_missing(self):
        assert extract_tags({}) == []


class TestGetDateString:
    """Tests for get_date_string function."""

    def test_none(self):
        assert get_date_string(None) == ""

    def test_string(self):
        assert get_date_string("2024-01-15") == "2024-01-15"

    def test_date(self):
        assert get_date_string(datetime.date(2024, 1, 15)) == "2024-01-15"

    def test_datetime(self):
        value = datetime.datetime(2024, 1, 15, 10, 30, 0)
        assert get_date_string(value) == "2024-01-15 10:30:00"


class TestLinkTransforms:
    """Tests for href builders."""

    @pytest.mark.parametrize("page,target,expected", [
        ("a.html", "b.html", "b.html"),
        ("sub/c.html", "a.html", "../a.html"),
        ("a.html", "sub/deeper/c.html", "sub/deeper/c.html"),
        ("x/a.html", "y/b.html", "../y/b.html"),
        ("a.html", "My Note.html", "My%20Note.html"),
    ])
    def test_relative_link(self, page, target, expected):
        transform = relative_link()
        assert transform(PurePosixPath(page), PurePosixPath(target), "") == expected

    def test_relative_link_fragment(self):
        transform = relative_link()
        assert transform(PurePosixPath("a.html"), PurePosixPath("b.html"), "intro") == "b.html#intro"

    def test_relative_link_same_page(self):
        transform = relative_link()
        assert transform(PurePosixPath("sub/a.html"), PurePosixPath("sub/a.html"), "intro") == "#intro"

    def test_absolute_link(self):
        transform = absolute_link()
        assert transform(PurePosixPath("sub/a.html"), PurePosixPath("b.html"), "") == "/b.html"

    def test_absolute_link_prefix(self):
        transform = absolute_link("/notes/")
        assert transform(PurePosixPath("a.html"), PurePosixPath("x/b.html"), "top") == "/notes/x/b.html#top"

    @pytest.mark.parametrize("page,expected", [
        ("a.html", "."),
        ("sub/a.html", ".."),
        ("sub/deeper/a.html", "../.."),
    ])
    def test_root_prefix(self, page, expected):
        assert root_prefix(PurePosixPath(page)) == expected


class TestHeadingSlug:
    """Tests for heading_slug function."""

    def test_basic(self):
        assert heading_slug("Some Heading") == "some-heading"

    def test_punctuation(self):
        assert heading_slug("  What, Really?  ") == "what-really"

    def test_empty_falls_back(self):
        assert heading_slug("!!!") == "section"

    def test_latin_transliterated(self):
        assert heading_slug("Café Menu") == "cafe-menu"

    def test_non_latin_kept(self):
        assert heading_slug("日本") == "日本"
        assert heading_slug("Привет мир") == "привет-мир"
        assert heading_slug("日本") != heading_slug("中国")
