"""Tests for link notation conversion."""

import pytest

from mdvault.migration.links import (
    extract_link_target,
    is_markdown_link,
    is_wikilink,
    normalize_link,
    to_markdown_link,
    to_wikilink,
)


class TestDetection:
    def test_wikilink(self):
        assert is_wikilink("[[Q1 Release]]")
        assert is_wikilink("[[Q1 Release#Scope|Q1]]")
        assert is_wikilink('"[[Q1 Release]]"')
        assert not is_wikilink("Q1 Release")
        assert not is_wikilink("[Q1](Q1.md)")

    def test_markdown_link(self):
        assert is_markdown_link("[Q1 Release](Q1 Release.md)")
        assert is_markdown_link("[Q1](Projects/Q1 Release.md#Scope)")
        assert not is_markdown_link("[Q1](https://example.com)")
        assert not is_markdown_link("[[Q1 Release]]")

    def test_extract_link_target(self):
        assert extract_link_target("[[Q1 Release]]") == "Q1 Release"
        assert extract_link_target("[[Q1 Release#Scope|Q1]]") == "Q1 Release"
        assert extract_link_target("[Q1](Projects/Q1 Release.md)") == "Projects/Q1 Release"
        assert extract_link_target("Q1 Release") is None
        assert extract_link_target(3) is None  # type: ignore[arg-type]


class TestToWikilink:
    def test_bare_name(self):
        assert to_wikilink("Q1 Release") == "[[Q1 Release]]"

    def test_quoted_bare_name(self):
        assert to_wikilink('"Q1 Release"') == "[[Q1 Release]]"

    def test_already_wikilink(self):
        assert to_wikilink("[[Q1 Release]]") == "[[Q1 Release]]"

    def test_from_markdown(self):
        assert to_wikilink("[Q1 Release](Q1 Release.md)") == "[[Q1 Release]]"

    def test_from_markdown_keeps_heading_and_alias(self):
        assert to_wikilink("[Q1](Q1 Release.md#Scope)") == "[[Q1 Release#Scope|Q1]]"

    def test_blank(self):
        assert to_wikilink("") == ""
        assert to_wikilink("  ") == "  "


class TestToMarkdownLink:
    def test_bare_name(self):
        assert to_markdown_link("Q1 Release") == "[Q1 Release](Q1 Release.md)"

    def test_from_wikilink(self):
        assert to_markdown_link("[[Q1 Release]]") == "[Q1 Release](Q1 Release.md)"

    def test_from_wikilink_keeps_heading_and_alias(self):
        assert to_markdown_link("[[Q1 Release#Scope|Q1]]") == "[Q1](Q1 Release.md#Scope)"

    def test_already_markdown(self):
        assert to_markdown_link("[Q1](Q1.md)") == "[Q1](Q1.md)"

    def test_round_trip(self):
        value = "[[Q1 Release#Scope|Q1]]"
        assert to_wikilink(to_markdown_link(value)) == value


class TestNormalizeLink:
    def test_dispatch(self):
        assert normalize_link("Q1", "wikilink") == "[[Q1]]"
        assert normalize_link("Q1", "markdown") == "[Q1](Q1.md)"

    def test_non_string_passes_through(self):
        assert normalize_link(None, "wikilink") is None
        assert normalize_link(42, "markdown") == 42

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="Unknown link format"):
            normalize_link("Q1", "html")


class TestNamesWithBrackets:
    @pytest.mark.parametrize("name", ["Meeting (2025-01)", "Release (v2)", "Draft]notes"])
    def test_markdown_is_stable(self, name):
        once = normalize_link(name, "markdown")
        assert is_markdown_link(once)
        assert normalize_link(once, "markdown") == once

    @pytest.mark.parametrize("name", ["Meeting (2025-01)", "Draft]notes"])
    def test_wikilink_is_stable(self, name):
        once = normalize_link(name, "wikilink")
        assert is_wikilink(once)
        assert normalize_link(once, "wikilink") == once

    def test_markdown_with_parentheses_to_wikilink(self):
        assert to_wikilink("[A](Release (v2).md)") == "[[Release (v2)|A]]"
        assert to_wikilink("[Meeting (2025-01)](Meeting (2025-01).md)") == "[[Meeting (2025-01)]]"

    def test_wikilink_with_bracket_to_markdown(self):
        assert to_markdown_link("[[Draft]notes]]") == "[Draft]notes](Draft]notes.md)"
        assert extract_link_target("[[Draft]notes#Todo|D]]") == "Draft]notes"

    def test_round_trip(self):
        value = "[[Meeting (2025-01)#Actions|Jan]]"
        assert to_markdown_link(value) == "[Jan](Meeting (2025-01).md#Actions)"
        assert to_wikilink(to_markdown_link(value)) == value
