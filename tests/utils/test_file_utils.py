"""Tests for file utilities."""

from pathlib import Path

import pytest

from mdvault.file_utils import (
    FileError,
    FileWriteError,
    ParseError,
    build_gitignore_spec,
    dump_note,
    has_frontmatter,
    parse_frontmatter,
    parse_note,
    read_note,
    should_ignore_file,
    write_file_atomic,
    write_note,
)


@pytest.mark.asyncio
async def test_write_file_atomic(tmp_path: Path):
    """Test atomic file writing."""
    test_file = tmp_path / "test.txt"
    content = "test content"

    await write_file_atomic(test_file, content)
    assert test_file.exists()
    assert test_file.read_text(encoding="utf-8") == content

    # Temp file should be cleaned up
    assert not test_file.with_name("test.txt.tmp").exists()


@pytest.mark.asyncio
async def test_write_file_atomic_error(tmp_path: Path):
    """Test atomic write error handling."""
    # Try to write to a directory that doesn't exist
    test_file = tmp_path / "nonexistent" / "test.txt"

    with pytest.raises(FileWriteError):
        await write_file_atomic(test_file, "test content")


def test_has_frontmatter():
    """Test frontmatter detection."""
    # Valid frontmatter
    assert has_frontmatter("""---
title: Test
---
content""")

    # Just content
    assert not has_frontmatter("Just content")

    # Empty content
    assert not has_frontmatter("")

    # Just delimiter
    assert not has_frontmatter("---")

    # Delimiter not at start
    assert not has_frontmatter("""
Some text
---
title: Test
---""")

    # Invalid format
    assert not has_frontmatter("--title: test--")


def test_parse_frontmatter():
    """Test parsing frontmatter."""
    # Valid frontmatter
    content = """---
title: Test
tags:
  - a
  - b
---
content"""

    result = parse_frontmatter(content)
    assert result == {"title": "Test", "tags": ["a", "b"]}

    # Empty frontmatter
    content = """---
---
content"""
    assert parse_frontmatter(content) == {}

    # Invalid YAML syntax
    with pytest.raises(ParseError) as exc:
        parse_frontmatter("""---
[: invalid yaml syntax :]
---
content""")
    assert "Invalid YAML in frontmatter" in str(exc.value)

    # Non-dict YAML content
    with pytest.raises(ParseError) as exc:
        parse_frontmatter("""---
- just
- a
- list
---
content""")
    assert "Frontmatter must be a YAML dictionary" in str(exc.value)

    # No frontmatter
    assert parse_frontmatter("Just content") == {}

    # Incomplete frontmatter
    with pytest.raises(ParseError) as exc:
        parse_frontmatter("""---
title: Test""")
    assert "Invalid frontmatter format" in str(exc.value)


def test_parse_frontmatter_suggestions():
    with pytest.raises(ParseError) as exc:
        parse_frontmatter("---\ntitle: Test\nstatus:open\nbad\n---\n")
    assert "Invalid YAML in frontmatter" in str(exc.value)


class TestParseNote:
    def test_body_kept_exactly(self):
        body = "\n# Heading\n\n---\n\ntrailing spaces   \n"
        metadata, parsed_body = parse_note("---\ntitle: Test\n---\n" + body)
        assert metadata == {"title": "Test"}
        assert parsed_body == body

    def test_crlf(self):
        metadata, body = parse_note("---\r\ntitle: Test\r\n---\r\nline\r\n")
        assert metadata == {"title": "Test"}
        assert body == "line\r\n"

    def test_closing_delimiter_at_end(self):
        assert parse_note("---\ntitle: Test\n---") == ({"title": "Test"}, "")

    def test_no_frontmatter(self):
        assert parse_note("plain\n") == ({}, "plain\n")

    def test_dates_are_parsed(self):
        metadata, _ = parse_note("---\ndue: 2025-01-01\n---\n")
        assert str(metadata["due"]) == "2025-01-01"


class TestDumpNote:
    def test_keeps_field_order(self):
        content = dump_note({"type": "task", "status": "open", "priority": "high"}, "Body\n")
        assert content == "---\ntype: task\nstatus: open\npriority: high\n---\nBody\n"

    def test_block_lists_and_quoted_links(self):
        content = dump_note({"milestone": "[[Q1 Release]]", "tags": ["a", "b"]}, "")
        assert content == "---\nmilestone: '[[Q1 Release]]'\ntags:\n- a\n- b\n---\n"

    def test_empty_metadata_keeps_block(self):
        content = dump_note({}, "Body\n")
        assert content == "---\n---\nBody\n"
        assert parse_note(content) == ({}, "Body\n")

    def test_unicode(self):
        assert "title: Café" in dump_note({"title": "Café"}, "")

    def test_parse_after_dump(self):
        metadata = {"type": "task", "milestone": "[[Q1 Release#Scope|Q1]]", "tags": ["a"]}
        assert parse_note(dump_note(metadata, "Body")) == (metadata, "Body")


class TestNoteIO:
    @pytest.mark.asyncio
    async def test_read_write(self, tmp_path: Path):
        path = tmp_path / "note.md"
        await write_note(path, {"type": "idea"}, "# Idea\r\n")

        metadata, body = await read_note(path)

        assert metadata == {"type": "idea"}
        assert body == "# Idea\r\n"

    @pytest.mark.asyncio
    async def test_read_missing(self, tmp_path: Path):
        with pytest.raises(FileError):
            await read_note(tmp_path / "missing.md")

    @pytest.mark.asyncio
    async def test_read_invalid_utf8(self, tmp_path: Path):
        path = tmp_path / "binary.md"
        path.write_bytes(b"---\ntitle: \xff\xfe\n---\n")
        with pytest.raises(ParseError):
            await read_note(path)

    @pytest.mark.asyncio
    async def test_unserializable_metadata(self, tmp_path: Path):
        with pytest.raises(FileWriteError):
            await write_note(tmp_path / "note.md", {"obj": object()}, "")


class TestGitignore:
    def test_default_patterns(self, tmp_path: Path):
        spec = build_gitignore_spec(tmp_path)
        assert should_ignore_file(tmp_path / ".git" / "config", tmp_path, spec)
        assert should_ignore_file(tmp_path / ".obsidian" / "app.md", tmp_path, spec)
        assert not should_ignore_file(tmp_path / "notes" / "a.md", tmp_path, spec)

    def test_gitignore_file(self, tmp_path: Path):
        (tmp_path / ".gitignore").write_text("# comment\n\ndrafts/\n*.tmp.md\n", encoding="utf-8")
        spec = build_gitignore_spec(tmp_path)

        assert should_ignore_file(tmp_path / "drafts" / "a.md", tmp_path, spec)
        assert should_ignore_file(tmp_path / "x.tmp.md", tmp_path, spec)
        assert not should_ignore_file(tmp_path / "x.md", tmp_path, spec)

    def test_outside_vault(self, tmp_path: Path):
        vault = tmp_path / "vault"
        vault.mkdir()
        spec = build_gitignore_spec(vault)
        assert should_ignore_file(tmp_path / "other.md", vault, spec)
