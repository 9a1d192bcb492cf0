"""mdvault file utilities."""

from .gitignore import build_gitignore_spec, get_gitignore_patterns, should_ignore_file
from .file_utils import (
    FileError,
    FileWriteError,
    ParseError,
    dump_note,
    has_frontmatter,
    parse_frontmatter,
    parse_note,
    read_note,
    write_file_atomic,
    write_note,
)

__all__ = [
    "FileError",
    "FileWriteError",
    "ParseError",
    "dump_note",
    "has_frontmatter",
    "parse_frontmatter",
    "parse_note",
    "read_note",
    "write_file_atomic",
    "write_note",
    "should_ignore_file",
    "get_gitignore_patterns",
    "build_gitignore_spec",
]
