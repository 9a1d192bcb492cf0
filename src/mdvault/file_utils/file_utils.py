"""Utilities for reading and writing markdown notes with YAML frontmatter."""

import re
from pathlib import Path
from typing import Any, Dict, Tuple

import aiofiles
import yaml
from loguru import logger

from mdvault.utils import FilePath


class FileError(Exception):
    """Base exception for file operations."""

    pass


class FileWriteError(FileError):
    """Raised when file operations fail."""

    pass


class ParseError(FileError):
    """Raised when parsing file content fails."""

    pass


# Opening delimiter, YAML block, closing delimiter. Everything after the
# closing delimiter line is the body and is kept byte-for-byte.
FRONTMATTER_PATTERN = re.compile(
    r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


def has_frontmatter(content: str) -> bool:
    """
    Check if content starts with a YAML frontmatter block.

    Args:
        content: Content to check

    Returns:
        True if content has opening and closing frontmatter markers (---)
    """
    if not content:
        return False
    return FRONTMATTER_PATTERN.match(content) is not None


def _yaml_suggestions(yaml_content: str, error_msg: str) -> list[str]:
    """Hints for common YAML mistakes in hand-edited frontmatter."""
    suggestions = []
    if "could not find expected ':'" in error_msg:
        suggestions.append("Missing space after colon - YAML requires 'key: value' not 'key:value'")
        for line in yaml_content.split("\n"):
            if ":" in line and ": " not in line:
                suggestions.append(f"Problem line: '{line.strip()}'")
                fixed_line = line.replace(":", ": ", 1)
                suggestions.append(f"Try: '{fixed_line.strip()}'")
                break
    return suggestions


def parse_frontmatter(content: str) -> Dict[str, Any]:
    """
    Parse YAML frontmatter from content.

    Args:
        content: Content with YAML frontmatter

    Returns:
        Dictionary of frontmatter values

    Raises:
        ParseError: If frontmatter is invalid or parsing fails
    """
    metadata, _ = parse_note(content)
    return metadata


def parse_note(content: str) -> Tuple[Dict[str, Any], str]:
    """
    Split a note into its frontmatter dict and body.

    Notes without frontmatter parse to an empty dict and the whole content as
    body. Malformed YAML is never guessed at.

    Args:
        content: Full note content

    Returns:
        Tuple of (frontmatter dict, body)

    Raises:
        ParseError: If the frontmatter block is unterminated or not a YAML mapping
    """
    if not content.startswith("---"):
        return {}, content

    match = FRONTMATTER_PATTERN.match(content)
    if match is None:
        raise ParseError("Invalid frontmatter format: missing closing '---'")

    yaml_content = match.group(1)
    body = content[match.end() :]

    try:
        metadata = yaml.safe_load(yaml_content)
    except yaml.YAMLError as e:
        error_msg = str(e)
        suggestions = _yaml_suggestions(yaml_content, error_msg)
        if suggestions:
            suggestion_text = "\n  ".join(suggestions)
            raise ParseError(
                f"Invalid YAML in frontmatter: {error_msg}\n\nSuggestions:\n  {suggestion_text}"
            ) from e
        raise ParseError(f"Invalid YAML in frontmatter: {error_msg}") from e

    # Empty frontmatter block
    if metadata is None:
        return {}, body
    if not isinstance(metadata, dict):
        raise ParseError("Frontmatter must be a YAML dictionary")
    return metadata, body


def dump_note(metadata: Dict[str, Any], body: str) -> str:
    """
    Serialize frontmatter and body back into note content.

    Lists are written in block style and strings with special characters
    (wikilinks, colons) are quoted by the SafeDumper, which keeps the output
    Obsidian compatible:

    ---
    type: task
    milestone: '[[Q1 Release]]'
    tags:
    - planning
    ---

    Empty metadata is written as an empty block rather than dropped.

    Args:
        metadata: Frontmatter values, written in insertion order
        body: Note body, written unchanged

    Returns:
        Complete note content
    """
    if not metadata:
        return f"---\n---\n{body}"

    yaml_str = yaml.dump(
        metadata,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        Dumper=yaml.SafeDumper,
    )
    return f"---\n{yaml_str}---\n{body}"


async def write_file_atomic(path: FilePath, content: str) -> None:
    """
    Write file with atomic operation using temporary file.

    Uses aiofiles for true async I/O (non-blocking).

    Args:
        path: Target file path (Path or string)
        content: Content to write

    Raises:
        FileWriteError: If write operation fails
    """
    path_obj = Path(path) if isinstance(path, str) else path
    temp_path = path_obj.with_name(f"{path_obj.name}.tmp")

    try:
        # newline="" keeps CRLF bodies intact on every platform
        async with aiofiles.open(temp_path, mode="w", encoding="utf-8", newline="") as f:
            await f.write(content)

        temp_path.replace(path_obj)
        logger.debug("Wrote file atomically", path=str(path_obj), content_length=len(content))
    except Exception as e:
        temp_path.unlink(missing_ok=True)
        logger.error("Failed to write file", path=str(path_obj), error=str(e))
        raise FileWriteError(f"Failed to write file {path}: {e}") from e


async def read_note(path: FilePath) -> Tuple[Dict[str, Any], str]:
    """
    Read a note from disk and split it into frontmatter and body.

    Raises:
        FileError: If the file cannot be read
        ParseError: If the content cannot be decoded or parsed
    """
    path_obj = Path(path)
    try:
        async with aiofiles.open(path_obj, mode="r", encoding="utf-8", newline="") as f:
            content = await f.read()
    except UnicodeDecodeError as e:
        raise ParseError(f"File is not valid UTF-8: {e}") from e
    except OSError as e:
        raise FileError(f"Failed to read file {path}: {e}") from e

    return parse_note(content)


async def write_note(path: FilePath, metadata: Dict[str, Any], body: str) -> None:
    """
    Write frontmatter and body to a note atomically.

    Raises:
        FileWriteError: If the content cannot be serialized or written
    """
    try:
        content = dump_note(metadata, body)
    except yaml.YAMLError as e:
        raise FileWriteError(f"Failed to serialize frontmatter for {path}: {e}") from e
    await write_file_atomic(path, content)
