"""Link notation helpers for relation fields.

Relation fields store references to other notes either as wikilinks or as
markdown links:

  wikilink:  [[Note Name]]   [[Note#Heading|Alias]]
  markdown:  [Note Name](Note Name.md)   [Alias](Note.md#Heading)

Values may also carry literal surrounding double quotes when a note was
written by hand. Conversions keep headings and aliases so a value survives
a round trip between notations.
"""

import re

WIKILINK_PATTERN = re.compile(r"^\[\[(.+?)(#[^|]*)?(?:\|(.+))?\]\]$")
MARKDOWN_LINK_PATTERN = re.compile(r"^\[(.+?)\]\((.+?)\.md(#.*)?\)$")


def _unquote(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def is_wikilink(value: str) -> bool:
    """Check if a value is a wikilink, quoted or not."""
    return WIKILINK_PATTERN.match(_unquote(value)) is not None


def is_markdown_link(value: str) -> bool:
    """Check if a value is a markdown link to a .md note, quoted or not."""
    return MARKDOWN_LINK_PATTERN.match(_unquote(value)) is not None


def extract_link_target(value: str) -> str | None:
    """Return the note a link points to, without heading, alias or extension.

    Examples:
        "[[Q1 Release]]"                 -> "Q1 Release"
        "[[Q1 Release#Scope|Q1]]"        -> "Q1 Release"
        "[Q1](Projects/Q1 Release.md)"   -> "Projects/Q1 Release"
        "Q1 Release"                     -> None
    """
    if not isinstance(value, str):
        return None
    unquoted = _unquote(value)
    if match := WIKILINK_PATTERN.match(unquoted):
        return match.group(1)
    if match := MARKDOWN_LINK_PATTERN.match(unquoted):
        return match.group(2)
    return None


def to_wikilink(value: str) -> str:
    """Convert a bare name or markdown link to wikilink notation.

    Wikilinks pass through unchanged.
    """
    if not value or not value.strip() or is_wikilink(value):
        return value

    unquoted = _unquote(value)
    if match := MARKDOWN_LINK_PATTERN.match(unquoted):
        display, target, heading = match.group(1), match.group(2), match.group(3) or ""
        if display == target:
            return f"[[{target}{heading}]]"
        return f"[[{target}{heading}|{display}]]"

    return f"[[{unquoted}]]"


def to_markdown_link(value: str) -> str:
    """Convert a bare name or wikilink to markdown link notation.

    Markdown links pass through unchanged.
    """
    if not value or not value.strip() or is_markdown_link(value):
        return value

    unquoted = _unquote(value)
    if match := WIKILINK_PATTERN.match(unquoted):
        target, heading, alias = match.group(1), match.group(2) or "", match.group(3)
        return f"[{alias or target}]({target}.md{heading})"

    return f"[{unquoted}]({unquoted}.md)"


def normalize_link(value, link_format: str):
    """Convert one relation value to the given notation.

    Non-string values are returned untouched.
    """
    if not isinstance(value, str):
        return value
    if link_format == "wikilink":
        return to_wikilink(value)
    if link_format == "markdown":
        return to_markdown_link(value)
    raise ValueError(f"Unknown link format: {link_format}")
