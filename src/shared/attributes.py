"""HLS attribute-list grammar.

Every HLS tag that carries parameters uses the same attribute-list
grammar: comma separated ``KEY=VALUE`` pairs where a value is either a
double-quoted string (which may itself contain commas) or an unquoted
token. This module parses and formats such lists.
"""

import re
from typing import Iterable

from .exceptions import AttributeParseError

# KEY=VALUE where VALUE is "quoted, commas allowed" or a bare token
_ATTRIBUTE_RE = re.compile(r'\s*([A-Z0-9-]+)=("[^"\r\n]*"|[^",\s]+)\s*')


def parse_attribute_list(text: str) -> dict[str, str]:
    """Parse an attribute list into an ordered mapping.

    Values are returned raw: quoted strings keep their quotes so that
    callers can decide per attribute whether to strip them (see
    ``unquote``) or re-emit them verbatim.

    Args:
        text: Parameter string of a tag (everything after the first ':')

    Returns:
        Insertion-ordered dictionary of attribute name to raw value

    Raises:
        AttributeParseError: On unbalanced quotes, a missing '=', duplicate
            keys, an empty value or trailing garbage

    Example:
        >>> parse_attribute_list('BANDWIDTH=1280000,CODECS="avc1.64001f,mp4a.40.2"')
        {'BANDWIDTH': '1280000', 'CODECS': '"avc1.64001f,mp4a.40.2"'}
    """
    attributes: dict[str, str] = {}
    if not text.strip():
        return attributes

    if text.count('"') % 2:
        raise AttributeParseError(
            "Unbalanced quotes in attribute list",
            line=text,
            position=text.rfind('"'),
        )

    pos = 0
    while True:
        match = _ATTRIBUTE_RE.match(text, pos)
        if match is None:
            raise AttributeParseError(
                f"Expected KEY=VALUE at position {pos}",
                line=text,
                position=pos,
            )

        key, value = match.groups()
        if key in attributes:
            raise AttributeParseError(
                f"Duplicate attribute '{key}'",
                line=text,
                position=match.start(1),
            )
        attributes[key] = value

        pos = match.end()
        if pos == len(text):
            return attributes
        if text[pos] != ",":
            raise AttributeParseError(
                f"Unexpected character {text[pos]!r} after attribute '{key}'",
                line=text,
                position=pos,
            )
        pos += 1
        if pos == len(text):
            raise AttributeParseError(
                "Trailing comma in attribute list",
                line=text,
                position=pos - 1,
            )


def format_attribute_list(pairs: Iterable[tuple[str, str]]) -> str:
    """Join (key, raw value) pairs back into an attribute list."""
    return ",".join(f"{key}={value}" for key, value in pairs)


def quote(value: str) -> str:
    """Puts a string in double quotes."""
    return f'"{value}"'


def unquote(value: str) -> str:
    """Removes the double quotes surrounding a string, if any."""
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def parse_yes_no(value: str | None, default: bool = False) -> bool:
    """Parse an enumerated YES/NO attribute value."""
    if value is None:
        return default
    return unquote(value).upper() == "YES"


def format_yes_no(flag: bool | None) -> str:
    """Format a boolean as an enumerated YES/NO value."""
    return "YES" if flag else "NO"
