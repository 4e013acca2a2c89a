"""
Content line grammar: splits one logical line into group, name, parameters
and value.

    contentline = [group "."] name *(";" param) ":" value
"""

import re
from dataclasses import dataclass
from typing import Optional

from vcard4.errors import GrammarError

NAME_RE = re.compile(r"[A-Za-z0-9-]+")
_PREFIX_RE = re.compile(r"(?:(?P<group>[A-Za-z0-9-]+)\.)?(?P<name>[A-Za-z0-9-]*)")


@dataclass(frozen=True)
class ContentLine:
    """One parsed logical line. raw_params excludes the leading ';'."""

    name: str
    raw_value: str
    group: Optional[str] = None
    raw_params: Optional[str] = None


def _params_end(line: str, start: int) -> int:
    """Index of the first ':' outside double quotes at or after start."""
    in_quotes = False
    for index in range(start, len(line)):
        char = line[index]
        if char == '"':
            in_quotes = not in_quotes
        elif char == ":" and not in_quotes:
            return index
    return -1


def parse_content_line(line: str) -> ContentLine:
    """
    Parse a logical line into a ContentLine.

    :param line: Unfolded logical line
    :return: ContentLine with the original case preserved
    :raises GrammarError: If the name is empty or there is no value separator
    """
    match = _PREFIX_RE.match(line)
    group = match.group("group")
    name = match.group("name")
    position = match.end()

    if not name:
        raise GrammarError("content line has an empty name", token=line)

    if position == len(line):
        raise GrammarError("content line has no ':' value separator", token=line)

    separator = line[position]
    if separator == ":":
        return ContentLine(
            name=name, raw_value=line[position + 1:], group=group
        )
    if separator != ";":
        raise GrammarError(
            f"unexpected character {separator!r} after property name",
            property_name=name,
            token=line
        )

    colon = _params_end(line, position + 1)
    if colon == -1:
        raise GrammarError(
            "content line has no ':' value separator",
            property_name=name,
            token=line
        )

    return ContentLine(
        name=name,
        raw_value=line[colon + 1:],
        group=group,
        raw_params=line[position + 1:colon]
    )


def format_content_line(content_line: ContentLine) -> str:
    """
    Render a ContentLine back into one logical line.

    :param content_line: Line to render
    :return: Logical line text, unfolded and without terminator
    """
    parts = []
    if content_line.group:
        parts.append(f"{content_line.group}.")
    parts.append(content_line.name)
    if content_line.raw_params:
        parts.append(f";{content_line.raw_params}")
    parts.append(f":{content_line.raw_value}")
    return "".join(parts)
