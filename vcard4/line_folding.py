"""
Line folding and unfolding for vCard text.

Physical lines are at most 75 octets long; a longer logical line continues on
physical lines that start with a single space or horizontal tab. Input may use
CRLF or bare LF terminators, output always uses CRLF.

Dependencies:
    - re: Standard library for line terminator splitting
    - logging: Standard library for logging
    - typing: Standard library for type hints
"""
# pylint: disable=logging-fstring-interpolation

import logging
import re
from typing import Iterable, Iterator, List, Tuple

from vcard4.errors import FoldError

logger = logging.getLogger("vcard4")

CRLF = "\r\n"
MAX_LINE_OCTETS = 75
CONTINUATION_CHARS = (" ", "\t")

_LINE_BREAK_RE = re.compile(r"\r\n|\n")


def split_physical_lines(text: str) -> List[str]:
    """
    Split text on CRLF or LF, dropping the empty tail after a final break.

    :param text: Raw vCard text
    :return: List of physical lines without terminators
    """
    lines = _LINE_BREAK_RE.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def iter_logical_lines(text: str) -> Iterator[Tuple[int, str]]:
    """
    Lazily join continuation lines onto the line they continue.

    Blank lines are yielded as empty logical lines so callers can decide what
    to do with them; a continuation directly after a blank line is malformed.
    A logical line is yielded once the next non-continuation line is seen, so
    a consumer that stops early never looks at the rest of the text.

    :param text: Raw vCard text
    :return: Iterator of (physical line number, logical line), 1-based
    :raises FoldError: If a continuation line has nothing to continue
    """
    start = 0
    parts: List[str] = []

    for number, line in enumerate(split_physical_lines(text), 1):
        if line[:1] in CONTINUATION_CHARS:
            if not parts or parts == [""]:
                raise FoldError(
                    "continuation line without a preceding content line",
                    line_number=number,
                    token=line
                )
            parts.append(line[1:])
            continue

        if parts:
            yield start, "".join(parts)
        start = number
        parts = [line]

    if parts:
        yield start, "".join(parts)


def unfold_with_line_numbers(text: str) -> List[Tuple[int, str]]:
    """
    Unfold raw text, keeping the physical line number of each logical line.

    :param text: Raw vCard text
    :return: List of (physical line number, logical line) pairs, 1-based
    :raises FoldError: If a continuation line has nothing to continue
    """
    result = list(iter_logical_lines(text))
    logger.debug(f"Unfolded text into {len(result)} logical lines")
    return result


def unfold(text: str) -> List[str]:
    """
    Unfold raw text into logical lines.

    :param text: Raw vCard text
    :return: One string per logical line
    :raises FoldError: If a continuation line has nothing to continue
    """
    return [line for _, line in unfold_with_line_numbers(text)]


def _octets(char: str) -> int:
    return len(char.encode("utf-8"))


def _ends_inside_escape(line: str, end: int) -> bool:
    """Whether line[end - 1] is a backslash that escapes line[end]."""
    run = 0
    index = end - 1
    while index >= 0 and line[index] == "\\":
        run += 1
        index -= 1
    return run % 2 == 1


def _fold_pieces(line: str, limit: int) -> List[str]:
    pieces = []
    start = 0
    room = limit

    while start < len(line):
        end = start
        used = 0
        while end < len(line):
            size = _octets(line[end])
            if used + size > room:
                break
            used += size
            end += 1

        if end == start:
            end = start + 1
        elif end < len(line) and end - start > 1 and _ends_inside_escape(line, end):
            end -= 1

        pieces.append(line[start:end])
        start = end
        # continuation lines spend one octet on the leading space
        room = limit - 1

    return pieces


def fold(logical_line: str, limit: int = MAX_LINE_OCTETS) -> str:
    """
    Fold one logical line into CRLF-separated physical lines.

    Splits happen on code point boundaries and never between a backslash and
    the character it escapes, so a physical line may come out shorter than
    the limit.

    :param logical_line: Line to fold, without terminator
    :param limit: Maximum octets per physical line, leading space included
    :return: Folded text without a trailing terminator
    """
    if len(logical_line.encode("utf-8")) <= limit:
        return logical_line
    return (CRLF + " ").join(_fold_pieces(logical_line, limit))


def fold_lines(logical_lines: Iterable[str], limit: int = MAX_LINE_OCTETS) -> str:
    """
    Fold and terminate a sequence of logical lines.

    :param logical_lines: Logical lines to emit
    :param limit: Maximum octets per physical line
    :return: Text where every physical line ends with CRLF
    """
    return "".join(fold(line, limit) + CRLF for line in logical_lines)
