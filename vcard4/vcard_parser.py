"""
vCard 4.0 parsing and serialization, for text and for .vcf files.

parse() and serialize() are the engine entry points; the file functions wrap
them with the reading, writing and validation steps of the command line tool.
"""
# pylint: disable=logging-fstring-interpolation

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

import vobject

from vcard4.content_line import format_content_line, parse_content_line
from vcard4.document_builder import BuilderState, Document, DocumentBuilder
from vcard4.errors import GrammarError, ParseError, StructuralError
from vcard4.line_folding import fold_lines, iter_logical_lines
from vcard4.property_assembler import Property, assemble, check_property, disassemble
from vcard4.property_catalog import DEFAULT_CATALOG, PropertyCatalog

logger = logging.getLogger("vcard4")

BYTE_ORDER_MARK = "\ufeff"
BEGIN_LINE = "BEGIN:VCARD"
END_LINE = "END:VCARD"


def _decode_input(text: Union[str, bytes]) -> str:
    """
    Turn parser input into text, stripping a leading byte order mark.

    Args:
        text: vCard text, or its UTF-8 encoding

    Returns:
        Decoded text

    Raises:
        GrammarError: If bytes input is not valid UTF-8
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as e:
            line_number = text.count(b"\n", 0, e.start) + 1
            raise GrammarError(
                "input is not valid UTF-8", line_number=line_number
            ) from e
    if text.startswith(BYTE_ORDER_MARK):
        text = text[len(BYTE_ORDER_MARK):]
    return text


def _iter_properties(
    text: str,
    catalog: PropertyCatalog,
    builder_state: Optional[Callable[[], BuilderState]] = None
) -> Iterator[Tuple[int, Property]]:
    """
    Assemble logical lines into properties, skipping blank lines.

    Args:
        text: Decoded vCard text
        catalog: Catalog used to classify property names
        builder_state: Callable returning the state of the builder being fed,
            used to report junk before BEGIN:VCARD as a structural error

    Yields:
        (line number, property) pairs in source order
    """
    for line_number, line in iter_logical_lines(text):
        if not line:
            continue
        try:
            prop = assemble(parse_content_line(line), catalog)
        except ParseError as e:
            if builder_state is not None and builder_state() is BuilderState.AWAIT_BEGIN:
                raise StructuralError(
                    "expected BEGIN:VCARD", line_number=line_number, token=line
                ) from e
            raise e.with_context(line_number=line_number)
        yield line_number, prop


def parse(
    text: Union[str, bytes],
    catalog: PropertyCatalog = DEFAULT_CATALOG
) -> Document:
    """
    Parse exactly one vCard.

    Content after END:VCARD is not read.

    Args:
        text: vCard text, or its UTF-8 encoding
        catalog: Catalog used to classify property names

    Returns:
        The parsed Document

    Raises:
        ParseError: The first error found, with its line number
    """
    text = _decode_input(text)
    builder = DocumentBuilder(catalog)

    for line_number, prop in _iter_properties(text, catalog, lambda: builder.state):
        if builder.feed(prop, line_number) is BuilderState.DONE:
            break

    document = builder.finish()
    logger.debug(f"Parsed vCard with {len(document)} properties")
    return document


def parse_all(
    text: Union[str, bytes],
    catalog: PropertyCatalog = DEFAULT_CATALOG
) -> List[Document]:
    """
    Parse a stream of consecutive vCards.

    Args:
        text: vCard text, or its UTF-8 encoding
        catalog: Catalog used to classify property names

    Returns:
        Documents in source order; empty for blank input

    Raises:
        ParseError: The first error found, with its line number
    """
    text = _decode_input(text)
    documents: List[Document] = []
    builder = DocumentBuilder(catalog)
    started = False

    for line_number, prop in _iter_properties(text, catalog, lambda: builder.state):
        started = True
        if builder.feed(prop, line_number) is BuilderState.DONE:
            documents.append(builder.finish())
            builder = DocumentBuilder(catalog)
            started = False

    if started:
        # raises for the unterminated card
        builder.finish()

    logger.debug(f"Parsed {len(documents)} vCards")
    return documents


def serialize(document: Document, catalog: PropertyCatalog = DEFAULT_CATALOG) -> str:
    """
    Serialize one Document to vCard text.

    Args:
        document: Document to serialize
        catalog: Catalog used to check each property before encoding

    Returns:
        Folded text, every line terminated by CRLF
    """
    lines = [BEGIN_LINE]
    for prop in document:
        check_property(prop, catalog)
        lines.append(format_content_line(disassemble(prop)))
    lines.append(END_LINE)
    return fold_lines(lines)


def serialize_all(
    documents: Iterable[Document],
    catalog: PropertyCatalog = DEFAULT_CATALOG
) -> str:
    return "".join(serialize(document, catalog) for document in documents)


def parse_vcard_file(file_path: Path) -> List[Document]:
    """
    Parse a .vcf file holding one or more vCards.

    Args:
        file_path: Path to the .vcf file

    Returns:
        List of parsed Documents

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is malformed or holds no vCard
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Input file not found: {file_path}")

    try:
        documents = parse_all(file_path.read_bytes())
    except ParseError as e:
        logger.error(f"Error reading vCard file {file_path}: {e}")
        raise

    if not documents:
        raise ValueError(f"No vCards found in {file_path}")

    logger.info(f"Successfully parsed {len(documents)} vCards from {file_path}")
    return documents


def write_vcard_file(documents: List[Document], output_path: Path) -> None:
    """
    Write Documents to a .vcf file.

    Args:
        documents: Documents to write, in order
        output_path: Path of the file to create or replace
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    # newline="" keeps the CRLF terminators as serialized
    with open(output_path, 'w', encoding='utf-8', newline='') as f:
        f.write(serialize_all(documents))

    logger.info(f"Successfully wrote {len(documents)} vCards to {output_path}")


def _count_with_vobject(content: str) -> int:
    """Number of VCARD components vobject finds in content."""
    return sum(
        1 for component in vobject.readComponents(content)
        if component.name.upper() == "VCARD"
    )


def validate_vcard_file(
    output_path: Path,
    expected_count: int
) -> Tuple[bool, Dict[str, Any]]:
    """
    Validate a written .vcf file by reading it back.

    The file is re-parsed with this package and, as an interoperability
    check, with vobject. A vobject disagreement is reported as a warning.

    Args:
        output_path: Path to the written .vcf file
        expected_count: Number of vCards that were written

    Returns:
        Tuple of (is_valid, validation_report_dict)
    """
    report: Dict[str, Any] = {
        'valid': False,
        'output_count': 0,
        'expected_count': expected_count,
        'vobject_count': None,
        'parse_successful': False,
        'errors': [],
        'warnings': []
    }

    if not output_path.exists():
        report['errors'].append(f"Output file does not exist: {output_path}")
        return False, report

    try:
        documents = parse_vcard_file(output_path)
    except ValueError as e:
        report['errors'].append(f"Failed to parse output file: {e}")
        logger.error(f"Validation error: {e}")
        return False, report

    report['parse_successful'] = True
    report['output_count'] = len(documents)

    if len(documents) != expected_count:
        report['errors'].append(
            f"vCard count mismatch: expected {expected_count}, got {len(documents)}"
        )
    else:
        logger.info(f"Validation: vCard count matches expected ({expected_count})")

    unnamed = [i for i, document in enumerate(documents, 1) if not any(document.formatted_names)]
    if unnamed:
        report['warnings'].append(
            f"Found {len(unnamed)} vCards with an empty FN (indices: {unnamed[:10]})"
        )

    content = output_path.read_text(encoding='utf-8')
    try:
        report['vobject_count'] = _count_with_vobject(content)
    except Exception as e:  # pylint: disable=broad-except
        report['warnings'].append(f"vobject could not read the output file: {e}")
    else:
        if report['vobject_count'] != len(documents):
            report['warnings'].append(
                f"vobject found {report['vobject_count']} vCards, expected {len(documents)}"
            )

    report['valid'] = not report['errors'] and report['parse_successful']

    if report['valid']:
        logger.info("Validation passed: Output file is valid and all vCards are present")
    else:
        logger.warning(f"Validation failed: {len(report['errors'])} errors found")

    return report['valid'], report
