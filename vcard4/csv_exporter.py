"""
CSV export of parsed vCards for viewing in spreadsheet applications.

One row per vCard. Repeating properties (TEL, EMAIL, ADR) get a fixed number
of type/value column pairs; extra occurrences are dropped from the row.

Dependencies:
    - csv: Standard library for CSV file handling
    - pathlib: Standard library for path handling
    - logging: Standard library for logging
"""
# pylint: disable=logging-fstring-interpolation

import csv
import logging
from pathlib import Path
from typing import Callable, List, Optional

from vcard4.document_builder import Document
from vcard4.property_assembler import Property
from vcard4.property_catalog import PropertyType
from vcard4.value_codec import encode_value

logger = logging.getLogger("vcard4")

MAX_PHONES = 5
MAX_EMAILS = 5
MAX_ADDRESSES = 3

# ADR components shown in the address column, in order
_ADDRESS_COMPONENTS = (2, 3, 4, 5, 6)


def _format_types(prop: Property) -> str:
    return ','.join(prop.types)


def _format_address(prop: Property) -> str:
    """street, locality, region, postal code, country; empty parts skipped"""
    parts = [
        ' '.join(prop.value.component(index))
        for index in _ADDRESS_COMPONENTS
    ]
    return ', '.join(part for part in parts if part)


def _generate_column_names(prefix: str, max_count: int, value_suffix: str = '') -> List[str]:
    """
    Generate type/value column name pairs for a repeating property.

    :param prefix: Column prefix (e.g., 'Phone')
    :param max_count: Number of occurrences to generate columns for
    :param value_suffix: Suffix for the value column
    :return: List of column names
    """
    columns = []
    for i in range(1, max_count + 1):
        columns.append(f'{prefix} {i} Type')
        columns.append(f'{prefix} {i} {value_suffix}'.strip())
    return columns


def get_csv_headers() -> List[str]:
    headers = [
        'Name',
        'Family Name',
        'Given Name',
        'Additional Names',
        'Prefix',
        'Suffix',
    ]
    headers.extend(_generate_column_names('Phone', MAX_PHONES, 'Number'))
    headers.extend(_generate_column_names('Email', MAX_EMAILS, 'Address'))
    headers.extend(_generate_column_names('Address', MAX_ADDRESSES))
    headers.extend([
        'Organization',
        'Department',
        'Title',
        'Notes',
        'Birthday',
        'Anniversary',
        'UID',
    ])
    return headers


def _extract_field_values(
    properties: List[Property],
    max_count: int,
    formatter: Optional[Callable[[Property], str]] = None
) -> List[str]:
    """
    Type/value pairs for the first max_count properties, padded with blanks.

    :param properties: Properties of one name
    :param max_count: Number of pairs to produce
    :param formatter: Formats the value column; defaults to the display text
    :return: Flat list of 2 * max_count cells
    """
    values = []
    for i in range(max_count):
        if i < len(properties):
            prop = properties[i]
            values.append(_format_types(prop))
            values.append(formatter(prop) if formatter else prop.value.as_text())
        else:
            values.extend(['', ''])
    return values


def _single_text(document: Document, ptype: PropertyType) -> str:
    prop = document.first(ptype)
    return prop.value.as_text() if prop is not None else ''


def _encoded(document: Document, ptype: PropertyType) -> str:
    prop = document.first(ptype)
    return encode_value(prop.value) if prop is not None else ''


def document_to_csv_row(document: Document) -> List[str]:
    """
    Convert a Document to a CSV row matching get_csv_headers().

    :param document: Document to convert
    :return: List of cell values
    """
    names = document.formatted_names
    row = [names[0] if names else '']

    name = document.name
    if name is None:
        row.extend([''] * 5)
    else:
        row.extend(' '.join(component) for component in name)

    row.extend(_extract_field_values(document.get(PropertyType.TEL), MAX_PHONES))
    row.extend(_extract_field_values(document.get(PropertyType.EMAIL), MAX_EMAILS))
    row.extend(_extract_field_values(
        document.get(PropertyType.ADR), MAX_ADDRESSES, _format_address
    ))

    org = document.first(PropertyType.ORG)
    row.extend([
        ' '.join(org.value.component(0)) if org is not None else '',
        ' '.join(org.value.component(1)) if org is not None else '',
        _single_text(document, PropertyType.TITLE),
        '; '.join(value.as_text() for value in document.values(PropertyType.NOTE)),
        _encoded(document, PropertyType.BDAY),
        _encoded(document, PropertyType.ANNIVERSARY),
        _single_text(document, PropertyType.UID),
    ])

    return row


def export_documents_to_csv(documents: List[Document], output_path: Path) -> None:
    """
    Export Documents to a CSV file.

    :param documents: Documents to export
    :param output_path: Path where the CSV file should be written
    :raises OSError: If the file cannot be written
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(output_path, 'w', newline='', encoding='utf-8') as csvfile:
            writer = csv.writer(csvfile, quoting=csv.QUOTE_MINIMAL)
            writer.writerow(get_csv_headers())
            writer.writerows(document_to_csv_row(document) for document in documents)
    except OSError as e:
        logger.error(f"Failed to write CSV file {output_path}: {e}")
        raise

    logger.info(f"Successfully exported {len(documents)} vCards to {output_path}")
