"""Tests for CSV export."""

import csv

from vcard4.csv_exporter import (
    MAX_ADDRESSES,
    MAX_EMAILS,
    MAX_PHONES,
    document_to_csv_row,
    export_documents_to_csv,
    get_csv_headers,
)
from vcard4.document_builder import Document
from vcard4.vcard_parser import parse, parse_vcard_file

CARD = (
    "BEGIN:VCARD\r\n"
    "VERSION:4.0\r\n"
    "FN:Jane Doe\r\n"
    "N:Doe;Jane;Q.,R.;Dr.;\r\n"
    "TEL;TYPE=cell,voice:+1 201 555 0123\r\n"
    "EMAIL;TYPE=work:jane@example.com\r\n"
    "ADR;TYPE=home:;;123 Main St;Any Town;CA;91921;U.S.A.\r\n"
    "ORG:ABC\\, Inc.;Research\r\n"
    "TITLE:Engineer\r\n"
    "NOTE:first\r\n"
    "NOTE:second\\, with comma\r\n"
    "BDAY:--0412\r\n"
    "UID:urn:uuid:f81d4fae-7dec-11d0-a765-00a0c91e6bf6\r\n"
    "END:VCARD\r\n"
)


def test_headers():
    """Test the header layout and the repeating column pairs."""
    headers = get_csv_headers()

    assert headers[:6] == [
        'Name', 'Family Name', 'Given Name', 'Additional Names', 'Prefix', 'Suffix'
    ]
    assert headers[6:8] == ['Phone 1 Type', 'Phone 1 Number']
    assert 'Email 5 Address' in headers
    assert 'Address 3' in headers
    assert headers[-1] == 'UID'
    assert len(headers) == 6 + 2 * (MAX_PHONES + MAX_EMAILS + MAX_ADDRESSES) + 7
    assert len(set(headers)) == len(headers)


def test_document_to_csv_row():
    row = dict(zip(get_csv_headers(), document_to_csv_row(parse(CARD))))

    assert row['Name'] == 'Jane Doe'
    assert row['Family Name'] == 'Doe'
    assert row['Additional Names'] == 'Q. R.'
    assert row['Prefix'] == 'Dr.'
    assert row['Suffix'] == ''
    assert row['Phone 1 Type'] == 'cell,voice'
    assert row['Phone 1 Number'] == '+1 201 555 0123'
    assert row['Phone 2 Number'] == ''
    assert row['Email 1 Type'] == 'work'
    assert row['Email 1 Address'] == 'jane@example.com'
    assert row['Address 1'] == '123 Main St, Any Town, CA, 91921, U.S.A.'
    assert row['Organization'] == 'ABC, Inc.'
    assert row['Department'] == 'Research'
    assert row['Title'] == 'Engineer'
    assert row['Notes'] == 'first; second, with comma'
    assert row['Birthday'] == '--0412'
    assert row['Anniversary'] == ''
    assert row['UID'] == 'urn:uuid:f81d4fae-7dec-11d0-a765-00a0c91e6bf6'


def test_row_for_minimal_card():
    row = document_to_csv_row(Document.create("Nobody"))

    assert len(row) == len(get_csv_headers())
    assert row[0] == 'Nobody'
    assert all(cell == '' for cell in row[1:])


def test_export_documents_to_csv(tmp_path, contacts_file):
    """Test that the file holds a header plus one row per vCard."""
    documents = parse_vcard_file(contacts_file)
    output = tmp_path / "export" / "contacts.csv"

    export_documents_to_csv(documents, output)

    with open(output, newline='', encoding='utf-8') as f:
        rows = list(csv.reader(f))

    assert rows[0] == get_csv_headers()
    assert len(rows) == 3
    assert rows[1][0] == 'Jane Doe'
    assert rows[2][0] == 'John Roe'
    assert rows[2][rows[0].index('Phone 1 Number')] == 'not a number'
