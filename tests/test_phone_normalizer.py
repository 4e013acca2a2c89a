"""Tests for TEL normalization."""

import pytest

from vcard4 import phone_normalizer
from vcard4.content_line import parse_content_line
from vcard4.phone_normalizer import (
    DEFAULT_REGION,
    detect_region_from_locale,
    get_default_region,
    normalize_document_phones,
    normalize_documents_phones,
    normalize_phone_to_e164,
    normalize_tel_property,
    validate_region_code,
)
from vcard4.property_assembler import assemble
from vcard4.value_codec import Value
from vcard4.vcard_parser import parse, serialize

CARD = (
    "BEGIN:VCARD\r\n"
    "VERSION:4.0\r\n"
    "FN:Jane Doe\r\n"
    "TEL;TYPE=cell:(201) 555-0123\r\n"
    "EMAIL:jane@example.com\r\n"
    "TEL;TYPE=home:call me maybe\r\n"
    "END:VCARD\r\n"
)


def _tel(line):
    return assemble(parse_content_line(line))


@pytest.mark.parametrize("number, region, expected", [
    ("(201) 555-0123", "US", "+12015550123"),
    ("0612345678", "NL", "+31612345678"),
    ("+31 6 12345678", "US", "+31612345678"),
    ("  +1 201-555-0123 ", "NL", "+12015550123"),
])
def test_normalize_phone_to_e164(number, region, expected):
    assert normalize_phone_to_e164(number, region) == expected


@pytest.mark.parametrize("number", ["", "   ", "call me maybe", "123"])
def test_invalid_numbers_are_not_normalized(number):
    assert normalize_phone_to_e164(number, "US") is None


def test_validate_region_code():
    assert validate_region_code("NL")
    assert validate_region_code("US")
    assert not validate_region_code("nl")
    assert not validate_region_code("ZZ")
    assert not validate_region_code("USA")
    assert not validate_region_code("")


def test_detect_region_from_locale(monkeypatch):
    """Test locale detection for a country locale, a bare locale and a failure."""
    monkeypatch.setattr(phone_normalizer.locale, "getlocale", lambda: ("nl_NL", "UTF-8"))
    assert detect_region_from_locale() == "NL"

    monkeypatch.setattr(phone_normalizer.locale, "getlocale", lambda: ("C", None))
    assert detect_region_from_locale() is None

    def broken_locale():
        raise ValueError("unknown locale")

    monkeypatch.setattr(phone_normalizer.locale, "getlocale", broken_locale)
    assert detect_region_from_locale() is None


def test_get_default_region(monkeypatch):
    """Test the provided -> detected -> fallback order."""
    monkeypatch.setattr(phone_normalizer.locale, "getlocale", lambda: ("de_DE", "UTF-8"))

    assert get_default_region(" gb ") == "GB"
    assert get_default_region("XX") == "DE"
    assert get_default_region() == "DE"
    assert get_default_region(auto_detect=False) == DEFAULT_REGION
    assert get_default_region(auto_detect=False, require_explicit=True) is None


def test_normalize_tel_property_keeps_parameters():
    prop, ok = normalize_tel_property(_tel("TEL;TYPE=cell;PREF=1:(201) 555-0123"), "US")

    assert ok
    assert prop.value == Value.uri("tel:+12015550123")
    assert [p.name for p in prop.parameters] == ["VALUE", "TYPE", "PREF"]
    assert prop.pref == 1


def test_normalize_existing_tel_uri():
    """Test that a tel URI in national format is rewritten in E.164."""
    prop, ok = normalize_tel_property(_tel("TEL;VALUE=uri:tel:+1-201-555-0123"), "NL")

    assert ok
    assert prop.value == Value.uri("tel:+12015550123")
    assert prop.params("VALUE") == ["uri"]


def test_tel_uri_with_parameters_is_left_alone():
    original = _tel("TEL;VALUE=uri:tel:+1-201-555-0123;ext=102")

    prop, ok = normalize_tel_property(original, "US")

    assert not ok
    assert prop is original


def test_normalize_document_phones():
    """Test counts and the serialized form of a normalized card."""
    document, normalized, failed = normalize_document_phones(parse(CARD), "US")

    assert (normalized, failed) == (1, 1)
    text = serialize(document)
    assert "TEL;VALUE=uri;TYPE=cell:tel:+12015550123\r\n" in text
    assert "TEL;TYPE=home:call me maybe\r\n" in text
    assert [prop.name for prop in document] == ["VERSION", "FN", "TEL", "EMAIL", "TEL"]


def test_document_without_phones_is_unchanged():
    document = parse(CARD.replace("TEL;TYPE=cell:(201) 555-0123\r\n", "").replace(
        "TEL;TYPE=home:call me maybe\r\n", ""
    ))

    assert normalize_document_phones(document, "US") == (document, 0, 0)


def test_normalize_documents_phones_statistics():
    documents = [parse(CARD), parse(CARD.replace("TEL;TYPE=home:call me maybe\r\n", ""))]

    normalized, stats = normalize_documents_phones(documents, "US")

    assert len(normalized) == 2
    assert stats == {
        'total_vcards': 2,
        'vcards_with_phones': 2,
        'total_phones': 3,
        'normalized_phones': 2,
        'failed_normalizations': 1
    }
