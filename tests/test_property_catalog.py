"""Tests for the property catalog."""

import pytest

from vcard4.errors import GrammarError
from vcard4.property_catalog import (
    DEFAULT_CATALOG,
    Cardinality,
    ExtensionType,
    PropertyType,
    lookup,
)
from vcard4.value_codec import ValueKind


def test_catalog_lists_every_rfc6350_property():
    """Test that the default catalog covers the full property set."""
    assert len(DEFAULT_CATALOG) == len(PropertyType) == 38
    assert {spec.ptype for spec in DEFAULT_CATALOG} == set(PropertyType)


def test_lookup_is_case_insensitive():
    spec = lookup("fn")

    assert spec.ptype is PropertyType.FN
    assert spec.cardinality is Cardinality.AT_LEAST_ONE
    assert spec.default_kind is ValueKind.TEXT
    assert "Fn" in DEFAULT_CATALOG


@pytest.mark.parametrize("name, cardinality", [
    ("VERSION", Cardinality.EXACTLY_ONE),
    ("N", Cardinality.AT_MOST_ONE),
    ("UID", Cardinality.AT_MOST_ONE),
    ("REV", Cardinality.AT_MOST_ONE),
    ("TEL", Cardinality.ARBITRARY),
])
def test_cardinality_rules(name, cardinality):
    assert lookup(name).cardinality is cardinality


def test_value_kind_alternatives():
    """Test default kinds and the kinds a VALUE parameter may select."""
    assert lookup("TEL").kinds == (ValueKind.TEXT, ValueKind.URI)
    assert lookup("BDAY").kinds == (ValueKind.DATE_AND_OR_TIME, ValueKind.TEXT)
    assert lookup("TZ").kinds == (ValueKind.TEXT, ValueKind.URI, ValueKind.UTC_OFFSET)
    assert lookup("REV").default_kind is ValueKind.TIMESTAMP


def test_structured_component_counts():
    assert lookup("N").components == (5, 5)
    assert lookup("ADR").components == (7, 7)
    assert lookup("GENDER").components == (1, 2)
    assert lookup("ORG").components == (1, None)


def test_unknown_names_become_extensions():
    """Test that X- names and unregistered tokens classify as extensions."""
    spec = lookup("X-ABUID")

    assert spec.ptype == ExtensionType("X-ABUID")
    assert spec.is_extension
    assert spec.cardinality is Cardinality.ARBITRARY
    assert spec.default_kind is ValueKind.TEXT
    assert lookup("NEWPROP").is_extension
    assert "X-ABUID" not in DEFAULT_CATALOG


@pytest.mark.parametrize("name", ["", "BAD NAME", "X_UNDERSCORE"])
def test_invalid_names_are_rejected(name):
    with pytest.raises(GrammarError):
        lookup(name)


def test_cardinality_allows():
    assert Cardinality.EXACTLY_ONE.allows(1)
    assert not Cardinality.EXACTLY_ONE.allows(0)
    assert not Cardinality.EXACTLY_ONE.allows(2)
    assert Cardinality.AT_MOST_ONE.allows(0)
    assert not Cardinality.AT_MOST_ONE.allows(2)
    assert not Cardinality.AT_LEAST_ONE.allows(0)
    assert Cardinality.AT_LEAST_ONE.allows(5)
    assert Cardinality.ARBITRARY.allows(0)
