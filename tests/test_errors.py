"""Tests for the error taxonomy."""

from vcard4.errors import (
    CardinalityError,
    ErrorComponent,
    FoldError,
    GrammarError,
    InvalidValueError,
    ParamError,
    ParseError,
    StructuralError,
)


def test_every_error_is_a_value_error():
    for error_class in (
        FoldError, GrammarError, ParamError, InvalidValueError, StructuralError
    ):
        error = error_class("boom")
        assert isinstance(error, ParseError)
        assert isinstance(error, ValueError)


def test_components():
    assert FoldError("x").component is ErrorComponent.FOLD
    assert GrammarError("x").component is ErrorComponent.GRAMMAR
    assert ParamError("x").component is ErrorComponent.PARAM
    assert InvalidValueError("x").component is ErrorComponent.VALUE
    assert StructuralError("x").component is ErrorComponent.STRUCTURAL
    assert CardinalityError("FN", "AtLeastOne", 0).component is ErrorComponent.CARDINALITY


def test_message_includes_context():
    """Test that str() shows component, line, property and token."""
    error = InvalidValueError("invalid date", line_number=3, property_name="BDAY", token="x")

    assert str(error) == "Value error (line 3, BDAY): invalid date ['x']"
    assert str(GrammarError("no colon")) == "Grammar error: no colon"


def test_with_context_keeps_known_fields():
    """Test that with_context only fills in missing context."""
    error = ParamError("bad", property_name="TEL")

    same = error.with_context(line_number=7, property_name="EMAIL")

    assert same is error
    assert error.line_number == 7
    assert error.property_name == "TEL"


def test_cardinality_error_message():
    error = CardinalityError("FN", "AtLeastOne", 0)

    assert error.message == "FN: AtLeastOne, found 0"
    assert error.rule == "AtLeastOne"
    assert error.found == 0
    assert error.property_name == "FN"
