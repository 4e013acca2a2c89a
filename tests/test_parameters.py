"""Tests for parameter decoding and encoding."""

import pytest

from vcard4.errors import ParamError
from vcard4.parameters import (
    Parameter,
    decode_caret,
    decode_params,
    encode_caret,
    encode_param,
    encode_params,
    find_params,
    param_values,
)


def test_decode_multi_valued_parameters():
    """Test comma-separated values and several parameters."""
    params = decode_params("TYPE=work,voice;PREF=1")

    assert params == (
        Parameter("TYPE", ("work", "voice")),
        Parameter("PREF", ("1",)),
    )


def test_decode_quoted_value_keeps_separators():
    """Test that ',', ';' and ':' are literal inside double quotes."""
    params = decode_params('LABEL="Main St, 1;2:3"')

    assert params[0].values == ("Main St, 1;2:3",)


def test_caret_encoding_is_decoded():
    """Test RFC 6868 caret sequences in parameter values."""
    params = decode_params('LABEL="a^nb^\'c^^"')

    assert params[0].value == 'a\nb"c^'


def test_unknown_caret_sequence_is_kept():
    assert decode_caret("a^b") == "a^b"


def test_duplicate_parameters_are_preserved_in_order():
    """Test that repeated parameter names are all kept."""
    params = decode_params("TYPE=work;pref=1;TYPE=home")

    assert [p.name for p in params] == ["TYPE", "pref", "TYPE"]
    assert param_values(params, "type") == ["work", "home"]
    assert len(find_params(params, "PREF")) == 1


def test_no_parameters():
    assert decode_params(None) == ()
    assert encode_params(()) is None


@pytest.mark.parametrize("raw", [
    "TYPE",
    "TYPE=a;",
    ";TYPE=a",
    'TYPE="abc',
    "TYPE=a,,b",
    'TYPE=a"b',
    "T_X=a",
    "TYPE=",
])
def test_malformed_parameters_are_rejected(raw):
    """Test that malformed parameter sections raise ParamError."""
    with pytest.raises(ParamError):
        decode_params(raw)


def test_parameter_needs_a_value():
    with pytest.raises(ParamError):
        Parameter("TYPE", ())


def test_encode_quotes_values_that_need_it():
    """Test quoting of separators, empty values and caret-encoded text."""
    assert encode_param(Parameter("TYPE", ("work", "voice"))) == "TYPE=work,voice"
    assert encode_param(Parameter("LABEL", ("a,b",))) == 'LABEL="a,b"'
    assert encode_param(Parameter("LABEL", ("line1\nline2",))) == 'LABEL="line1^nline2"'
    assert encode_param(Parameter("X-EMPTY", ("",))) == 'X-EMPTY=""'


def test_encoded_parameters_decode_to_the_same_values():
    """Test that decode_params undoes encode_params."""
    params = (
        Parameter("LABEL", ('He said "hi"\n1;2,3:4 ^',)),
        Parameter("TYPE", ("home", "x-cabin")),
    )

    assert decode_params(encode_params(params)) == params


def test_encode_caret_escapes_caret_first():
    assert encode_caret('^"') == "^^^'"


def test_known_parameters():
    assert Parameter("sort-as", ("x",)).is_known
    assert not Parameter("X-CUSTOM", ("x",)).is_known


@pytest.mark.parametrize("name", ["X;Y", "", "TYPE=", "x y"])
def test_parameter_name_is_checked(name):
    with pytest.raises(ParamError):
        Parameter(name, ("v",))


def test_parameter_values_reject_control_characters():
    """Test that only tab and line breaks are allowed in values."""
    with pytest.raises(ParamError):
        Parameter("LABEL", ("a\x00b",))
    with pytest.raises(ParamError):
        decode_params("X-A=a\x1bb")

    assert Parameter("LABEL", ("a\r\nb\rc\td",)).values == ("a\nb\nc\td",)
    assert encode_param(Parameter("LABEL", ("a\r\nb",))) == 'LABEL="a^nb"'
