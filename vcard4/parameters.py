"""
Parameter decoding and encoding.

Parameters are ';'-separated "name=value[,value...]" items. Values may be
double-quoted, which makes ':', ';' and ',' literal. Backslash escaping does
not apply to parameter values; RFC 6868 caret encoding does.

Dependencies:
    - dataclasses: Standard library for the Parameter value object
    - re: Standard library for control character checks
    - typing: Standard library for type hints
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from vcard4.content_line import NAME_RE
from vcard4.errors import ParamError

KNOWN_PARAMETERS = frozenset({
    "TYPE",
    "VALUE",
    "PREF",
    "ALTID",
    "PID",
    "MEDIATYPE",
    "CALSCALE",
    "SORT-AS",
    "GEO",
    "TZ",
    "LANGUAGE",
    "LABEL",
})

_CARET_DECODE = {"n": "\n", "N": "\n", "'": '"', "^": "^"}
_NEEDS_QUOTES = frozenset(":;,")
# control characters other than HTAB and LF; LF is written as ^n
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")


def _normalize_param_value(value: str) -> str:
    if not isinstance(value, str):
        raise ParamError(f"parameter value must be a string, got {type(value).__name__}")
    value = value.replace("\r\n", "\n").replace("\r", "\n")
    if _CONTROL_RE.search(value):
        raise ParamError("control character in parameter value", token=value)
    return value


@dataclass(frozen=True)
class Parameter:
    """A parameter name with one or more values, in input order."""

    name: str
    values: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not NAME_RE.fullmatch(self.name):
            raise ParamError(f"invalid parameter name {self.name!r}", token=str(self.name))
        values = tuple(_normalize_param_value(value) for value in self.values)
        if not values:
            raise ParamError(f"parameter {self.name} has no values", token=self.name)
        object.__setattr__(self, "values", values)

    @property
    def key(self) -> str:
        """Upper-cased name used for case-insensitive comparison."""
        return self.name.upper()

    @property
    def is_known(self) -> bool:
        return self.key in KNOWN_PARAMETERS

    @property
    def value(self) -> str:
        """First value; most parameters are single-valued in practice."""
        return self.values[0]


def decode_caret(text: str) -> str:
    """
    Decode RFC 6868 caret escapes. Unknown sequences are kept as-is.

    :param text: Raw parameter value
    :return: Decoded parameter value
    """
    if "^" not in text:
        return text
    out = []
    index = 0
    while index < len(text):
        char = text[index]
        if char == "^" and index + 1 < len(text) and text[index + 1] in _CARET_DECODE:
            out.append(_CARET_DECODE[text[index + 1]])
            index += 2
            continue
        out.append(char)
        index += 1
    return "".join(out)


def encode_caret(text: str) -> str:
    """
    Apply RFC 6868 caret encoding to a parameter value.

    :param text: Parameter value
    :return: Value safe to place between double quotes
    """
    return (
        text.replace("^", "^^")
        .replace('"', "^'")
        .replace("\r\n", "^n")
        .replace("\n", "^n")
    )


def _split_outside_quotes(text: str, separator: str) -> List[str]:
    parts = []
    current = []
    in_quotes = False
    for char in text:
        if char == '"':
            in_quotes = not in_quotes
        if char == separator and not in_quotes:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    if in_quotes:
        raise ParamError("unterminated quoted parameter value", token=text)
    parts.append("".join(current))
    return parts


def _decode_param_value(raw: str, param_name: str) -> str:
    if raw.startswith('"'):
        if len(raw) < 2 or not raw.endswith('"') or '"' in raw[1:-1]:
            raise ParamError(
                f"malformed quoted value for parameter {param_name}",
                token=raw
            )
        return decode_caret(raw[1:-1])

    if raw == "":
        raise ParamError(
            f"dangling separator in values of parameter {param_name}",
            token=raw
        )
    if '"' in raw:
        raise ParamError(
            f"stray double quote in value of parameter {param_name}",
            token=raw
        )
    return decode_caret(raw)


def decode_param(raw_param: str) -> Parameter:
    """
    Decode one "name=value[,value...]" item.

    :param raw_param: Raw parameter text without the leading ';'
    :return: Decoded Parameter
    :raises ParamError: On a missing '=', bad name or malformed value
    """
    if raw_param == "":
        raise ParamError("dangling ';' in parameter list", token=raw_param)

    name, equals, raw_values = raw_param.partition("=")
    if not equals:
        raise ParamError(f"parameter {name!r} has no '='", token=raw_param)
    if not NAME_RE.fullmatch(name):
        raise ParamError(f"invalid parameter name {name!r}", token=raw_param)

    values = tuple(
        _decode_param_value(raw, name)
        for raw in _split_outside_quotes(raw_values, ",")
    )
    return Parameter(name=name, values=values)


def decode_params(raw_params: Optional[str]) -> Tuple[Parameter, ...]:
    """
    Decode the raw parameter section of a content line.

    Repeated parameters are all kept, in input order.

    :param raw_params: Parameter text between the name and the ':'
    :return: Tuple of Parameters, empty when raw_params is None
    :raises ParamError: On malformed quoting or dangling separators
    """
    if raw_params is None:
        return ()
    return tuple(
        decode_param(raw) for raw in _split_outside_quotes(raw_params, ";")
    )


def _encode_param_value(value: str) -> str:
    encoded = encode_caret(value)
    if encoded == "" or encoded != value or any(c in _NEEDS_QUOTES for c in value):
        return f'"{encoded}"'
    return encoded


def encode_param(param: Parameter) -> str:
    return f"{param.name}=" + ",".join(
        _encode_param_value(value) for value in param.values
    )


def encode_params(params: Sequence[Parameter]) -> Optional[str]:
    """
    Encode parameters into the raw section of a content line.

    :param params: Parameters to encode
    :return: Raw parameter text, or None when there are no parameters
    """
    if not params:
        return None
    return ";".join(encode_param(param) for param in params)


def find_params(params: Iterable[Parameter], name: str) -> List[Parameter]:
    """
    All parameters with the given name, compared case-insensitively.

    :param params: Parameters to search
    :param name: Parameter name
    :return: Matching parameters in order
    """
    key = name.upper()
    return [param for param in params if param.key == key]


def param_values(params: Iterable[Parameter], name: str) -> List[str]:
    """
    Values of every parameter with the given name, flattened in order.

    :param params: Parameters to search
    :param name: Parameter name
    :return: Flattened values
    """
    return [value for param in find_params(params, name) for value in param.values]
