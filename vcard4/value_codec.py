"""
Value codec for the vCard 4.0 value kinds.

A property value is held as a Value: a kind tag plus a payload whose Python
type is fixed by the kind. One decoder and one encoder per kind are looked up
from tables keyed by ValueKind, and each encoder is the inverse of its decoder.

Escaping applies to text kinds only: backslash, comma, semicolon and newline
are escaped, unescaped commas separate list items and unescaped semicolons
separate structured components. URI and IANA values are kept verbatim.

Dependencies:
    - decimal: Standard library for exact float-list values
    - enum: Standard library for ValueKind
    - re: Standard library for scalar grammars
    - vcard4.date_time: Local module for the date/time grammar
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from vcard4.date_time import (
    Date,
    DateTime,
    Time,
    UtcOffset,
    format_date_and_or_time,
    parse_date,
    parse_date_and_or_time,
    parse_date_time,
    parse_time,
    parse_timestamp,
    parse_utc_offset,
)
from vcard4.errors import InvalidValueError


class ValueKind(Enum):
    """Closed set of value kinds a property value can take."""

    TEXT = "text"
    TEXT_LIST = "text-list"
    DATE = "date"
    DATE_LIST = "date-list"
    TIME = "time"
    TIME_LIST = "time-list"
    DATE_TIME = "date-time"
    DATE_TIME_LIST = "date-time-list"
    DATE_AND_OR_TIME = "date-and-or-time"
    DATE_AND_OR_TIME_LIST = "date-and-or-time-list"
    TIMESTAMP = "timestamp"
    TIMESTAMP_LIST = "timestamp-list"
    BOOLEAN = "boolean"
    INTEGER_LIST = "integer-list"
    FLOAT_LIST = "float-list"
    URI = "uri"
    UTC_OFFSET = "utc-offset"
    LANGUAGE_TAG = "language-tag"
    STRUCTURED_TEXT = "structured-text"
    IANA_VALUESPEC = "iana-valuespec"

    @property
    def type_name(self) -> Optional[str]:
        """Name used in the VALUE parameter, None for IANA value specs."""
        return _TYPE_NAMES[self]

    @property
    def is_list(self) -> bool:
        return self.value.endswith("-list")

    @property
    def item_kind(self) -> "ValueKind":
        """Single-item kind of a list kind; the kind itself otherwise."""
        return _LIST_ITEMS.get(self, self)


_TYPE_NAMES = {
    ValueKind.TEXT: "text",
    ValueKind.TEXT_LIST: "text",
    ValueKind.DATE: "date",
    ValueKind.DATE_LIST: "date",
    ValueKind.TIME: "time",
    ValueKind.TIME_LIST: "time",
    ValueKind.DATE_TIME: "date-time",
    ValueKind.DATE_TIME_LIST: "date-time",
    ValueKind.DATE_AND_OR_TIME: "date-and-or-time",
    ValueKind.DATE_AND_OR_TIME_LIST: "date-and-or-time",
    ValueKind.TIMESTAMP: "timestamp",
    ValueKind.TIMESTAMP_LIST: "timestamp",
    ValueKind.BOOLEAN: "boolean",
    ValueKind.INTEGER_LIST: "integer",
    ValueKind.FLOAT_LIST: "float",
    ValueKind.URI: "uri",
    ValueKind.UTC_OFFSET: "utc-offset",
    ValueKind.LANGUAGE_TAG: "language-tag",
    ValueKind.STRUCTURED_TEXT: "text",
    ValueKind.IANA_VALUESPEC: None,
}

_LIST_ITEMS = {
    ValueKind.TEXT_LIST: ValueKind.TEXT,
    ValueKind.DATE_LIST: ValueKind.DATE,
    ValueKind.TIME_LIST: ValueKind.TIME,
    ValueKind.DATE_TIME_LIST: ValueKind.DATE_TIME,
    ValueKind.DATE_AND_OR_TIME_LIST: ValueKind.DATE_AND_OR_TIME,
    ValueKind.TIMESTAMP_LIST: ValueKind.TIMESTAMP,
}

INTEGER_MIN = -9223372036854775808
INTEGER_MAX = 9223372036854775807

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?[0-9]+(?:\.[0-9]+)?")
_URI_RE = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*:[^\s\x00-\x1f\x7f\"<>\\^`{|}]*")
_LANGUAGE_TAG_RE = re.compile(r"[A-Za-z]{1,8}(?:-[A-Za-z0-9]{1,8})*")
# control characters other than HTAB
_CONTROL_RE = re.compile(r"[\x00-\x08\x0a-\x1f\x7f]")

_UNESCAPE = {"\\": "\\", ",": ",", ";": ";", "n": "\n", "N": "\n"}


# -- escaping -----------------------------------------------------------------

def escape_text(text: str) -> str:
    """
    Escape a text item for use in a property value.

    :param text: Literal text
    :return: Text with backslash, comma, semicolon and newline escaped
    """
    return (
        text.replace("\\", "\\\\")
        .replace(",", "\\,")
        .replace(";", "\\;")
        .replace("\n", "\\n")
    )


def split_unescaped(raw: str, separator: str) -> List[str]:
    """
    Split on a separator that is not preceded by an escaping backslash.

    Escape sequences are left intact in the returned segments.

    :param raw: Raw value text
    :param separator: Single separator character
    :return: Raw segments
    """
    segments = []
    current = []
    index = 0
    while index < len(raw):
        char = raw[index]
        if char == "\\":
            current.append(raw[index:index + 2])
            index += 2
            continue
        if char == separator:
            segments.append("".join(current))
            current = []
        else:
            current.append(char)
        index += 1
    segments.append("".join(current))
    return segments


def unescape_text(raw: str, literal_semicolon: bool = True) -> str:
    """
    Resolve escape sequences in one text item.

    :param raw: Raw text item, already split from its siblings
    :param literal_semicolon: Whether a raw ';' is accepted as a literal
    :return: Literal text
    :raises InvalidValueError: On an unknown escape, a trailing backslash,
                               a raw comma or a disallowed raw semicolon
    """
    out = []
    index = 0
    while index < len(raw):
        char = raw[index]
        if char == "\\":
            escaped = raw[index + 1:index + 2]
            if escaped not in _UNESCAPE:
                raise InvalidValueError(
                    "invalid escape sequence in text", token=raw[index:index + 2]
                )
            out.append(_UNESCAPE[escaped])
            index += 2
            continue
        if char == "," or (char == ";" and not literal_semicolon):
            raise InvalidValueError(
                f"unescaped {char!r} in text value", token=raw
            )
        out.append(char)
        index += 1
    return "".join(out)


# -- payload normalization ----------------------------------------------------

def _normalize_text(data: Any) -> str:
    if not isinstance(data, str):
        raise InvalidValueError(f"text value must be a string, got {type(data).__name__}")
    return data.replace("\r\n", "\n").replace("\r", "\n")


def _normalize_text_items(data: Any) -> Tuple[str, ...]:
    if isinstance(data, str):
        raise InvalidValueError("text list must be a sequence of strings, got a string")
    items = tuple(_normalize_text(item) for item in data)
    # "" and [""] share one encoding
    return () if items == ("",) else items


def _normalize_structured(data: Any) -> Tuple[Tuple[str, ...], ...]:
    if isinstance(data, str):
        raise InvalidValueError("structured value must be a sequence of components")
    components = tuple(_normalize_text_items(component) for component in data)
    if not components:
        raise InvalidValueError("structured value needs at least one component")
    return components


def _instance_of(*types: type) -> Callable[[Any], Any]:
    def check(data: Any) -> Any:
        if not isinstance(data, types):
            names = " or ".join(t.__name__ for t in types)
            raise InvalidValueError(f"expected {names}, got {type(data).__name__}")
        return data
    return check


def _matching(pattern: "re.Pattern[str]", label: str) -> Callable[[Any], str]:
    def check(data: Any) -> str:
        if not isinstance(data, str) or not pattern.fullmatch(data):
            raise InvalidValueError(f"invalid {label}", token=str(data))
        return data
    return check


def _timestamp_payload(data: Any) -> DateTime:
    _instance_of(DateTime)(data)
    if not data.is_complete:
        raise InvalidValueError(f"timestamp must be complete: {data}")
    return data


def _integer_payload(data: Any) -> int:
    if isinstance(data, bool) or not isinstance(data, int):
        raise InvalidValueError(f"expected int, got {type(data).__name__}")
    if not INTEGER_MIN <= data <= INTEGER_MAX:
        raise InvalidValueError(f"integer out of range: {data}")
    return data


def _float_payload(data: Any) -> Decimal:
    if isinstance(data, bool):
        raise InvalidValueError("expected a number, got bool")
    if isinstance(data, float):
        data = Decimal(repr(data))
    elif isinstance(data, str):
        if not _FLOAT_RE.fullmatch(data):
            raise InvalidValueError("invalid float value", token=data)
        data = Decimal(data)
    elif isinstance(data, int):
        data = Decimal(data)
    if not isinstance(data, Decimal) or not data.is_finite():
        raise InvalidValueError(f"invalid float value: {data!r}")
    return data


def _iana_payload(data: Any) -> str:
    if not isinstance(data, str):
        raise InvalidValueError(f"expected str, got {type(data).__name__}")
    if _CONTROL_RE.search(data):
        raise InvalidValueError("control character in value", token=data)
    return data


def _boolean_payload(data: Any) -> bool:
    if not isinstance(data, bool):
        raise InvalidValueError(f"expected bool, got {type(data).__name__}")
    return data


def _list_of(item: Callable[[Any], Any]) -> Callable[[Any], Tuple[Any, ...]]:
    def check(data: Any) -> Tuple[Any, ...]:
        if isinstance(data, (str, bytes)):
            raise InvalidValueError("list value must be a sequence")
        items = tuple(item(element) for element in data)
        if not items:
            raise InvalidValueError("list value needs at least one item")
        return items
    return check


_date_or_time = _instance_of(Date, DateTime, Time)

_PAYLOADS: Dict[ValueKind, Callable[[Any], Any]] = {
    ValueKind.TEXT: _normalize_text,
    ValueKind.TEXT_LIST: _normalize_text_items,
    ValueKind.DATE: _instance_of(Date),
    ValueKind.DATE_LIST: _list_of(_instance_of(Date)),
    ValueKind.TIME: _instance_of(Time),
    ValueKind.TIME_LIST: _list_of(_instance_of(Time)),
    ValueKind.DATE_TIME: _instance_of(DateTime),
    ValueKind.DATE_TIME_LIST: _list_of(_instance_of(DateTime)),
    ValueKind.DATE_AND_OR_TIME: _date_or_time,
    ValueKind.DATE_AND_OR_TIME_LIST: _list_of(_date_or_time),
    ValueKind.TIMESTAMP: _timestamp_payload,
    ValueKind.TIMESTAMP_LIST: _list_of(_timestamp_payload),
    ValueKind.BOOLEAN: _boolean_payload,
    ValueKind.INTEGER_LIST: _list_of(_integer_payload),
    ValueKind.FLOAT_LIST: _list_of(_float_payload),
    ValueKind.URI: _matching(_URI_RE, "URI"),
    ValueKind.UTC_OFFSET: _instance_of(UtcOffset),
    ValueKind.LANGUAGE_TAG: _matching(_LANGUAGE_TAG_RE, "language tag"),
    ValueKind.STRUCTURED_TEXT: _normalize_structured,
    ValueKind.IANA_VALUESPEC: _iana_payload,
}


@dataclass(frozen=True)
class Value:
    """
    A decoded property value: a kind tag and its payload.

    The payload is validated and normalized on construction (sequences become
    tuples, text line breaks become "\\n"), so equal values compare equal
    regardless of how they were built.
    """

    kind: ValueKind
    data: Any

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _PAYLOADS[self.kind](self.data))

    @classmethod
    def text(cls, text: str) -> "Value":
        return cls(ValueKind.TEXT, text)

    @classmethod
    def text_list(cls, items: Iterable[str]) -> "Value":
        return cls(ValueKind.TEXT_LIST, tuple(items))

    @classmethod
    def structured(cls, components: Iterable[Iterable[str]]) -> "Value":
        return cls(ValueKind.STRUCTURED_TEXT, tuple(tuple(c) for c in components))

    @classmethod
    def uri(cls, uri: str) -> "Value":
        return cls(ValueKind.URI, uri)

    @classmethod
    def boolean(cls, flag: bool) -> "Value":
        return cls(ValueKind.BOOLEAN, flag)

    @classmethod
    def integers(cls, numbers: Iterable[int]) -> "Value":
        return cls(ValueKind.INTEGER_LIST, tuple(numbers))

    @classmethod
    def floats(cls, numbers: Iterable[Any]) -> "Value":
        return cls(ValueKind.FLOAT_LIST, tuple(numbers))

    @classmethod
    def language_tag(cls, tag: str) -> "Value":
        return cls(ValueKind.LANGUAGE_TAG, tag)

    @classmethod
    def utc_offset(cls, offset: UtcOffset) -> "Value":
        return cls(ValueKind.UTC_OFFSET, offset)

    @classmethod
    def date_and_or_time(cls, value: Any) -> "Value":
        return cls(ValueKind.DATE_AND_OR_TIME, value)

    @classmethod
    def timestamp(cls, value: DateTime) -> "Value":
        return cls(ValueKind.TIMESTAMP, value)

    @property
    def components(self) -> Tuple[Tuple[str, ...], ...]:
        """Components of a structured value."""
        if self.kind is not ValueKind.STRUCTURED_TEXT:
            raise TypeError(f"{self.kind.value} value has no components")
        return self.data

    def component(self, index: int) -> Tuple[str, ...]:
        """Component at index, empty when the value has fewer components."""
        components = self.components
        return components[index] if index < len(components) else ()

    def as_text(self) -> str:
        """Plain display text: text as-is, lists and components joined."""
        if self.kind is ValueKind.TEXT:
            return self.data
        if self.kind is ValueKind.TEXT_LIST:
            return ", ".join(self.data)
        if self.kind is ValueKind.STRUCTURED_TEXT:
            return " ".join(" ".join(c) for c in self.data if c).strip()
        return encode_value(self)


# -- decoders -----------------------------------------------------------------

def _split_items(raw: str) -> List[str]:
    items = raw.split(",")
    if any(item == "" for item in items):
        raise InvalidValueError("empty item in list value", token=raw)
    return items


def _decode_text(raw: str) -> str:
    return unescape_text(raw)


def _decode_text_list(raw: str) -> Tuple[str, ...]:
    if raw == "":
        return ()
    return tuple(unescape_text(item) for item in split_unescaped(raw, ","))


def _decode_structured(raw: str) -> Tuple[Tuple[str, ...], ...]:
    return tuple(
        () if component == "" else tuple(
            unescape_text(item, literal_semicolon=False)
            for item in split_unescaped(component, ",")
        )
        for component in split_unescaped(raw, ";")
    )


def _decode_boolean(raw: str) -> bool:
    upper = raw.upper()
    if upper == "TRUE":
        return True
    if upper == "FALSE":
        return False
    raise InvalidValueError("boolean must be TRUE or FALSE", token=raw)


def _decode_integer(raw: str) -> int:
    if not _INTEGER_RE.fullmatch(raw):
        raise InvalidValueError("invalid integer", token=raw)
    return int(raw)


def _decode_float(raw: str) -> Decimal:
    if not _FLOAT_RE.fullmatch(raw):
        raise InvalidValueError("invalid float", token=raw)
    try:
        return Decimal(raw)
    except InvalidOperation as e:
        raise InvalidValueError("invalid float", token=raw) from e


def _list_decoder(item: Callable[[str], Any]) -> Callable[[str], Tuple[Any, ...]]:
    def decode(raw: str) -> Tuple[Any, ...]:
        return tuple(item(text) for text in _split_items(raw))
    return decode


def _verbatim(raw: str) -> str:
    return raw


_DECODERS: Dict[ValueKind, Callable[[str], Any]] = {
    ValueKind.TEXT: _decode_text,
    ValueKind.TEXT_LIST: _decode_text_list,
    ValueKind.DATE: parse_date,
    ValueKind.DATE_LIST: _list_decoder(parse_date),
    ValueKind.TIME: parse_time,
    ValueKind.TIME_LIST: _list_decoder(parse_time),
    ValueKind.DATE_TIME: parse_date_time,
    ValueKind.DATE_TIME_LIST: _list_decoder(parse_date_time),
    ValueKind.DATE_AND_OR_TIME: parse_date_and_or_time,
    ValueKind.DATE_AND_OR_TIME_LIST: _list_decoder(parse_date_and_or_time),
    ValueKind.TIMESTAMP: parse_timestamp,
    ValueKind.TIMESTAMP_LIST: _list_decoder(parse_timestamp),
    ValueKind.BOOLEAN: _decode_boolean,
    ValueKind.INTEGER_LIST: _list_decoder(_decode_integer),
    ValueKind.FLOAT_LIST: _list_decoder(_decode_float),
    ValueKind.URI: _verbatim,
    ValueKind.UTC_OFFSET: parse_utc_offset,
    ValueKind.LANGUAGE_TAG: _verbatim,
    ValueKind.STRUCTURED_TEXT: _decode_structured,
    ValueKind.IANA_VALUESPEC: _verbatim,
}


# -- encoders -----------------------------------------------------------------

def _encode_items(items: Sequence[Any], item: Callable[[Any], str]) -> str:
    return ",".join(item(element) for element in items)


_ENCODERS: Dict[ValueKind, Callable[[Any], str]] = {
    ValueKind.TEXT: escape_text,
    ValueKind.TEXT_LIST: lambda data: _encode_items(data, escape_text),
    ValueKind.DATE: str,
    ValueKind.DATE_LIST: lambda data: _encode_items(data, str),
    ValueKind.TIME: str,
    ValueKind.TIME_LIST: lambda data: _encode_items(data, str),
    ValueKind.DATE_TIME: str,
    ValueKind.DATE_TIME_LIST: lambda data: _encode_items(data, str),
    ValueKind.DATE_AND_OR_TIME: format_date_and_or_time,
    ValueKind.DATE_AND_OR_TIME_LIST: lambda data: _encode_items(
        data, format_date_and_or_time
    ),
    ValueKind.TIMESTAMP: str,
    ValueKind.TIMESTAMP_LIST: lambda data: _encode_items(data, str),
    ValueKind.BOOLEAN: lambda data: "TRUE" if data else "FALSE",
    ValueKind.INTEGER_LIST: lambda data: _encode_items(data, str),
    ValueKind.FLOAT_LIST: lambda data: _encode_items(
        data, lambda number: format(number, "f")
    ),
    ValueKind.URI: _verbatim,
    ValueKind.UTC_OFFSET: str,
    ValueKind.LANGUAGE_TAG: _verbatim,
    ValueKind.STRUCTURED_TEXT: lambda data: ";".join(
        _encode_items(component, escape_text) for component in data
    ),
    ValueKind.IANA_VALUESPEC: _verbatim,
}


def decode_value(kind: ValueKind, raw_value: str) -> Value:
    """
    Decode the raw text of a property value.

    :param kind: Value kind to decode as
    :param raw_value: Raw value text from the content line
    :return: Decoded Value
    :raises InvalidValueError: If raw_value does not match the kind's grammar
    """
    try:
        return Value(kind, _DECODERS[kind](raw_value))
    except InvalidValueError as e:
        if e.token is None:
            e.token = raw_value
        raise


def encode_value(value: Value) -> str:
    """
    Encode a Value into raw property value text.

    :param value: Value to encode
    :return: Raw value text, escaped as its kind requires
    """
    return _ENCODERS[value.kind](value.data)
