"""
Property assembly: combines a content line, its decoded parameters and its
decoded value into a typed Property, and takes a Property apart again for
serialization.

Dependencies:
    - dataclasses: Standard library for the Property value object
    - re: Standard library for digit checks
    - logging: Standard library for logging
    - vcard4.property_catalog: Local module, source of value kinds and counts
    - vcard4.value_codec: Local module for value decoding and encoding
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from vcard4.content_line import NAME_RE, ContentLine
from vcard4.date_time import Date, DateTime, Time
from vcard4.errors import GrammarError, InvalidValueError, ParamError, ParseError
from vcard4.parameters import (
    Parameter,
    decode_params,
    encode_params,
    find_params,
    param_values,
)
from vcard4.property_catalog import (
    DEFAULT_CATALOG,
    AnyPropertyType,
    PropertyCatalog,
    PropertySpec,
    PropertyType,
)
from vcard4.value_codec import Value, ValueKind, decode_value, encode_value

logger = logging.getLogger("vcard4")

GENDER_SEXES = frozenset({"M", "F", "O", "N", "U"})

_DIGITS_RE = re.compile(r"[0-9]+")

# value types an extension property may name, mapped onto the RFC 6350
# generic value grammar
_EXTENSION_KINDS = {
    "text": ValueKind.TEXT,
    "uri": ValueKind.URI,
    "date": ValueKind.DATE_LIST,
    "time": ValueKind.TIME_LIST,
    "date-time": ValueKind.DATE_TIME_LIST,
    "date-and-or-time": ValueKind.DATE_AND_OR_TIME_LIST,
    "timestamp": ValueKind.TIMESTAMP_LIST,
    "boolean": ValueKind.BOOLEAN,
    "integer": ValueKind.INTEGER_LIST,
    "float": ValueKind.FLOAT_LIST,
    "utc-offset": ValueKind.UTC_OFFSET,
    "language-tag": ValueKind.LANGUAGE_TAG,
}

# narrower VALUE names accepted where date-and-or-time is allowed
_DATE_AND_OR_TIME_FORMS = {"date": Date, "time": Time, "date-time": DateTime}


@dataclass(frozen=True)
class Property:
    """One typed property of a vCard."""

    ptype: AnyPropertyType
    value: Value
    parameters: Tuple[Parameter, ...] = ()
    group: Optional[str] = None

    def __post_init__(self) -> None:
        if self.group is not None and (
            not isinstance(self.group, str) or not NAME_RE.fullmatch(self.group)
        ):
            raise GrammarError(f"invalid group name {self.group!r}", token=str(self.group))
        object.__setattr__(self, "parameters", tuple(self.parameters))

    @property
    def name(self) -> str:
        return self.ptype.label

    def params(self, name: str) -> List[str]:
        """Values of every parameter called name, in order."""
        return param_values(self.parameters, name)

    @property
    def types(self) -> List[str]:
        """TYPE parameter values, lower-cased."""
        return [value.lower() for value in self.params("TYPE")]

    @property
    def pref(self) -> Optional[int]:
        values = self.params("PREF")
        if values and _DIGITS_RE.fullmatch(values[0]):
            return int(values[0])
        return None

    @property
    def altid(self) -> Optional[str]:
        values = self.params("ALTID")
        return values[0] if values else None


def resolve_value_kind(spec: PropertySpec, params: Iterable[Parameter]) -> ValueKind:
    """
    Effective value kind: the VALUE parameter if present, else the default.

    :param spec: Catalog entry of the property
    :param params: Decoded parameters of the property
    :return: ValueKind to decode the value with
    :raises ParamError: If VALUE is repeated or multi-valued
    :raises InvalidValueError: If VALUE names a type the property does not allow
    """
    value_params = find_params(params, "VALUE")
    if not value_params:
        return spec.default_kind
    if len(value_params) > 1 or len(value_params[0].values) > 1:
        raise ParamError(
            "VALUE parameter must have exactly one value",
            property_name=spec.name
        )

    type_name = value_params[0].value.lower()
    for kind in spec.kinds:
        if kind.type_name == type_name:
            return kind
    if type_name in _DATE_AND_OR_TIME_FORMS and ValueKind.DATE_AND_OR_TIME in spec.kinds:
        return ValueKind.DATE_AND_OR_TIME
    if spec.is_extension:
        return _EXTENSION_KINDS.get(type_name, ValueKind.IANA_VALUESPEC)

    raise InvalidValueError(
        f"VALUE={type_name} is not allowed for {spec.name}",
        property_name=spec.name,
        token=type_name
    )


def _check_components(spec: PropertySpec, value: Value) -> None:
    if value.kind is not ValueKind.STRUCTURED_TEXT or spec.components is None:
        return
    low, high = spec.components
    count = len(value.data)
    if count < low or (high is not None and count > high):
        if high is None:
            expected = f"at least {low}"
        elif low == high:
            expected = str(low)
        else:
            expected = f"{low} to {high}"
        raise InvalidValueError(
            f"{spec.name} needs {expected} components, found {count}",
            property_name=spec.name
        )


def _check_gender(value: Value) -> None:
    sex = value.component(0)
    if len(sex) > 1 or (sex and sex[0].upper() not in GENDER_SEXES):
        raise InvalidValueError(
            "GENDER sex must be one of M, F, O, N, U or empty",
            property_name="GENDER",
            token=",".join(sex)
        )
    if len(value.component(1)) > 1:
        raise InvalidValueError(
            "GENDER identity must be a single text", property_name="GENDER"
        )


def _check_clientpidmap(value: Value) -> None:
    pid, uri = value.component(0), value.component(1)
    if len(pid) != 1 or not _DIGITS_RE.fullmatch(pid[0]):
        raise InvalidValueError(
            "CLIENTPIDMAP source identifier must be digits",
            property_name="CLIENTPIDMAP",
            token=",".join(pid)
        )
    if len(uri) != 1 or not uri[0]:
        raise InvalidValueError(
            "CLIENTPIDMAP needs one URI", property_name="CLIENTPIDMAP"
        )


def check_property(prop: Property, catalog: PropertyCatalog = DEFAULT_CATALOG) -> None:
    """
    Check a property against its catalog entry.

    :param prop: Property to check
    :param catalog: Catalog to check against
    :raises ParseError: If the value kind, component count or a
                        property-specific rule is violated
    """
    spec = catalog.spec_for(prop.ptype)
    kind = resolve_value_kind(spec, prop.parameters)
    if prop.value.kind is not kind:
        raise InvalidValueError(
            f"{spec.name} value is {prop.value.kind.value}, expected {kind.value}",
            property_name=spec.name
        )

    type_name = next(iter(param_values(prop.parameters, "VALUE")), "").lower()
    if kind is ValueKind.DATE_AND_OR_TIME and type_name in _DATE_AND_OR_TIME_FORMS:
        if not isinstance(prop.value.data, _DATE_AND_OR_TIME_FORMS[type_name]):
            raise InvalidValueError(
                f"{spec.name} value does not match VALUE={type_name}",
                property_name=spec.name
            )

    _check_components(spec, prop.value)
    if prop.ptype is PropertyType.GENDER:
        _check_gender(prop.value)
    elif prop.ptype is PropertyType.CLIENTPIDMAP:
        _check_clientpidmap(prop.value)


def assemble(content_line: ContentLine, catalog: PropertyCatalog = DEFAULT_CATALOG) -> Property:
    """
    Build a typed Property from a parsed content line.

    :param content_line: Parsed content line
    :param catalog: Catalog used to classify the name and pick the value kind
    :return: Assembled Property
    :raises ParseError: If the name, parameters or value are invalid
    """
    spec = catalog.lookup(content_line.name)
    try:
        params = decode_params(content_line.raw_params)
        kind = resolve_value_kind(spec, params)
        value = decode_value(kind, content_line.raw_value)
        prop = Property(spec.ptype, value, params, content_line.group)
        check_property(prop, catalog)
    except ParseError as e:
        raise e.with_context(property_name=spec.name)
    return prop


def disassemble(prop: Property) -> ContentLine:
    """
    Take a Property apart into a content line for serialization.

    :param prop: Property to encode
    :return: ContentLine with encoded parameters and value
    """
    return ContentLine(
        name=prop.name,
        raw_value=encode_value(prop.value),
        group=prop.group,
        raw_params=encode_params(prop.parameters)
    )


_LIST_KINDS = {kind.item_kind: kind for kind in ValueKind if kind.is_list}


def new_property(
    name: str,
    value: Value,
    parameters: Iterable[Parameter] = (),
    group: Optional[str] = None,
    catalog: PropertyCatalog = DEFAULT_CATALOG
) -> Property:
    """
    Create a checked Property, adding a VALUE parameter when the value's kind
    is not the property's default.

    :param name: Property name
    :param value: Property value
    :param parameters: Parameters, in order
    :param group: Optional group name
    :param catalog: Catalog used to classify the name
    :return: New Property
    :raises ParseError: If the property would not survive a parse
    """
    spec = catalog.lookup(name)
    params = tuple(parameters)

    # extensions only carry the list form of date/time kinds
    list_kind = _LIST_KINDS.get(value.kind)
    if spec.is_extension and list_kind is not None and (
        _EXTENSION_KINDS.get(value.kind.type_name) is list_kind
    ):
        value = Value(list_kind, (value.data,))

    if not find_params(params, "VALUE") and value.kind is not spec.default_kind:
        type_name = value.kind.type_name
        if type_name is None:
            raise InvalidValueError(
                f"{spec.name} cannot carry an unlabelled IANA value",
                property_name=spec.name
            )
        params = (Parameter("VALUE", (type_name,)),) + params

    prop = Property(spec.ptype, value, params, group)
    check_property(prop, catalog)
    return prop
