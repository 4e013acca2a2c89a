"""
Document assembly: the BEGIN/END state machine and the immutable Document.

A DocumentBuilder is fed typed properties one at a time. It enforces the
envelope (BEGIN:VCARD first, END:VCARD last, VERSION:4.0) and on END checks
every property's cardinality. A Document is only ever constructed from a
property sequence that passes those checks.

Dependencies:
    - dataclasses: Standard library for the Document value object
    - enum: Standard library for builder state and accessor enums
    - logging: Standard library for logging
    - vcard4.property_assembler: Local module providing Property and its checks
"""
# pylint: disable=logging-fstring-interpolation

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple, Union

from vcard4.errors import CardinalityError, ParseError, StructuralError
from vcard4.property_assembler import Property, check_property, new_property
from vcard4.property_catalog import (
    DEFAULT_CATALOG,
    AnyPropertyType,
    PropertyCatalog,
    PropertySpec,
    PropertyType,
)
from vcard4.value_codec import Value, ValueKind

logger = logging.getLogger("vcard4")

VCARD_VERSION = "4.0"
ENVELOPE_NAME = "VCARD"

_ENVELOPE_TYPES = (PropertyType.BEGIN, PropertyType.END)


class BuilderState(Enum):
    AWAIT_BEGIN = "AwaitBegin"
    IN_BODY = "InBody"
    DONE = "Done"
    FAILED = "Failed"


class Kind(Enum):
    """KIND property values defined by RFC 6350."""

    INDIVIDUAL = "individual"
    GROUP = "group"
    ORG = "org"
    LOCATION = "location"


class Sex(Enum):
    """Sex component of the GENDER property."""

    MALE = "M"
    FEMALE = "F"
    OTHER = "O"
    NONE = "N"
    UNKNOWN = "U"


class StructuredName(NamedTuple):
    """Components of the N property."""

    family: Tuple[str, ...]
    given: Tuple[str, ...]
    additional: Tuple[str, ...]
    prefixes: Tuple[str, ...]
    suffixes: Tuple[str, ...]


NameOrType = Union[str, AnyPropertyType]


def _key(name: NameOrType) -> str:
    if isinstance(name, str):
        return name.upper()
    return name.label.upper()


def _is_envelope_value(prop: Property) -> bool:
    return prop.value.kind is ValueKind.TEXT and prop.value.data.upper() == ENVELOPE_NAME


def _check_version(prop: Property) -> None:
    version = prop.value.as_text()
    if version != VCARD_VERSION:
        raise StructuralError(
            f"unsupported vCard version {version!r}, only {VCARD_VERSION} is accepted",
            property_name="VERSION",
            token=version
        )


def _occurrences(properties: Iterable[Property]) -> Iterator[Tuple[int, str]]:
    """(index, name key) of each property that starts a new occurrence."""
    seen_altids = set()
    for index, prop in enumerate(properties):
        key = _key(prop.ptype)
        altid = prop.altid
        if altid is not None:
            if (key, altid) in seen_altids:
                continue
            seen_altids.add((key, altid))
        yield index, key


def count_occurrences(properties: Iterable[Property]) -> Counter:
    """
    Count properties by name, treating every property that shares one ALTID
    value as a single occurrence.

    :param properties: Properties of one vCard
    :return: Counter keyed by upper-cased property name
    """
    return Counter(key for _, key in _occurrences(properties))


def find_cardinality_violation(
    properties: Iterable[Property],
    catalog: PropertyCatalog = DEFAULT_CATALOG
) -> Optional[Tuple[PropertySpec, int]]:
    """
    First cardinality rule the properties break, in catalog order.

    BEGIN and END are implicit in a Document and are not counted.

    :param properties: Properties of one vCard, envelope excluded
    :param catalog: Catalog supplying the rules
    :return: (spec, occurrences) of the violated rule, or None
    """
    counts = count_occurrences(properties)
    for spec in catalog:
        if spec.ptype in _ENVELOPE_TYPES:
            continue
        found = counts.get(_key(spec.ptype), 0)
        if not spec.cardinality.allows(found):
            return spec, found
    return None


@dataclass(frozen=True)
class Document:
    """
    One validated vCard 4.0 card.

    Holds the properties in source order, VERSION included; BEGIN and END are
    implicit. Construction validates the properties, so a Document that
    exists satisfies every cardinality rule.
    """

    properties: Tuple[Property, ...]
    catalog: PropertyCatalog = field(default=DEFAULT_CATALOG, compare=False, repr=False)

    def __post_init__(self) -> None:
        properties = tuple(self.properties)
        object.__setattr__(self, "properties", properties)

        for prop in properties:
            if prop.ptype in _ENVELOPE_TYPES:
                raise StructuralError(
                    f"{prop.name} belongs to the envelope, not the property list",
                    property_name=prop.name
                )
            if prop.ptype is PropertyType.VERSION:
                _check_version(prop)

        violation = find_cardinality_violation(properties, self.catalog)
        if violation is not None:
            spec, found = violation
            raise CardinalityError(spec.name, spec.cardinality.value, found)

    @classmethod
    def build(
        cls,
        properties: Iterable[Property],
        catalog: PropertyCatalog = DEFAULT_CATALOG
    ) -> "Document":
        """
        Create a Document from properties, checking each one first.

        :param properties: Properties in order, VERSION included
        :param catalog: Catalog to check against
        :return: New Document
        :raises ParseError: If a property or the property set is invalid
        """
        properties = tuple(properties)
        for prop in properties:
            check_property(prop, catalog)
        return cls(properties, catalog)

    @classmethod
    def create(
        cls,
        formatted_name: str,
        properties: Iterable[Property] = (),
        catalog: PropertyCatalog = DEFAULT_CATALOG
    ) -> "Document":
        """Start a card with VERSION and FN, followed by properties."""
        head = (
            new_property("VERSION", Value.text(VCARD_VERSION), catalog=catalog),
            new_property("FN", Value.text(formatted_name), catalog=catalog),
        )
        return cls.build(head + tuple(properties), catalog)

    def __len__(self) -> int:
        return len(self.properties)

    def __iter__(self) -> Iterator[Property]:
        return iter(self.properties)

    @property
    def version(self) -> str:
        return VCARD_VERSION

    def get(self, name: NameOrType) -> List[Property]:
        """All properties called name, in source order."""
        key = _key(name)
        return [prop for prop in self.properties if _key(prop.ptype) == key]

    def first(self, name: NameOrType) -> Optional[Property]:
        matches = self.get(name)
        return matches[0] if matches else None

    def values(self, name: NameOrType) -> List[Value]:
        return [prop.value for prop in self.get(name)]

    @property
    def formatted_names(self) -> List[str]:
        return [value.as_text() for value in self.values(PropertyType.FN)]

    @property
    def name(self) -> Optional[StructuredName]:
        prop = self.first(PropertyType.N)
        if prop is None:
            return None
        return StructuredName(*(prop.value.component(i) for i in range(5)))

    @property
    def kind(self) -> Union[Kind, str]:
        """
        KIND of the card; individual when absent.

        Unregistered kinds (x-names, IANA tokens) come back as lower-cased
        strings.
        """
        prop = self.first(PropertyType.KIND)
        if prop is None:
            return Kind.INDIVIDUAL
        token = prop.value.as_text().lower()
        try:
            return Kind(token)
        except ValueError:
            return token

    @property
    def gender(self) -> Optional[Tuple[Optional[Sex], str]]:
        """(sex, identity) from GENDER, sex None when the component is empty."""
        prop = self.first(PropertyType.GENDER)
        if prop is None:
            return None
        sex = prop.value.component(0)
        identity = prop.value.component(1)
        return (
            Sex(sex[0].upper()) if sex else None,
            identity[0] if identity else ""
        )

    @property
    def uid(self) -> Optional[str]:
        prop = self.first(PropertyType.UID)
        return prop.value.as_text() if prop is not None else None

    def with_property(self, prop: Property) -> "Document":
        """Copy of this card with prop appended."""
        return Document.build(self.properties + (prop,), self.catalog)

    def without(self, name: NameOrType) -> "Document":
        """Copy of this card with every property called name removed."""
        key = _key(name)
        return Document(
            tuple(prop for prop in self.properties if _key(prop.ptype) != key),
            self.catalog
        )

    def replace_properties(self, properties: Iterable[Property]) -> "Document":
        return Document.build(properties, self.catalog)


class DocumentBuilder:
    """
    Push-based assembler for one vCard.

    Feed properties in source order; the builder moves from AWAIT_BEGIN to
    IN_BODY on BEGIN:VCARD and to DONE on END:VCARD. Any error moves it to
    FAILED, after which every call re-raises the first error.
    """

    def __init__(self, catalog: PropertyCatalog = DEFAULT_CATALOG) -> None:
        self.catalog = catalog
        self.state = BuilderState.AWAIT_BEGIN
        self._properties: List[Property] = []
        self._line_numbers: Dict[int, Optional[int]] = {}
        self._end_line: Optional[int] = None
        self._document: Optional[Document] = None
        self._error: Optional[ParseError] = None

    @property
    def is_done(self) -> bool:
        return self.state is BuilderState.DONE

    def feed(self, prop: Property, line_number: Optional[int] = None) -> BuilderState:
        """
        Consume the next property.

        :param prop: Assembled property
        :param line_number: Source line of the property, for error context
        :return: State after consuming prop
        :raises ParseError: If prop breaks the envelope or a property rule
        """
        if self._error is not None:
            raise self._error
        if self.state is BuilderState.DONE:
            raise StructuralError(
                "property after END:VCARD",
                line_number=line_number,
                property_name=prop.name
            )

        try:
            self._step(prop, line_number)
        except ParseError as e:
            self._fail(e.with_context(line_number=line_number, property_name=prop.name))
            raise
        return self.state

    def _fail(self, error: ParseError) -> None:
        self.state = BuilderState.FAILED
        self._error = error
        logger.debug(f"Builder failed: {error}")

    def _step(self, prop: Property, line_number: Optional[int]) -> None:
        if self.state is BuilderState.AWAIT_BEGIN:
            if prop.ptype is not PropertyType.BEGIN or not _is_envelope_value(prop):
                raise StructuralError("expected BEGIN:VCARD")
            self.state = BuilderState.IN_BODY
            return

        if prop.ptype is PropertyType.BEGIN:
            raise StructuralError("BEGIN before END:VCARD, nested cards are not supported")

        if prop.ptype is PropertyType.END:
            if not _is_envelope_value(prop):
                raise StructuralError(f"unexpected END:{prop.value.as_text()}")
            self._end_line = line_number
            self._complete()
            return

        if prop.ptype is PropertyType.VERSION:
            _check_version(prop)
        check_property(prop, self.catalog)
        self._line_numbers[len(self._properties)] = line_number
        self._properties.append(prop)

    def _offending_line(self, spec: PropertySpec, found: int) -> Optional[int]:
        # point too-many errors at the first surplus occurrence
        if found == 0:
            return self._end_line
        wanted = _key(spec.ptype)
        seen = 0
        for index, key in _occurrences(self._properties):
            if key == wanted:
                seen += 1
                if seen > 1:
                    return self._line_numbers.get(index)
        return self._end_line

    def _complete(self) -> None:
        violation = find_cardinality_violation(self._properties, self.catalog)
        if violation is not None:
            spec, found = violation
            raise CardinalityError(
                spec.name,
                spec.cardinality.value,
                found,
                line_number=self._offending_line(spec, found)
            )
        self._document = Document(tuple(self._properties), self.catalog)
        self.state = BuilderState.DONE
        logger.debug(f"Completed vCard with {len(self._properties)} properties")

    def finish(self) -> Document:
        """
        Return the completed Document.

        :return: Document built from the fed properties
        :raises StructuralError: If BEGIN:VCARD or END:VCARD never arrived
        :raises ParseError: The first error, if the builder failed
        """
        if self._error is not None:
            raise self._error
        if self._document is not None:
            return self._document

        if self.state is BuilderState.AWAIT_BEGIN:
            error = StructuralError("missing BEGIN:VCARD")
        else:
            error = StructuralError("missing END:VCARD")
        self._fail(error)
        raise error
