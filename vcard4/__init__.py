"""
vcard4: a strict vCard 4.0 (RFC 6350) parser and serializer.

    >>> from vcard4 import parse, serialize
    >>> card = parse("BEGIN:VCARD\\r\\nVERSION:4.0\\r\\nFN:J. Doe\\r\\nEND:VCARD\\r\\n")
    >>> card.formatted_names
    ['J. Doe']
"""

from vcard4.date_time import Date, DateTime, Time, UtcOffset
from vcard4.document_builder import (
    VCARD_VERSION,
    BuilderState,
    Document,
    DocumentBuilder,
    Kind,
    Sex,
    StructuredName,
)
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
from vcard4.parameters import Parameter
from vcard4.property_assembler import Property, new_property
from vcard4.property_catalog import (
    DEFAULT_CATALOG,
    Cardinality,
    ExtensionType,
    PropertyCatalog,
    PropertySpec,
    PropertyType,
)
from vcard4.value_codec import Value, ValueKind
from vcard4.vcard_parser import parse, parse_all, serialize, serialize_all

__version__ = "1.0.0"

__all__ = [
    "VCARD_VERSION",
    "BuilderState",
    "Cardinality",
    "CardinalityError",
    "DEFAULT_CATALOG",
    "Date",
    "DateTime",
    "Document",
    "DocumentBuilder",
    "ErrorComponent",
    "ExtensionType",
    "FoldError",
    "GrammarError",
    "InvalidValueError",
    "Kind",
    "ParamError",
    "Parameter",
    "ParseError",
    "Property",
    "PropertyCatalog",
    "PropertySpec",
    "PropertyType",
    "Sex",
    "StructuralError",
    "StructuredName",
    "Time",
    "UtcOffset",
    "Value",
    "ValueKind",
    "new_property",
    "parse",
    "parse_all",
    "serialize",
    "serialize_all",
]
