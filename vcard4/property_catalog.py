"""
Static registry of vCard 4.0 properties.

Maps a property name to its cardinality, default value kind, the other value
kinds a VALUE parameter may select, and the component count of structured
values. The catalog is built once and never mutated, so a single instance is
shared by the parser and the serializer.

Dependencies:
    - dataclasses: Standard library for immutable spec records
    - enum: Standard library for PropertyType and Cardinality
    - types: Standard library for the read-only mapping proxy
    - typing: Standard library for type hints
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple, Union

from vcard4.content_line import NAME_RE
from vcard4.errors import GrammarError
from vcard4.value_codec import ValueKind


class PropertyType(Enum):
    """Properties defined by RFC 6350. Values are the canonical names."""

    BEGIN = "BEGIN"
    END = "END"
    SOURCE = "SOURCE"
    KIND = "KIND"
    XML = "XML"
    FN = "FN"
    N = "N"
    NICKNAME = "NICKNAME"
    PHOTO = "PHOTO"
    BDAY = "BDAY"
    ANNIVERSARY = "ANNIVERSARY"
    GENDER = "GENDER"
    ADR = "ADR"
    TEL = "TEL"
    EMAIL = "EMAIL"
    IMPP = "IMPP"
    LANG = "LANG"
    TZ = "TZ"
    GEO = "GEO"
    TITLE = "TITLE"
    ROLE = "ROLE"
    LOGO = "LOGO"
    ORG = "ORG"
    MEMBER = "MEMBER"
    RELATED = "RELATED"
    CATEGORIES = "CATEGORIES"
    NOTE = "NOTE"
    PRODID = "PRODID"
    REV = "REV"
    SOUND = "SOUND"
    UID = "UID"
    CLIENTPIDMAP = "CLIENTPIDMAP"
    URL = "URL"
    VERSION = "VERSION"
    KEY = "KEY"
    FBURL = "FBURL"
    CALADRURI = "CALADRURI"
    CALURI = "CALURI"

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True)
class ExtensionType:
    """An X- name or an IANA token the catalog does not list."""

    name: str

    @property
    def label(self) -> str:
        return self.name


AnyPropertyType = Union[PropertyType, ExtensionType]


class Cardinality(Enum):
    """How many times a property may occur in one vCard."""

    EXACTLY_ONE = "ExactlyOne"
    AT_MOST_ONE = "AtMostOne"
    AT_LEAST_ONE = "AtLeastOne"
    ARBITRARY = "Arbitrary"

    def allows(self, count: int) -> bool:
        if self is Cardinality.EXACTLY_ONE:
            return count == 1
        if self is Cardinality.AT_MOST_ONE:
            return count <= 1
        if self is Cardinality.AT_LEAST_ONE:
            return count >= 1
        return True


@dataclass(frozen=True)
class PropertySpec:
    """
    Catalog entry for one property.

    components is (minimum, maximum) for structured values, maximum None
    meaning unbounded.
    """

    ptype: AnyPropertyType
    cardinality: Cardinality
    default_kind: ValueKind
    allowed_kinds: Tuple[ValueKind, ...] = ()
    components: Optional[Tuple[int, Optional[int]]] = None

    @property
    def name(self) -> str:
        return self.ptype.label

    @property
    def is_extension(self) -> bool:
        return isinstance(self.ptype, ExtensionType)

    @property
    def kinds(self) -> Tuple[ValueKind, ...]:
        """Default kind first, then the alternatives."""
        return (self.default_kind,) + self.allowed_kinds


_ONE = Cardinality.EXACTLY_ONE
_OPT = Cardinality.AT_MOST_ONE
_REQ = Cardinality.AT_LEAST_ONE
_ANY = Cardinality.ARBITRARY

_K = ValueKind

_RFC6350_PROPERTIES = (
    PropertySpec(PropertyType.BEGIN, _ONE, _K.TEXT),
    PropertySpec(PropertyType.END, _ONE, _K.TEXT),
    PropertySpec(PropertyType.SOURCE, _ANY, _K.URI),
    PropertySpec(PropertyType.KIND, _OPT, _K.TEXT),
    PropertySpec(PropertyType.XML, _ANY, _K.TEXT),
    PropertySpec(PropertyType.FN, _REQ, _K.TEXT),
    PropertySpec(PropertyType.N, _OPT, _K.STRUCTURED_TEXT, components=(5, 5)),
    PropertySpec(PropertyType.NICKNAME, _ANY, _K.TEXT_LIST),
    PropertySpec(PropertyType.PHOTO, _ANY, _K.URI),
    PropertySpec(PropertyType.BDAY, _OPT, _K.DATE_AND_OR_TIME, (_K.TEXT,)),
    PropertySpec(PropertyType.ANNIVERSARY, _OPT, _K.DATE_AND_OR_TIME, (_K.TEXT,)),
    PropertySpec(PropertyType.GENDER, _OPT, _K.STRUCTURED_TEXT, components=(1, 2)),
    PropertySpec(PropertyType.ADR, _ANY, _K.STRUCTURED_TEXT, components=(7, 7)),
    PropertySpec(PropertyType.TEL, _ANY, _K.TEXT, (_K.URI,)),
    PropertySpec(PropertyType.EMAIL, _ANY, _K.TEXT),
    PropertySpec(PropertyType.IMPP, _ANY, _K.URI),
    PropertySpec(PropertyType.LANG, _ANY, _K.LANGUAGE_TAG),
    PropertySpec(PropertyType.TZ, _ANY, _K.TEXT, (_K.URI, _K.UTC_OFFSET)),
    PropertySpec(PropertyType.GEO, _ANY, _K.URI),
    PropertySpec(PropertyType.TITLE, _ANY, _K.TEXT),
    PropertySpec(PropertyType.ROLE, _ANY, _K.TEXT),
    PropertySpec(PropertyType.LOGO, _ANY, _K.URI),
    PropertySpec(PropertyType.ORG, _ANY, _K.STRUCTURED_TEXT, components=(1, None)),
    PropertySpec(PropertyType.MEMBER, _ANY, _K.URI),
    PropertySpec(PropertyType.RELATED, _ANY, _K.URI, (_K.TEXT,)),
    PropertySpec(PropertyType.CATEGORIES, _ANY, _K.TEXT_LIST),
    PropertySpec(PropertyType.NOTE, _ANY, _K.TEXT),
    PropertySpec(PropertyType.PRODID, _OPT, _K.TEXT),
    PropertySpec(PropertyType.REV, _OPT, _K.TIMESTAMP),
    PropertySpec(PropertyType.SOUND, _ANY, _K.URI),
    PropertySpec(PropertyType.UID, _OPT, _K.URI, (_K.TEXT,)),
    PropertySpec(PropertyType.CLIENTPIDMAP, _ANY, _K.STRUCTURED_TEXT, components=(2, 2)),
    PropertySpec(PropertyType.URL, _ANY, _K.URI),
    PropertySpec(PropertyType.VERSION, _ONE, _K.TEXT),
    PropertySpec(PropertyType.KEY, _ANY, _K.URI, (_K.TEXT,)),
    PropertySpec(PropertyType.FBURL, _ANY, _K.URI),
    PropertySpec(PropertyType.CALADRURI, _ANY, _K.URI),
    PropertySpec(PropertyType.CALURI, _ANY, _K.URI),
)


class PropertyCatalog:
    """Read-only, case-insensitive lookup from property name to spec."""

    def __init__(self, specs: Iterable[PropertySpec]) -> None:
        self._specs: Mapping[str, PropertySpec] = MappingProxyType(
            {spec.name.upper(): spec for spec in specs}
        )

    def __contains__(self, name: str) -> bool:
        return name.upper() in self._specs

    def __iter__(self):
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    def lookup(self, name: str) -> PropertySpec:
        """
        Resolve a property name.

        Unknown but well-formed names resolve to an extension spec with
        arbitrary cardinality and a text default.

        :param name: Property name in any case
        :return: PropertySpec for the name
        :raises GrammarError: If the name is empty or not a valid token
        """
        if not name or not NAME_RE.fullmatch(name):
            raise GrammarError(
                f"cannot classify property name {name!r}", token=name
            )
        spec = self._specs.get(name.upper())
        if spec is not None:
            return spec
        return PropertySpec(ExtensionType(name), _ANY, _K.TEXT)

    def spec_for(self, ptype: AnyPropertyType) -> PropertySpec:
        return self.lookup(ptype.label)


DEFAULT_CATALOG = PropertyCatalog(_RFC6350_PROPERTIES)


def lookup(name: str) -> PropertySpec:
    """Resolve a property name against the default catalog."""
    return DEFAULT_CATALOG.lookup(name)
