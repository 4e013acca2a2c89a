"""
TEL normalization to E.164 "tel:" URIs.

A TEL property written as free text ("(415) 555-1234") is rewritten as a
VALUE=uri property holding a global tel URI ("tel:+14155551234"), the form
RFC 6350 recommends. TYPE, PREF and every other parameter are kept.

The default region is used to interpret numbers that don't have an
international prefix (+). Numbers with a '+' prefix are parsed independently
of the default region.

Dependencies:
    - phonenumbers: Third-party library for phone number parsing and formatting
    - locale: Standard library for locale detection
    - logging: Standard library for logging
"""
# pylint: disable=logging-fstring-interpolation

import locale
import logging
from typing import Dict, List, Optional, Tuple

import phonenumbers
from phonenumbers import NumberParseException

from vcard4.document_builder import Document
from vcard4.property_assembler import Property, new_property
from vcard4.property_catalog import PropertyType
from vcard4.value_codec import Value, ValueKind

logger = logging.getLogger("vcard4")

DEFAULT_REGION = "US"
TEL_SCHEME = "tel:"


def detect_region_from_locale() -> Optional[str]:
    """
    Detect the default phone region from the system locale.

    :return: 2-letter country code (e.g., "US", "NL") or None
    """
    try:
        locale_code, _ = locale.getlocale()
    except ValueError as e:
        logger.debug(f"Could not detect region from locale: {e}")
        return None

    if not locale_code or "_" not in locale_code:
        return None

    # "en_US" -> "US"
    country_code = locale_code.rsplit("_", 1)[-1].upper()
    if len(country_code) != 2:
        return None

    logger.debug(f"Detected region from locale: {country_code}")
    return country_code


def validate_region_code(region_code: str) -> bool:
    """
    Whether region_code is a 2-letter region phonenumbers knows.

    :param region_code: Upper-case region code
    :return: True if valid, False otherwise
    """
    if not region_code or len(region_code) != 2:
        return False
    if not region_code.isalpha() or not region_code.isupper():
        return False
    return region_code in phonenumbers.SUPPORTED_REGIONS


def get_default_region(
    provided_region: Optional[str] = None,
    auto_detect: bool = True,
    require_explicit: bool = False
) -> Optional[str]:
    """
    Get the default phone region code with fallback logic.

    Priority order:
    1. Provided region code (if valid)
    2. Auto-detected region from locale (if auto_detect is True)
    3. None if require_explicit is True
    4. DEFAULT_REGION otherwise

    :param provided_region: Explicitly provided region code
    :param auto_detect: Whether to attempt auto-detection from locale
    :param require_explicit: If True, return None instead of defaulting to US
    :return: Valid region code or None
    """
    if provided_region:
        provided_region = provided_region.strip().upper()
        if validate_region_code(provided_region):
            logger.info(f"Using provided region code: {provided_region}")
            return provided_region
        logger.warning(
            f"Invalid region code '{provided_region}', falling back to detection"
        )

    if auto_detect:
        detected = detect_region_from_locale()
        if detected and validate_region_code(detected):
            logger.info(f"Using auto-detected region code: {detected}")
            return detected

    if require_explicit:
        logger.warning(
            "Could not determine phone region automatically. "
            "Explicit region code required."
        )
        return None

    logger.warning(
        f"Could not determine phone region automatically, "
        f"falling back to {DEFAULT_REGION}. "
        f"Consider specifying --phone-region explicitly."
    )
    return DEFAULT_REGION


def _parse_and_format_phone(phone_number: str, region: Optional[str]) -> Optional[str]:
    try:
        parsed = phonenumbers.parse(phone_number, region)
    except NumberParseException:
        return None
    if not phonenumbers.is_valid_number(parsed):
        return None
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def normalize_phone_to_e164(
    phone_number: str,
    default_region: str = DEFAULT_REGION
) -> Optional[str]:
    """
    Normalize a phone number to E.164 (e.g., +31612345678).

    National numbers are read in default_region, so "0646432757" with region
    "NL" becomes "+31646432757".

    :param phone_number: Phone number as written
    :param default_region: Region for numbers without a '+' prefix
    :return: E.164 number, or None if the number is not valid
    """
    if not phone_number or not phone_number.strip():
        return None

    phone_number = phone_number.strip()

    normalized = _parse_and_format_phone(phone_number, default_region)
    if normalized is None and phone_number.startswith('+'):
        normalized = _parse_and_format_phone(phone_number, None)

    if normalized is None:
        logger.debug(f"Could not normalize phone number: {phone_number}")
    return normalized


def _dialable_text(prop: Property) -> Optional[str]:
    """Number text of a TEL property, None if it is not a plain number."""
    if prop.value.kind is ValueKind.TEXT:
        return prop.value.data
    if prop.value.kind is ValueKind.URI:
        uri = prop.value.data
        # tel URIs with parameters (;ext=, ;phone-context=) are left alone
        if uri[:len(TEL_SCHEME)].lower() == TEL_SCHEME and ";" not in uri:
            return uri[len(TEL_SCHEME):]
    return None


def normalize_tel_property(
    prop: Property,
    default_region: str = DEFAULT_REGION
) -> Tuple[Property, bool]:
    """
    Rewrite one TEL property as a VALUE=uri tel URI in E.164 form.

    :param prop: TEL property
    :param default_region: Region for numbers without a '+' prefix
    :return: Tuple of (resulting property, success flag); the property is
             returned unchanged when the number cannot be normalized
    """
    number = _dialable_text(prop)
    if number is None:
        return prop, False

    normalized = normalize_phone_to_e164(number, default_region)
    if normalized is None:
        return prop, False

    params = tuple(p for p in prop.parameters if p.key != "VALUE")
    return new_property(
        prop.name,
        Value.uri(TEL_SCHEME + normalized),
        params,
        prop.group
    ), True


def normalize_document_phones(
    document: Document,
    default_region: str = DEFAULT_REGION
) -> Tuple[Document, int, int]:
    """
    Normalize every TEL property of a Document.

    Properties keep their position; numbers that cannot be normalized keep
    their original form.

    :param document: Document to normalize
    :param default_region: Region for numbers without a '+' prefix
    :return: Tuple of (normalized Document, normalized count, failed count)
    """
    if document.first(PropertyType.TEL) is None:
        return document, 0, 0

    properties: List[Property] = []
    normalized_count = 0
    failed_count = 0

    for prop in document:
        if prop.ptype is not PropertyType.TEL:
            properties.append(prop)
            continue

        new_prop, success = normalize_tel_property(prop, default_region)
        properties.append(new_prop)
        if success:
            normalized_count += 1
        else:
            failed_count += 1
            logger.debug(
                f"Could not normalize phone number '{prop.value.as_text()}' "
                f"for '{', '.join(document.formatted_names)}', keeping original format"
            )

    return document.replace_properties(properties), normalized_count, failed_count


def normalize_documents_phones(
    documents: List[Document],
    default_region: str = DEFAULT_REGION
) -> Tuple[List[Document], Dict[str, int]]:
    """
    Normalize phone numbers for a list of Documents.

    :param documents: Documents to normalize
    :param default_region: Region for numbers without a '+' prefix
    :return: Tuple of (normalized Documents, statistics dictionary)
    """
    stats = {
        'total_vcards': len(documents),
        'vcards_with_phones': 0,
        'total_phones': 0,
        'normalized_phones': 0,
        'failed_normalizations': 0
    }

    normalized_documents = []
    for document in documents:
        phone_count = len(document.get(PropertyType.TEL))
        if phone_count:
            stats['vcards_with_phones'] += 1
            stats['total_phones'] += phone_count

        normalized, normalized_count, failed_count = normalize_document_phones(
            document, default_region
        )
        stats['normalized_phones'] += normalized_count
        stats['failed_normalizations'] += failed_count
        normalized_documents.append(normalized)

    logger.info(
        f"Phone normalization statistics: "
        f"{stats['normalized_phones']}/{stats['total_phones']} phones normalized, "
        f"{stats['failed_normalizations']} failed"
    )

    return normalized_documents, stats
