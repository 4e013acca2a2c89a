#!/usr/bin/env python3
"""
Command line entry point for vcard4.

Reads a .vcf file, optionally normalizes phone numbers, writes the canonical
vCard 4.0 serialization, validates what was written and optionally exports a
CSV summary.

Dependencies:
    - argparse: Standard library for command-line argument parsing
    - sys: Standard library for exit codes
    - vcard4.vcard_parser: Local module for vCard reading and writing
    - vcard4.phone_normalizer: Local module for TEL normalization
    - vcard4.csv_exporter: Local module for CSV export
    - vcard4.logger: Local module for logging configuration
"""
# pylint: disable=logging-fstring-interpolation, broad-except

import argparse
import sys
from logging import Logger
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from vcard4.csv_exporter import export_documents_to_csv
from vcard4.document_builder import Document
from vcard4.errors import ParseError
from vcard4.logger import log_parse_error, log_statistics, setup_logger
from vcard4.phone_normalizer import get_default_region, normalize_documents_phones
from vcard4.vcard_parser import parse_vcard_file, validate_vcard_file, write_vcard_file

REPORT_WIDTH = 72


def _create_argument_parser() -> argparse.ArgumentParser:
    """
    Build the command line parser.

    :return: Parser for the vcard4 command
    """
    parser = argparse.ArgumentParser(
        prog='vcard4',
        description='Read a vCard 4.0 file and write it back in canonical form.'
    )

    files = parser.add_argument_group('files')
    files.add_argument('-i', '--input', type=Path, required=True,
                       help='vCard file to read (.vcf)')
    files.add_argument('-o', '--output', type=Path, required=True,
                       help='vCard file to write (.vcf)')
    files.add_argument('--csv', '--export-csv', type=Path, dest='csv_output',
                       metavar='PATH', help='Also write a CSV summary to PATH')

    phones = parser.add_argument_group('phone numbers')
    phones.add_argument('--normalize-phones', action='store_true',
                        help='Rewrite TEL values as E.164 tel: URIs')
    phones.add_argument('--no-normalize-phones', action='store_true',
                        help='Leave TEL values as written (overrides --normalize-phones)')
    phones.add_argument('--phone-region', metavar='CODE',
                        help='Region for numbers without a + prefix, e.g. US or NL '
                             '(default: taken from the system locale)')

    run = parser.add_argument_group('run')
    run.add_argument('--no-validate', action='store_true',
                     help='Do not read the output back after writing it')
    run.add_argument('--log-level', default='INFO',
                     choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                     help='Logging level (default: INFO)')
    run.add_argument('--log-file', type=Path,
                     help='Log file (default: logs/vcard4_<timestamp>.log)')

    return parser


def _determine_phone_settings(
    args: argparse.Namespace,
    logger: Logger
) -> Tuple[bool, Optional[str]]:
    """
    Work out whether to normalize phones, and in which region.

    :param args: Parsed command-line arguments
    :param logger: Logger instance
    :return: Tuple of (normalize_phones, phone_region)
    :raises SystemExit: If normalization is requested and no region can be found
    """
    if not args.normalize_phones or args.no_normalize_phones:
        return False, None

    phone_region = get_default_region(
        provided_region=args.phone_region,
        require_explicit=True
    )
    if not phone_region:
        logger.error(
            "No phone region given and none found in the system locale; "
            "pass --phone-region CODE"
        )
        sys.exit(1)

    return True, phone_region


def _handle_phone_normalization(
    documents: List[Document],
    normalize_phones: bool,
    phone_region: Optional[str],
    stats: Dict[str, Any],
    logger: Logger
) -> List[Document]:
    if not normalize_phones:
        return documents

    logger.info(f"Normalizing TEL values to E.164 (region {phone_region})")
    normalized, phone_stats = normalize_documents_phones(documents, default_region=phone_region)
    stats['total_phones'] = phone_stats['total_phones']
    stats['normalized_phones'] = phone_stats['normalized_phones']
    return normalized


def _display_validation_report(report: Dict[str, Any], output_path: Path) -> None:
    """
    Print the result of reading the output file back.

    :param report: Report returned by validate_vcard_file
    :param output_path: Path of the written file
    """
    print()
    print("=" * REPORT_WIDTH)
    print(f"Read-back check of {output_path}")
    print("=" * REPORT_WIDTH)
    print(f"Re-parsed:         {'yes' if report['parse_successful'] else 'no'}")
    print(f"vCards written:    {report['expected_count']}")
    print(f"vCards read back:  {report['output_count']}")
    if report['vobject_count'] is not None:
        print(f"vCards via vobject: {report['vobject_count']}")

    for label, messages in (('Error', report['errors']), ('Warning', report['warnings'])):
        for message in messages:
            print(f"  {label}: {message}")

    print("-" * REPORT_WIDTH)
    print("PASSED" if report['valid'] else "FAILED")


def _handle_validation(
    output_path: Path,
    documents: List[Document],
    skip_validation: bool,
    logger: Logger
) -> None:
    """
    Read the written file back and compare it with what was written.

    :raises SystemExit: If the check fails
    """
    if skip_validation:
        logger.info("Skipping read-back check (--no-validate)")
        return

    is_valid, report = validate_vcard_file(output_path, len(documents))
    _display_validation_report(report, output_path)

    if not is_valid:
        logger.error(f"Read-back check of {output_path} failed")
        sys.exit(1)


def _handle_csv_export(csv_output: Optional[Path], documents: List[Document], logger: Logger) -> None:
    if csv_output is None:
        return

    logger.info(f"Exporting {len(documents)} vCards to CSV: {csv_output}")
    export_documents_to_csv(documents, csv_output)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Run the vcard4 command."""
    args = _create_argument_parser().parse_args(argv)

    logger = setup_logger(log_level=args.log_level, log_file=args.log_file)

    normalize_phones, phone_region = _determine_phone_settings(args, logger)

    try:
        logger.info(f"Reading vCards from {args.input}")
        documents = parse_vcard_file(args.input)

        stats: Dict[str, Any] = {
            'total_vcards': len(documents),
            'total_properties': sum(len(document) for document in documents),
        }

        documents = _handle_phone_normalization(
            documents, normalize_phones, phone_region, stats, logger
        )

        write_vcard_file(documents, args.output)
        stats['written_vcards'] = len(documents)

        _handle_validation(args.output, documents, args.no_validate, logger)

        log_statistics(logger, stats)

        _handle_csv_export(args.csv_output, documents, logger)

        logger.info("Done")

    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        sys.exit(1)
    except ParseError as e:
        log_parse_error(logger, e)
        sys.exit(1)
    except ValueError as e:
        logger.error(f"Invalid input: {e}")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
