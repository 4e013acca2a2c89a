"""
Logging configuration for the vcard4 command line tool.

Library modules only call logging.getLogger("vcard4"); handlers are attached
here, by the CLI, so importing the package never configures logging.
"""
# pylint: disable=logging-fstring-interpolation

import logging
import sys
from datetime import datetime
from logging import Handler, Logger
from pathlib import Path
from typing import Any, Dict, Optional

from vcard4.errors import ParseError

LOGGER_NAME = "vcard4"
LOGS_DIR = Path("logs")

CONSOLE_FORMAT = "%(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(module)s: %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SUMMARY_RULE = "-" * 60

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def default_log_file() -> Path:
    """Timestamped log path under logs/, e.g. logs/vcard4_20240101_120000.log"""
    return LOGS_DIR / f"vcard4_{datetime.now():%Y%m%d_%H%M%S}.log"


def _console_handler() -> Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def _file_handler(log_file: Path) -> Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    # the file gets everything the logger lets through
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
    return handler


def setup_logger(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    console_output: bool = True
) -> Logger:
    """
    Attach console and file handlers to the vcard4 logger.

    Calling it again replaces the handlers from the previous call.

    :param log_level: Level name (DEBUG, INFO, WARNING, ERROR); unknown names
                      mean INFO
    :param log_file: Log file path; defaults to default_log_file()
    :param console_output: Whether to log INFO and above to stdout
    :return: The configured logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(LOG_LEVELS.get(log_level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    if console_output:
        logger.addHandler(_console_handler())

    log_file = log_file or default_log_file()
    logger.addHandler(_file_handler(log_file))

    logger.info("Logging initialized. Log file: %s", log_file)
    return logger


def log_parse_error(logger: Logger, error: ParseError) -> None:
    """
    Log a parse failure with its location.

    :param logger: Logger instance
    :param error: Error raised by the parser
    """
    logger.error(f"{error.component.value} error: {error.message}")
    if error.line_number is not None:
        logger.error(f"  at line {error.line_number}")
    if error.property_name:
        logger.error(f"  in property {error.property_name}")
    if error.token is not None:
        logger.debug(f"  offending input: {error.token!r}")


def log_statistics(logger: Logger, stats: Dict[str, Any]) -> None:
    """
    Log the end-of-run summary.

    :param logger: Logger instance
    :param stats: Counters collected by the CLI
    """
    logger.info(SUMMARY_RULE)
    logger.info(f"vCards read:          {stats.get('total_vcards', 0)}")
    logger.info(f"Properties read:      {stats.get('total_properties', 0)}")
    if 'normalized_phones' in stats:
        logger.info(
            f"Phones normalized:    {stats['normalized_phones']}"
            f"/{stats.get('total_phones', 0)}"
        )
    logger.info(f"vCards written:       {stats.get('written_vcards', 0)}")
    logger.info(SUMMARY_RULE)
