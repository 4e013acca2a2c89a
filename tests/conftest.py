"""Shared fixtures for vcard4 tests."""

import logging

import pytest


@pytest.fixture(autouse=True)
def reset_vcard4_logger():
    """Drop handlers installed by setup_logger so they don't leak between tests."""
    yield
    logger = logging.getLogger("vcard4")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def contacts_file(tmp_path):
    """A two-card .vcf file with free-text phone numbers."""
    path = tmp_path / "contacts.vcf"
    path.write_text(
        "BEGIN:VCARD\r\n"
        "VERSION:4.0\r\n"
        "FN:Jane Doe\r\n"
        "N:Doe;Jane;;Dr.;\r\n"
        "TEL;TYPE=cell:(201) 555-0123\r\n"
        "EMAIL;TYPE=work:jane@example.com\r\n"
        "ORG:Example Corp;Research\r\n"
        "BDAY:19850412\r\n"
        "END:VCARD\r\n"
        "BEGIN:VCARD\r\n"
        "VERSION:4.0\r\n"
        "FN:John Roe\r\n"
        "TEL:not a number\r\n"
        "END:VCARD\r\n",
        encoding="utf-8",
        newline="",
    )
    return path
