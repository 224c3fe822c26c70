"""Validation package."""

from ortak_kasa.validation.validator import (
    ImportFormatError,
    InvalidInputError,
    InvalidNumberError,
    InvalidTagError,
    LedgerError,
    MissingFieldsError,
    parse_document,
    parse_need,
    parse_number,
    validate_document,
    validate_import_payload,
)

__all__ = [
    "ImportFormatError",
    "InvalidInputError",
    "InvalidNumberError",
    "InvalidTagError",
    "LedgerError",
    "MissingFieldsError",
    "parse_document",
    "parse_need",
    "parse_number",
    "validate_document",
    "validate_import_payload",
]
