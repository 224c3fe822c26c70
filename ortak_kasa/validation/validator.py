"""
Input Validation Boundary

DESIGN DECISION: Values arrive as raw text from form fields and pasted
imports. They are checked here, at one boundary, in two kinds:

NUMERIC INPUT:
- Group values and applied inputs must parse as finite numbers
- Empty text, NaN and infinities are rejected

IMPORTED DOCUMENTS:
- Text must be a JSON object
- `groups` and `history` must be present as lists
- Items must fit the document schema

IMPORTANT: Validation NEVER silently fixes issues. An unparsable number
is reported, not turned into zero.
"""

import json
import math
from typing import Any, Union

from pydantic import ValidationError

from ortak_kasa.models.ledger import Document, NeedTag


class LedgerError(Exception):
    """Base exception for rejected ledger operations."""
    pass


class InvalidInputError(LedgerError):
    """A form field holds a value the ledger cannot use."""

    def __init__(self, field: str, raw_value: Any, message: str):
        self.field = field
        self.raw_value = raw_value
        super().__init__(message)


class InvalidNumberError(InvalidInputError):
    """A value or input does not parse as a finite number."""

    def __init__(self, field: str, raw_value: Any):
        super().__init__(field, raw_value, f"{field} is not a valid number: {raw_value!r}")


class InvalidTagError(InvalidInputError):
    """A need tag is not one of gerekli, fuzuli or zorunlu."""

    def __init__(self, field: str, raw_value: Any):
        super().__init__(field, raw_value, f"{field} is not a valid need tag: {raw_value!r}")


class ImportFormatError(LedgerError):
    """Import text is not a structured document."""
    pass


class MissingFieldsError(LedgerError):
    """Import text lacks the required `groups`/`history` lists."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing fields: {', '.join(missing)}")


REQUIRED_LIST_FIELDS = ("groups", "history")


def parse_number(raw: Union[str, int, float], field: str = "value") -> float:
    """
    Parse a user-supplied number.

    Accepts ints, floats and numeric strings (surrounding whitespace is
    ignored). Raises InvalidNumberError for anything else.
    """
    if isinstance(raw, bool):
        raise InvalidNumberError(field, raw)

    if isinstance(raw, (int, float)):
        number = float(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        # float() accepts digit separators, JSON numbers do not
        if not text or "_" in text:
            raise InvalidNumberError(field, raw)
        try:
            number = float(text)
        except ValueError:
            raise InvalidNumberError(field, raw) from None
    else:
        raise InvalidNumberError(field, raw)

    if not math.isfinite(number):
        raise InvalidNumberError(field, raw)
    return number


def parse_need(raw: Union[NeedTag, str], field: str = "need") -> NeedTag:
    """Resolve a need tag from its value (`gerekli`, `fuzuli`, `zorunlu`)."""
    try:
        return NeedTag(raw)
    except ValueError:
        raise InvalidTagError(field, raw) from None


def validate_import_payload(raw_text: str) -> dict[str, Any]:
    """
    Stage 1: structural checks on pasted import text.

    Returns the decoded JSON object.
    """
    try:
        payload = json.loads(raw_text)
    except (TypeError, ValueError) as e:
        raise ImportFormatError(f"Not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise ImportFormatError("Expected a JSON object at the top level")

    missing = [
        name for name in REQUIRED_LIST_FIELDS
        if not isinstance(payload.get(name), list)
    ]
    if missing:
        raise MissingFieldsError(missing)

    return payload


def validate_document(payload: dict[str, Any]) -> Document:
    """
    Stage 2: schema checks on a decoded payload.

    Wraps pydantic errors so callers only deal with LedgerError.
    """
    try:
        return Document.model_validate(payload)
    except ValidationError as e:
        issues = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()[:5]
        )
        raise ImportFormatError(f"Document does not match the expected shape: {issues}") from e


def parse_document(raw_text: str) -> Document:
    """Run both stages on pasted text."""
    return validate_document(validate_import_payload(raw_text))
