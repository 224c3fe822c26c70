"""
Core Data Models for Ortak Kasa

These models define the schema of the single persisted document.
They are designed to:
1. Read blobs written by earlier versions of the app (missing keys default)
2. Serialize to the same camelCase JSON shape the blob has always used
3. Stay immutable, so every mutation produces a new Document

DESIGN DECISION: All models are frozen. The ledger engine never edits a
model in place; it builds new ones with model_copy(update=...).
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Identifier for groups, pending entries and history records."""
    return str(uuid4())


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class NeedTag(str, Enum):
    """
    Classification of a committed entry.

    Records without a tag (written before tags existed) count as GEREKLI.
    """
    GEREKLI = "gerekli"  # necessary
    FUZULI = "fuzuli"    # wasteful
    ZORUNLU = "zorunlu"  # mandatory


# Shared config: camelCase on the wire, snake_case in Python
_DOCUMENT_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
    allow_inf_nan=False,
    extra="ignore",
)


# =============================================================================
# GROUPS
# =============================================================================

class PendingEntry(BaseModel):
    """
    A queued input that has not been committed to history yet.

    Pending entries never count towards the pool total.
    """
    model_config = _DOCUMENT_CONFIG

    id: str = Field(default_factory=new_id)
    amount: float
    need: NeedTag = NeedTag.GEREKLI


class Group(BaseModel):
    """
    A named bucket with an assigned numeric baseline.

    `ticked` is a visual marker only and never influences totals.
    """
    model_config = _DOCUMENT_CONFIG

    id: str = Field(default_factory=new_id)
    name: str = ""
    value: float = 0.0
    note: str = ""
    color: str = "slate"
    ticked: bool = False
    pending: list[PendingEntry] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def display_name(self) -> str:
        """Name shown to the user; falls back to the value."""
        return self.name or format_number(self.value)


# =============================================================================
# HISTORY
# =============================================================================

class HistoryRecord(BaseModel):
    """
    One committed entry of the ledger.

    CRITICAL: The group's name and value are snapshotted when the record
    is created. Editing or deleting the group later does not touch it.
    Only `note` and `need` may be amended afterwards.
    """
    model_config = _DOCUMENT_CONFIG

    id: str = Field(default_factory=new_id)
    ts: datetime = Field(default_factory=utc_now)
    group_id: str
    group_name_at_the_time: str = ""
    group_value_at_the_time: float = 0.0
    input: float = 0.0
    delta: float = 0.0
    note: str = ""
    need: NeedTag = NeedTag.GEREKLI

    @field_validator('group_value_at_the_time', 'input', 'delta', mode='before')
    @classmethod
    def legacy_null_is_zero(cls, v):
        """Very old blobs stored null for numbers they could not parse."""
        return 0.0 if v is None else v

    @field_validator('note', mode='before')
    @classmethod
    def legacy_null_note(cls, v):
        return "" if v is None else v


# =============================================================================
# ROOT DOCUMENT
# =============================================================================

class Document(BaseModel):
    """
    The persisted root: every group, the history since the last reset
    and the user's settings.
    """
    model_config = _DOCUMENT_CONFIG

    groups: list[Group] = Field(default_factory=list)
    # Newest record first
    history: list[HistoryRecord] = Field(default_factory=list)
    last_reset_at: Optional[datetime] = None
    auto_backup_enabled: bool = False
    last_auto_backup_at: Optional[datetime] = None
    dark_mode: bool = False

    def to_json(self, indent: Optional[int] = None) -> str:
        """Serialize using the persisted camelCase keys."""
        return self.model_dump_json(by_alias=True, indent=indent)


# =============================================================================
# PATCHES
# =============================================================================

class GroupPatch(BaseModel):
    """
    Fields a user may edit on a group.

    `value` is kept raw (as typed into a form) so the engine can report
    an unparsable number instead of pydantic coercing it.
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    value: Optional[Union[float, str]] = None
    note: Optional[str] = None
    color: Optional[str] = None
    ticked: Optional[bool] = None


class HistoryPatch(BaseModel):
    """
    Fields that may be amended on a committed record.

    Anything else (delta, input, snapshots) is rejected.
    """
    model_config = ConfigDict(extra="forbid")

    note: Optional[str] = None
    need: Optional[NeedTag] = None


class ExportedFile(BaseModel):
    """A downloadable snapshot of the document."""

    filename: str
    content: bytes


def format_number(value: float) -> str:
    """Render a number without a trailing `.0` for whole values."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))
