"""Documents flowing through the backfill pipeline."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class FieldMapping(BaseModel):
    """Names of the document fields the backfill reads and writes.

    Defaults reproduce the howtos/users migration: copy a user's `country`
    onto the howtos they created as `creatorCountry`.
    """

    model_config = ConfigDict(frozen=True)

    owner_key_field: str = "_createdBy"
    target_field: str = "creatorCountry"
    reference_key_field: str = "userName"
    reference_value_field: str = "country"


class StoredDocument(BaseModel):
    """A raw document as returned by a store: storage id plus field data.

    `id` keeps the native identifier type (e.g. ObjectId) so updates can be
    addressed back to the same document.
    """

    id: Any
    data: Dict[str, Any] = Field(default_factory=dict)


class Record(BaseModel):
    """Source-collection document that may be missing the target attribute."""

    model_config = ConfigDict(frozen=True)

    id: Any
    owner_key: Optional[Any] = None
    target_value: Optional[Any] = None
    data: Dict[str, Any] = Field(default_factory=dict)


class ReferenceEntity(BaseModel):
    """Reference-collection document.

    `storage_id` is the store-assigned identifier; `name` is the natural key
    that source records point at. They are kept apart on purpose: only `name`
    participates in the join. Keys keep their stored type (str, int, ObjectId)
    so lookups match the reference collection exactly.
    """

    model_config = ConfigDict(frozen=True)

    storage_id: Any
    name: Optional[Any] = None
    resolved_value: Optional[str] = None


class PlannedUpdate(BaseModel):
    model_config = ConfigDict(frozen=True)

    record_id: Any
    owner_key: Any
    value: str


class PipelineState(str, Enum):
    INIT = "init"
    SCANNED = "scanned"
    KEYS_COLLECTED = "keys_collected"
    RESOLVED = "resolved"
    UPDATED = "updated"
    DONE = "done"
    ERROR = "error"


class BackfillReport(BaseModel):
    scanned: int = 0
    qualifying: int = 0
    unique_keys: int = 0
    resolved_keys: int = 0
    updated: int = 0
    dry_run: bool = False
    state: PipelineState = PipelineState.INIT
