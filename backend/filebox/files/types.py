"""
File manager type definitions and Pydantic models.
"""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class UploadState(str, Enum):
    QUEUED = "queued"
    TRANSFERRING = "transferring"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class CollisionPolicy(str, Enum):
    """How to handle files in one batch that share the same original name."""

    RESOLVE_ALL = "resolve_all"
    KEEP_FIRST_ONLY = "keep_first_only"
    ABORT = "abort"


class SortField(str, Enum):
    NAME = "name"
    TYPE = "type"
    SIZE = "size"
    UPLOAD_DATE = "upload_date"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class FileSort(BaseModel):
    field: SortField = SortField.UPLOAD_DATE
    direction: SortDirection = SortDirection.DESC


# Confirmed files
class FileRecord(BaseModel):
    """A file confirmed to be stored in the object store."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    size: int = 0
    mime_type: str = ""
    uploaded_at: datetime = Field(default_factory=datetime.now)
    url: str
    storage_path: str | None = None  # Required for store deletion


class FilePage(BaseModel):
    items: list[FileRecord]
    total_count: int
    page: int
    page_size: int


# Pending uploads
class PendingItem(BaseModel):
    """A locally selected file that has not been confirmed stored yet."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    source_name: str
    resolved_name: str | None = None
    size: int = 0
    mime_type: str = ""
    state: UploadState = UploadState.QUEUED
    progress: int | None = None  # None until dispatched
    error: str | None = None

    payload: bytes | None = Field(default=None, exclude=True, repr=False)

    @property
    def in_flight(self) -> bool:
        return self.state == UploadState.TRANSFERRING


class DuplicateGroup(BaseModel):
    """Items of one batch that share the same original name."""

    source_name: str
    item_ids: list[str]


class CollisionReport(BaseModel):
    """Same-batch name collisions, computed before any network activity."""

    duplicates: list[DuplicateGroup] = Field(default_factory=list)

    @property
    def has_collisions(self) -> bool:
        return bool(self.duplicates)


class BatchResult(BaseModel):
    """Outcome of one batch preparation."""

    policy: CollisionPolicy | None = None  # None when no policy was needed
    resolved: list[PendingItem] = Field(default_factory=list)
    dropped: list[str] = Field(default_factory=list)  # ids removed by keep_first_only
    rejected: list[str] = Field(default_factory=list)  # ids flagged "file data missing"

    @property
    def aborted(self) -> bool:
        return self.policy == CollisionPolicy.ABORT


# Storage usage
class StorageUsage(BaseModel):
    used: int
    limit: int
    percent: float
    used_display: str
    limit_display: str
