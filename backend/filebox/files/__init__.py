"""
File management core.

This package provides:
- Collision-free naming for uploads and renames
- The pending upload queue and batch preparation with collision policies
- The upload task state machine and the concurrent upload coordinator
- The registry of confirmed files with sorted/filtered projections
"""

from .batch import BatchProcessor, PolicyPrompt, find_duplicates, keep_first, resolve_batch
from .coordinator import UploadCoordinator
from .naming import resolve_name, split_name, validate_name
from .pending import MISSING_PAYLOAD, PendingQueue
from .registry import FileRegistry
from .task import (
    MISSING_INPUT,
    URL_UNAVAILABLE,
    TaskFailed,
    TaskProgress,
    TaskSucceeded,
    UploadTask,
)
from .types import (
    BatchResult,
    CollisionPolicy,
    CollisionReport,
    DuplicateGroup,
    FilePage,
    FileRecord,
    FileSort,
    PendingItem,
    SortDirection,
    SortField,
    StorageUsage,
    UploadState,
)
from .utils import format_bytes

__all__ = [
    # Types
    "BatchResult",
    "CollisionPolicy",
    "CollisionReport",
    "DuplicateGroup",
    "FilePage",
    "FileRecord",
    "FileSort",
    "PendingItem",
    "SortDirection",
    "SortField",
    "StorageUsage",
    "UploadState",
    # Naming
    "resolve_name",
    "split_name",
    "validate_name",
    # Batch preparation
    "BatchProcessor",
    "PolicyPrompt",
    "find_duplicates",
    "keep_first",
    "resolve_batch",
    # Uploads
    "MISSING_INPUT",
    "MISSING_PAYLOAD",
    "URL_UNAVAILABLE",
    "PendingQueue",
    "TaskFailed",
    "TaskProgress",
    "TaskSucceeded",
    "UploadCoordinator",
    "UploadTask",
    # Registry
    "FileRegistry",
    "format_bytes",
]
