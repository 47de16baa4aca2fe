from .base import ObjectStore, ProgressCallback, StoredObject
from .local import LocalObjectStore

__all__ = [
    "LocalObjectStore",
    "ObjectStore",
    "ProgressCallback",
    "StoredObject",
]
