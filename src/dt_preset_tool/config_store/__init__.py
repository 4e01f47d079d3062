"""Configuration Store package for Draw Things generation presets.

This package provides:
- ConfigStore: SQLite gateway owning the connection and the snapshot
- ConfigSync: Export/import workflows between the store and a directory
- Configuration: A stored preset (unsigned 64-bit id, name, payload)
- codec: The .bin/.json file pair format
- classify: Reconciliation of imported candidates against the snapshot

Export directory layout:
    <directory>/
    ├── DTC_<name[:12]>_<id>.bin    # raw payload
    └── DTC_<name[:12]>_<id>.json   # {"id": "<id>", "name": "<name>"}
"""

from .models import (
    Configuration,
    OverwriteDecision,
    BatchResult,
    to_signed,
    to_unsigned,
)
from .errors import (
    StoreError,
    OpenError,
    QueryError,
    WriteError,
    DecodeError,
    MissingMetadata,
    MalformedMetadata,
    EncodeError,
)
from .codec import FilePair, FileMetadata, encode, decode, scan_directory
from .reconcile import Classification, classify
from .store import ConfigStore, init_store
from .sync import (
    ConfigSync,
    ExportReport,
    ImportScan,
    OverwritePolicy,
    always_overwrite,
    always_skip,
)

__all__ = [
    "Configuration",
    "OverwriteDecision",
    "BatchResult",
    "to_signed",
    "to_unsigned",
    "StoreError",
    "OpenError",
    "QueryError",
    "WriteError",
    "DecodeError",
    "MissingMetadata",
    "MalformedMetadata",
    "EncodeError",
    "FilePair",
    "FileMetadata",
    "encode",
    "decode",
    "scan_directory",
    "Classification",
    "classify",
    "ConfigStore",
    "init_store",
    "ConfigSync",
    "ExportReport",
    "ImportScan",
    "OverwritePolicy",
    "always_overwrite",
    "always_skip",
]
