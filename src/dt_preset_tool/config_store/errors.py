"""Error types raised and reported by the configuration store."""
from pathlib import Path
from typing import Optional

from .models import Configuration


class StoreError(Exception):
    """Base class for configuration store errors."""


class OpenError(StoreError):
    """The database file is missing, unreadable or not a preset store."""


class QueryError(StoreError):
    """A read query could not be prepared or stepped."""


class WriteError(StoreError):
    """Insert or delete of a single configuration failed."""

    def __init__(self, message: str, config: Optional[Configuration] = None):
        super().__init__(message)
        self.config = config


class DecodeError(StoreError):
    """A candidate file pair could not be read."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class MissingMetadata(DecodeError):
    """The .bin file has no sibling .json file."""


class MalformedMetadata(DecodeError):
    """The .json sibling does not hold a valid id and name."""


class EncodeError(StoreError):
    """A configuration could not be written as a file pair."""

    def __init__(self, message: str, config: Optional[Configuration] = None):
        super().__init__(message)
        self.config = config
