"""File pair codec for exported configurations.

Each configuration is written as two files sharing a base name:

    DTC_<first 12 chars of name>_<id>.bin    raw payload bytes
    DTC_<first 12 chars of name>_<id>.json   {"id": "<id>", "name": "<name>"}

The id is stored as a JSON string so large unsigned values never pass
through a floating point number in other JSON readers.

The name prefix is the first 12 code points, not 12 user-perceived
characters, so a name with emoji or combining marks may be cut inside
one. Import reads names from the .json file, never from file names.
"""
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ValidationError, field_validator

from .errors import DecodeError, EncodeError, MalformedMetadata, MissingMetadata
from .models import U64_MAX, Configuration

logger = logging.getLogger(__name__)

FILE_PREFIX = "DTC"
NAME_PREFIX_LEN = 12
BIN_SUFFIX = ".bin"
META_SUFFIX = ".json"


class FileMetadata(BaseModel):
    """Contents of the .json half of a file pair."""
    id: str
    name: str

    @field_validator("id", mode="before")
    @classmethod
    def _id_is_string(cls, value):
        # JSON numbers are rejected
        if not isinstance(value, str):
            raise ValueError("id must be a decimal string")
        return value

    @field_validator("id")
    @classmethod
    def _id_is_u64(cls, value: str) -> str:
        if not value.isascii() or not value.isdigit():
            raise ValueError(f"id is not an unsigned integer: {value!r}")
        if int(value) > U64_MAX:
            raise ValueError(f"id exceeds unsigned 64-bit range: {value}")
        return value

    @field_validator("name", mode="before")
    @classmethod
    def _name_is_string(cls, value):
        if not isinstance(value, str):
            raise ValueError("name must be a string")
        return value

    @classmethod
    def from_config(cls, config: Configuration) -> "FileMetadata":
        return cls(id=str(config.id), name=config.name)


@dataclass(frozen=True)
class FilePair:
    """Paths of the two files that encode one configuration."""
    bin_path: Path
    meta_path: Path

    def exists(self) -> bool:
        """True if either half is already on disk."""
        return self.bin_path.exists() or self.meta_path.exists()


def base_name(config: Configuration) -> str:
    """Base file name for a configuration, without extension."""
    short_name = config.name[:NAME_PREFIX_LEN]
    for sep in {"/", os.sep}:
        short_name = short_name.replace(sep, "_")
    return f"{FILE_PREFIX}_{short_name}_{config.id}"


def file_pair_for(config: Configuration, directory: Path) -> FilePair:
    """Target paths for a configuration in a directory (nothing is written)."""
    base = Path(directory) / base_name(config)
    return FilePair(
        bin_path=base.with_name(base.name + BIN_SUFFIX),
        meta_path=base.with_name(base.name + META_SUFFIX),
    )


def encode(config: Configuration, directory: Path) -> FilePair:
    """
    Write a configuration as a file pair, replacing existing files.

    Args:
        config: Configuration to write
        directory: Target directory (must exist)

    Returns:
        The FilePair that was written

    Raises:
        EncodeError: If either file could not be written
    """
    pair = file_pair_for(config, directory)
    metadata = FileMetadata.from_config(config)

    try:
        pair.bin_path.write_bytes(config.payload)
        pair.meta_path.write_text(
            json.dumps(metadata.model_dump(), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
    except (OSError, ValueError) as e:
        # ValueError: the name produced an unusable path (e.g. a NUL byte)
        raise EncodeError(f"Failed to write {pair.bin_path.name}: {e}", config=config) from e

    logger.debug(f"Encoded {config!r} to {pair.bin_path}")
    return pair


def decode(bin_path: Path) -> Configuration:
    """
    Read a configuration back from a .bin file and its .json sibling.

    Raises:
        MissingMetadata: No sibling .json file
        MalformedMetadata: The .json file lacks a valid id or name
        DecodeError: Either file could not be read
    """
    bin_path = Path(bin_path)
    meta_path = bin_path.with_suffix(META_SUFFIX)

    if not meta_path.exists():
        raise MissingMetadata(f"No metadata file for {bin_path.name}", path=bin_path)

    try:
        raw = meta_path.read_bytes()
        payload = bin_path.read_bytes()
    except OSError as e:
        raise DecodeError(f"Failed to read {bin_path.name}: {e}", path=bin_path) from e

    try:
        data = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedMetadata(f"Invalid JSON in {meta_path.name}: {e}", path=meta_path) from e

    if not isinstance(data, dict):
        raise MalformedMetadata(f"Metadata in {meta_path.name} is not an object", path=meta_path)

    try:
        metadata = FileMetadata.model_validate(data)
    except ValidationError as e:
        raise MalformedMetadata(
            f"Invalid metadata in {meta_path.name}: {e.error_count()} error(s)",
            path=meta_path,
        ) from e

    return Configuration(id=int(metadata.id), name=metadata.name, payload=payload)


def scan_directory(directory: Path) -> list[Configuration]:
    """
    Decode every file pair in a directory.

    Files whose extension is .bin (any case) are decoded in name order.
    Pairs that fail to decode are logged and skipped.
    """
    directory = Path(directory)
    try:
        files = sorted(p for p in directory.iterdir() if p.is_file())
    except OSError as e:
        logger.error(f"Failed to list import directory {directory}: {e}")
        return []

    bin_files = [p for p in files if p.suffix.lower() == BIN_SUFFIX]
    logger.debug(f"Found {len(bin_files)} .bin files of {len(files)} in {directory}")

    candidates = []
    for bin_path in bin_files:
        try:
            candidates.append(decode(bin_path))
        except DecodeError as e:
            logger.warning(f"Skipping {bin_path.name}: {e}")

    logger.info(f"Scanned {directory}: {len(candidates)} valid file pairs")
    return candidates
