"""Data model for stored generation configurations."""
import struct
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

U64_MAX = 2**64 - 1


def to_signed(value: int) -> int:
    """Reinterpret an unsigned 64-bit id as the signed value SQLite stores."""
    return struct.unpack("<q", struct.pack("<Q", value))[0]


def to_unsigned(value: int) -> int:
    """Reinterpret a signed 64-bit column value as the unsigned id."""
    return struct.unpack("<Q", struct.pack("<q", value))[0]


@dataclass(frozen=True)
class Configuration:
    """A named generation configuration (preset) with an opaque payload."""
    id: int
    name: str
    payload: bytes = b""

    def __post_init__(self):
        if not 0 <= self.id <= U64_MAX:
            raise ValueError(f"Configuration id out of unsigned 64-bit range: {self.id}")

    def __repr__(self) -> str:
        return f"Configuration(id={self.id}, name={self.name!r}, payload={len(self.payload)} bytes)"


class OverwriteDecision(Enum):
    """Answer from an overwrite policy when export targets already exist."""
    OVERWRITE = "overwrite"
    SKIP = "skip"


@dataclass
class BatchResult:
    """Outcome of an insert or delete batch."""
    operation: str
    succeeded: list[Configuration] = field(default_factory=list)
    failed: list[tuple[Configuration, Exception]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [f"{self.operation}: {len(self.succeeded)} ok, {len(self.failed)} failed"]
        for config, error in self.failed[:5]:
            lines.append(f"  - {config.name} ({config.id}): {error}")
        if len(self.failed) > 5:
            lines.append(f"  ... and {len(self.failed) - 5} more")
        return "\n".join(lines)


def ids_of(configs: Iterable[Configuration]) -> set[int]:
    return {c.id for c in configs}
