"""Reconciliation of imported candidates against the stored snapshot."""
from typing import Iterable, NamedTuple

from .models import Configuration, ids_of


class Classification(NamedTuple):
    """Candidates partitioned by whether their id is already stored."""
    new: list[Configuration]
    existing: list[Configuration]


def classify(
    candidates: Iterable[Configuration],
    snapshot: Iterable[Configuration],
) -> Classification:
    """
    Partition candidates into new and existing by id.

    A candidate is existing if any configuration in the snapshot has the
    same id. Candidate order is preserved within each partition.
    """
    stored_ids = ids_of(snapshot)
    new: list[Configuration] = []
    existing: list[Configuration] = []

    for candidate in candidates:
        if candidate.id in stored_ids:
            existing.append(candidate)
        else:
            new.append(candidate)

    return Classification(new=new, existing=existing)
