"""Export and import workflows between a ConfigStore and a directory.

Export writes selected configurations as file pairs, asking an overwrite
policy what to do when a target already exists. Import scans a directory,
classifies what it finds against a freshly loaded snapshot and hands the
result back; nothing is inserted until the caller commits a selection.
"""
import logging
from concurrent.futures import Future
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable

from ..utils.audit_log import log_change
from ..utils.logging_config import timed_section
from . import codec
from .errors import EncodeError
from .models import Configuration, OverwriteDecision
from .reconcile import classify
from .store import ConfigStore

logger = logging.getLogger(__name__)

# Called with (name, id) when an export target already exists
OverwritePolicy = Callable[[str, int], OverwriteDecision]


def always_overwrite(name: str, config_id: int) -> OverwriteDecision:
    return OverwriteDecision.OVERWRITE


def always_skip(name: str, config_id: int) -> OverwriteDecision:
    return OverwriteDecision.SKIP


@dataclass
class ExportReport:
    """Outcome of an export run."""
    directory: Path
    exported: list[Configuration] = field(default_factory=list)
    skipped: list[Configuration] = field(default_factory=list)
    failed: list[tuple[Configuration, EncodeError]] = field(default_factory=list)

    def summary(self) -> str:
        """Human-readable summary."""
        return (
            f"Exported {len(self.exported)}, skipped {len(self.skipped)}, "
            f"failed {len(self.failed)} to {self.directory}"
        )


@dataclass
class ImportScan:
    """Candidates found in an import directory, split by whether they are stored."""
    directory: Path
    new: list[Configuration] = field(default_factory=list)
    existing: list[Configuration] = field(default_factory=list)

    @property
    def new_ids(self) -> set[int]:
        """Default selection: every new configuration."""
        return {c.id for c in self.new}

    def select(self, ids: Iterable[int]) -> list[Configuration]:
        """New configurations whose id is in ids, in scan order."""
        wanted = set(ids)
        return [c for c in self.new if c.id in wanted]


class ConfigSync:
    """
    Runs export/import workflows on the store's worker.

    Usage:
        sync = ConfigSync(store)
        report = sync.export(selected, export_dir, always_skip).result()

        scan = sync.scan_directory(import_dir).result()
        sync.commit_import(scan.select(scan.new_ids)).result()
    """

    def __init__(self, store: ConfigStore):
        self.store = store

    # === Export ===

    def export(
        self,
        selected: Iterable[Configuration],
        directory: Path,
        overwrite_policy: OverwritePolicy,
    ) -> Future:
        """
        Export configurations to a directory as file pairs.

        Args:
            selected: Configurations to export
            directory: Target directory (must exist)
            overwrite_policy: Decides per conflicting configuration

        Returns:
            Future resolving to an ExportReport
        """
        return self.store.submit(self._export, list(selected), Path(directory), overwrite_policy)

    def _export(
        self,
        selected: list[Configuration],
        directory: Path,
        overwrite_policy: OverwritePolicy,
    ) -> ExportReport:
        report = ExportReport(directory=directory)

        with timed_section("export", target=str(directory), count=len(selected)):
            for config in selected:
                pair = codec.file_pair_for(config, directory)

                if pair.exists():
                    decision = overwrite_policy(config.name, config.id)
                    if decision is OverwriteDecision.SKIP:
                        logger.info(f"Skipping configuration '{config.name}' ({config.id})")
                        report.skipped.append(config)
                        continue

                try:
                    codec.encode(config, directory)
                except EncodeError as e:
                    logger.error(f"Error exporting '{config.name}': {e}")
                    report.failed.append((config, e))
                    log_change("export", config, self.store.db_path, success=False,
                               error=str(e), target=directory)
                    continue

                logger.info(f"Configuration '{config.name}' exported")
                report.exported.append(config)
                log_change("export", config, self.store.db_path, success=True, target=directory)

        logger.info(report.summary())
        return report

    # === Import ===

    def scan_directory(self, directory: Path) -> Future:
        """
        Scan a directory and classify its file pairs against the store.

        The snapshot is reloaded first so classification never uses stale
        data. Nothing is inserted.

        Returns:
            Future resolving to an ImportScan
        """
        return self.store.submit(self._scan, Path(directory))

    def _scan(self, directory: Path) -> ImportScan:
        snapshot = self.store.list_all().result()

        with timed_section("scan", target=str(directory)):
            candidates = codec.scan_directory(directory)

        classification = classify(candidates, snapshot)
        logger.info(
            f"Import scan of {directory}: {len(classification.new)} new, "
            f"{len(classification.existing)} existing"
        )
        return ImportScan(
            directory=directory,
            new=classification.new,
            existing=classification.existing,
        )

    def commit_import(self, selected: Iterable[Configuration]) -> Future:
        """Insert the configurations the caller chose from a scan."""
        return self.store.insert(selected)
