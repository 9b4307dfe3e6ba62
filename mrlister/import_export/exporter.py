"""
Marketplace CSV Exporter
========================
Turns canonical inventory records into a marketplace's bulk-import CSV.

Steps for one export:
1. Resolve the target (unknown name → UnsupportedTargetError)
2. Resolve records: explicit ids are looked up in parallel, one lookup per id;
   no ids means every record the account owns
3. Drop records that are missing, failed to load, belong to another account or
   are structurally invalid
4. Map each record to a row and serialize (nothing left → NoRecordsError)

No marketplace network calls happen here; publishing live listings is the
publisher's job.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from ..adapters.platform_configs import get_target
from ..config import Config
from ..errors import NoRecordsError, RecordLookupError
from ..schema.inventory_record import InventoryRecord
from ..storage.inventory_store import InventoryStore
from .csv_handler import serialize

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    """Outcome of one export job"""

    target: str
    filename: str
    content: str
    records: List[InventoryRecord] = field(default_factory=list)
    skipped_ids: List[int] = field(default_factory=list)
    rejected_ids: List[int] = field(default_factory=list)

    @property
    def record_count(self) -> int:
        return len(self.records)


@dataclass
class ExportFile:
    """An export written to disk for download"""

    file_path: Path
    file_name: str


class MarketplaceExporter:
    """
    Export orchestrator.

    Args:
        store: Inventory store used to resolve records
        max_workers: Parallel lookups for explicit id lists
        export_dir: Where save_export writes files
    """

    def __init__(
        self,
        store: InventoryStore,
        max_workers: Optional[int] = None,
        export_dir: Optional[Union[str, Path]] = None,
    ):
        self.store = store
        self.max_workers = max_workers or Config.EXPORT_LOOKUP_WORKERS
        self.export_dir = Path(export_dir or Config.EXPORT_DIR)

    def export_for_target(
        self,
        target_name: str,
        record_ids: Optional[Sequence[int]] = None,
        user_id: Optional[int] = None,
        day: Optional[date] = None,
    ) -> ExportResult:
        """
        Export records in a marketplace's CSV format.

        Args:
            target_name: Registered marketplace name (case-insensitive)
            record_ids: Items to export; None exports everything user_id owns
            user_id: Requesting account; records owned by others are skipped,
                unowned records are shared
            day: Date stamped into the filename (defaults to today)

        Returns:
            ExportResult with CSV content and generated filename

        Raises:
            UnsupportedTargetError: Unknown marketplace
            NoRecordsError: Nothing exportable was resolved
        """
        target = get_target(target_name)

        skipped: List[int] = []
        if record_ids:
            records, skipped = self._lookup_records(record_ids, user_id)
        else:
            records = self.store.list_records(user_id)

        valid_records = []
        rejected: List[int] = []
        for record in records:
            is_valid, errors = record.validate()
            if is_valid:
                valid_records.append(record)
            else:
                logger.warning("Rejecting item %s for %s export: %s", record.id, target.name, "; ".join(errors))
                rejected.append(record.id)

        if not valid_records:
            raise NoRecordsError(
                f"No inventory items to export to {target.name}"
                + (f" (requested: {list(record_ids)})" if record_ids else "")
            )

        rows = [target.map_record_to_row(record) for record in valid_records]
        content = serialize(target.headers, rows)

        logger.info(
            "Exported %d item(s) to %s (%d skipped, %d rejected)",
            len(valid_records), target.name, len(skipped), len(rejected),
        )

        return ExportResult(
            target=target.name,
            filename=target.build_filename(day),
            content=content,
            records=valid_records,
            skipped_ids=skipped,
            rejected_ids=rejected,
        )

    def save_export(self, result: ExportResult, directory: Optional[Union[str, Path]] = None) -> ExportFile:
        """Write an export to the transient download directory"""
        export_dir = Path(directory) if directory is not None else self.export_dir
        export_dir.mkdir(parents=True, exist_ok=True)

        file_path = export_dir / result.filename
        file_path.write_text(result.content, encoding="utf-8", newline="")

        logger.info("Saved %s export to %s", result.target, file_path)
        return ExportFile(file_path=file_path, file_name=result.filename)

    def _lookup_records(self, record_ids: Sequence[int], user_id: Optional[int]):
        """
        Look up every id in parallel and join before serialization.

        Returns:
            (records in requested order, ids that were skipped)
        """
        unique_ids = list(dict.fromkeys(record_ids))
        found: Dict[int, InventoryRecord] = {}
        skipped: List[int] = []

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(unique_ids))) as executor:
            future_to_id = {
                executor.submit(self._lookup_one, record_id): record_id
                for record_id in unique_ids
            }

            for future in as_completed(future_to_id):
                record_id = future_to_id[future]
                try:
                    record = future.result()
                except RecordLookupError as e:
                    logger.warning("%s; skipping", e)
                    skipped.append(record_id)
                    continue

                if record is None:
                    logger.info("Inventory item %s not found; skipping", record_id)
                    skipped.append(record_id)
                elif user_id is not None and record.user_id not in (None, user_id):
                    logger.warning("Inventory item %s is not owned by user %s; skipping", record_id, user_id)
                    skipped.append(record_id)
                else:
                    found[record_id] = record

        records = [found[record_id] for record_id in unique_ids if record_id in found]
        skipped.sort(key=unique_ids.index)
        return records, skipped

    def _lookup_one(self, record_id: int) -> Optional[InventoryRecord]:
        try:
            return self.store.get_record(record_id)
        except Exception as e:
            raise RecordLookupError(record_id, e) from e
