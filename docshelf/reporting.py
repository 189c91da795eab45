import csv
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from tqdm import tqdm

from .database.ops import DBOperations
from .exceptions import InvalidArgumentError
from .models import FileRecord
from .storage.blobs import BlobStore

@dataclass
class ConsistencyReport:
    orphan_blobs: List[Path] = field(default_factory=list)          # on disk, no row
    dangling_records: List[FileRecord] = field(default_factory=list)  # row, no blob
    checked_records: int = 0
    checked_blobs: int = 0

    @property
    def is_clean(self) -> bool:
        return not self.orphan_blobs and not self.dangling_records

class ConsistencyChecker:
    """
    Compares the catalog with the content directory. Finds the two
    inconsistencies the store can leave behind after a crash or a failed
    upload commit, and optionally repairs them.
    """
    def __init__(self, db_ops: DBOperations, blobs: BlobStore, show_progress: bool = False):
        self.db = db_ops
        self.blobs = blobs
        self.show_progress = show_progress

    def scan(self) -> ConsistencyReport:
        report = ConsistencyReport()

        # --- 1. Bulk Load Catalog ---
        records = self.db.list_all()
        report.checked_records = len(records)
        known_paths = {}
        for rec in records:
            try:
                path = self.blobs.path_of(rec.blob_path)
            except InvalidArgumentError:
                # Points outside the content directory; unreachable either way
                report.dangling_records.append(rec)
                continue
            known_paths[path] = rec
            if not self.blobs.exists(path):
                report.dangling_records.append(rec)

        # --- 2. Walk Content Directory ---
        for blob in self.blobs.iter_blobs():
            report.checked_blobs += 1
            if blob.resolve() not in known_paths:
                report.orphan_blobs.append(blob)

        logging.info(
            f"Consistency scan: {report.checked_records} records, {report.checked_blobs} blobs, "
            f"{len(report.orphan_blobs)} orphan blobs, {len(report.dangling_records)} dangling records"
        )
        return report

    def write_csv(self, report: ConsistencyReport, output_csv: Path):
        headers = ["Path", "Status", "File ID", "Notes"]
        with open(output_csv, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(headers)
            for blob in report.orphan_blobs:
                writer.writerow([str(blob), "Orphan Blob", "", "No catalog record"])
            for rec in report.dangling_records:
                writer.writerow([rec.blob_path, "Dangling Record", rec.id, f"Blob missing for {rec.original_name}"])
        logging.info(f"Consistency report written to {output_csv}")

    def reconcile(self, report: ConsistencyReport, dry_run: bool = False) -> int:
        """
        Removes orphan blobs and dangling rows. Returns the number of fixes
        applied (or that would be applied, in dry-run mode).
        """
        fixes = 0
        for blob in tqdm(report.orphan_blobs, desc="Removing orphans", disable=not self.show_progress):
            if dry_run:
                logging.info(f"[DRY RUN] Remove orphan blob {blob}")
            else:
                self.blobs.remove(blob)
                logging.info(f"Removed orphan blob {blob}")
            fixes += 1

        for rec in report.dangling_records:
            if dry_run:
                logging.info(f"[DRY RUN] Drop dangling record {rec.id} ({rec.original_name!r})")
            else:
                self.db.delete_file(rec.id)
                logging.info(f"Dropped dangling record {rec.id} ({rec.original_name!r})")
            fixes += 1

        return fixes
