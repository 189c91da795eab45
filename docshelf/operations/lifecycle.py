import logging
import uuid
from datetime import datetime, UTC
from typing import Optional

from tqdm import tqdm

from .. import config
from ..database.ops import DBOperations
from ..exceptions import DocShelfError, InvalidArgumentError, NotFoundError
from ..models import FileRecord, Folder
from ..storage.blobs import BlobStore

def _clean_name(name: Optional[str], what: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidArgumentError(f"{what} is required")
    return cleaned

class LifecycleOperations:
    """
    Delete, clear, rename and move, each sequenced over the blob store and
    the catalog. Blobs are removed before rows: a crash in between leaves a
    dangling row (visible, fixed by re-running the delete) instead of an
    orphaned blob.
    """
    def __init__(self, db_ops: DBOperations, blobs: BlobStore, show_progress: bool = False):
        self.db = db_ops
        self.blobs = blobs
        self.show_progress = show_progress

    # --- Files ---

    def delete_file(self, file_id: str):
        record = self.db.find_by_id(file_id)
        if record is None:
            raise NotFoundError(f"File not found: {file_id}")

        self.blobs.remove(record.blob_path)
        self.db.delete_file(file_id)
        logging.info(f"Deleted file {file_id} ({record.original_name!r})")

    def clear_all(self) -> int:
        """
        Removes every blob best-effort, then every row in one statement.
        Blob failures are logged and skipped; the catalog is always emptied.
        """
        records = self.db.list_all()
        failed = 0
        for rec in tqdm(records, desc="Clearing", disable=not self.show_progress):
            try:
                self.blobs.remove(rec.blob_path)
            except DocShelfError as e:
                failed += 1
                logging.warning(f"Could not remove blob for {rec.id}, leaving it on disk: {e}")

        removed = self.db.delete_all_files()
        if failed:
            logging.warning(f"Cleared {removed} records; {failed} blobs could not be removed")
        else:
            logging.info(f"Cleared {removed} records")
        return removed

    def rename_file(self, file_id: str, display_name: str) -> FileRecord:
        """Changes display_name only; original_name (the collision key) is untouched."""
        name = _clean_name(display_name, "Display name")
        if not self.db.update_display_name(file_id, name):
            raise NotFoundError(f"File not found: {file_id}")
        logging.info(f"Renamed file {file_id} to {name!r}")
        return self.db.find_by_id(file_id)

    def move_file(self, file_id: str, folder_id: Optional[str] = None) -> FileRecord:
        """Sets or clears the file's folder. The target folder must exist."""
        if self.db.find_by_id(file_id) is None:
            raise NotFoundError(f"File not found: {file_id}")
        if folder_id is not None and self.db.find_folder(folder_id) is None:
            raise NotFoundError(f"Folder not found: {folder_id}")

        self.db.update_folder(file_id, folder_id)
        logging.info(f"Moved file {file_id} to {folder_id or 'root'}")
        return self.db.find_by_id(file_id)

    # --- Folders ---

    def create_folder(self, name: str) -> Folder:
        folder = Folder(
            id=f"{config.FOLDER_ID_PREFIX}{uuid.uuid4().hex}",
            name=_clean_name(name, "Folder name"),
            created_date=datetime.now(UTC),
        )
        self.db.insert_folder(folder)
        logging.info(f"Created folder {folder.id} ({folder.name!r})")
        return folder

    def rename_folder(self, folder_id: str, name: str) -> Folder:
        cleaned = _clean_name(name, "Folder name")
        if not self.db.update_folder_name(folder_id, cleaned):
            raise NotFoundError(f"Folder not found: {folder_id}")
        return self.db.find_folder(folder_id)

    def delete_folder(self, folder_id: str) -> int:
        """
        Cascades: blobs of the folder's files, then their rows, then the folder.
        Any failure propagates before the folder row goes, so the worst case
        is an empty-but-present folder.
        """
        if self.db.find_folder(folder_id) is None:
            raise NotFoundError(f"Folder not found: {folder_id}")

        records = self.db.list_by_folder(folder_id)
        for rec in tqdm(records, desc="Deleting folder", disable=not self.show_progress):
            self.blobs.remove(rec.blob_path)

        removed = self.db.delete_files_by_folder(folder_id)
        self.db.delete_folder(folder_id)
        logging.info(f"Deleted folder {folder_id} and {removed} files")
        return removed
