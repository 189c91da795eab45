import logging
from pathlib import Path
from typing import List, Optional

from . import config
from .database.db import DBManager
from .database.ops import DBOperations
from .exceptions import InvalidArgumentError, NotFoundError
from .models import Download, FileRecord, Folder, StoredFile, StoreStats
from .naming import content_disposition
from .operations.lifecycle import LifecycleOperations
from .operations.registrar import FileRegistrar
from .storage.blobs import BlobStore

# Sentinel for "any folder" in list_files; None means "root (no folder)"
ANY_FOLDER = object()

SORT_KEYS = {
    "date": None,  # catalog order
    "name": lambda r: r.display_name.lower(),
    "size": lambda r: r.size,
}

class DocShelfApp:
    """
    The store as collaborators see it. Built once at startup and handed to
    whatever needs it (CLI, an HTTP layer); holds the only catalog
    connection and blob root, no module-level state.
    """
    def __init__(self, db_path: Path, content_dir: Path, show_progress: bool = False):
        self.db_manager = DBManager(db_path)
        self.blobs = BlobStore(content_dir)
        self.show_progress = show_progress
        self._db: Optional[DBOperations] = None

    def open(self) -> "DocShelfApp":
        conn = self.db_manager.connect()
        self._db = DBOperations(conn)
        self.registrar = FileRegistrar(self._db, self.blobs)
        self.lifecycle = LifecycleOperations(self._db, self.blobs, show_progress=self.show_progress)
        return self

    def close(self):
        self.db_manager.close()
        self._db = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def db(self) -> DBOperations:
        if self._db is None:
            raise RuntimeError("DocShelfApp is not open")
        return self._db

    # --- Files ---

    def list_files(self,
                   file_type: Optional[str] = None,
                   folder_id=ANY_FOLDER,
                   sort_by: str = "date",
                   order: str = "desc") -> List[FileRecord]:
        """
        Newest-first by default. Optionally filter by type ('md'/'pdf') and
        folder (None = files outside any folder), and sort by date/name/size.
        """
        if sort_by not in SORT_KEYS:
            raise InvalidArgumentError(f"Unknown sort key: {sort_by!r}")
        if order not in ("asc", "desc"):
            raise InvalidArgumentError(f"Unknown sort order: {order!r}")
        if file_type is not None and file_type not in config.SUPPORTED_TYPES:
            raise InvalidArgumentError(f"Unknown file type: {file_type!r}")

        if folder_id is ANY_FOLDER:
            files = self.db.list_all()
        elif folder_id is None:
            files = [f for f in self.db.list_all() if f.folder_id is None]
        else:
            files = self.db.list_by_folder(folder_id)

        if file_type:
            files = [f for f in files if f.type == file_type]

        if sort_by == "date":
            # Catalog order is already newest-first, with insertion order breaking ties
            if order == "asc":
                files = files[::-1]
        else:
            files = sorted(files, key=SORT_KEYS[sort_by], reverse=(order == "desc"))
        return files

    def search_files(self, query: str) -> List[FileRecord]:
        """Case-insensitive substring match on display and original names."""
        needle = query.lower()
        return [
            f for f in self.db.list_all()
            if needle in f.display_name.lower() or needle in f.original_name.lower()
        ]

    def get_file(self, file_id: str) -> StoredFile:
        record = self._require_file(file_id)
        data = self.blobs.get(record.blob_path)
        if record.type == "md":
            content = data.decode(config.TEXT_ENCODING, errors="replace")
        else:
            content = data
        return StoredFile(record=record, content=content)

    def upload_file(self, data: bytes, filename: str, folder_id: Optional[str] = None) -> FileRecord:
        return self.registrar.register(data, filename, folder_id)

    def delete_file(self, file_id: str):
        self.lifecycle.delete_file(file_id)

    def clear_all(self) -> int:
        return self.lifecycle.clear_all()

    def rename_file(self, file_id: str, display_name: str) -> FileRecord:
        return self.lifecycle.rename_file(file_id, display_name)

    def move_file(self, file_id: str, folder_id: Optional[str] = None) -> FileRecord:
        return self.lifecycle.move_file(file_id, folder_id)

    def download_file(self, file_id: str) -> Download:
        record = self._require_file(file_id)
        data = self.blobs.get(record.blob_path)
        return Download(
            content=data,
            filename=record.original_name,
            content_disposition=content_disposition(record.original_name),
        )

    def stats(self) -> StoreStats:
        files = self.db.list_all()
        return StoreStats(
            total_files=len(files),
            md_files=sum(1 for f in files if f.type == "md"),
            pdf_files=sum(1 for f in files if f.type == "pdf"),
            total_size=sum(f.size for f in files),
        )

    # --- Folders ---

    def create_folder(self, name: str) -> Folder:
        return self.lifecycle.create_folder(name)

    def list_folders(self) -> List[Folder]:
        return self.db.list_folders()

    def rename_folder(self, folder_id: str, name: str) -> Folder:
        return self.lifecycle.rename_folder(folder_id, name)

    def delete_folder(self, folder_id: str) -> int:
        return self.lifecycle.delete_folder(folder_id)

    def _require_file(self, file_id: str) -> FileRecord:
        record = self.db.find_by_id(file_id)
        if record is None:
            raise NotFoundError(f"File not found: {file_id}")
        return record

def reset_storage(db_path: Path, content_dir: Path) -> int:
    """
    Wipes the catalog file (and its WAL side files) and every blob in the
    content directory. Returns the number of blobs removed.
    """
    db_path = Path(db_path)
    for p in (db_path, Path(f"{db_path}-wal"), Path(f"{db_path}-shm")):
        if p.exists():
            p.unlink()
            logging.info(f"Deleted {p}")

    removed = 0
    content_dir = Path(content_dir)
    if content_dir.is_dir():
        for p in content_dir.iterdir():
            if p.is_file():
                p.unlink()
                removed += 1
    logging.info(f"Removed {removed} blobs from {content_dir}")
    return removed
