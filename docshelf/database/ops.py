import sqlite3
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Optional, List, Iterator

from ..exceptions import CatalogError, DuplicateIdError
from ..models import FileRecord, Folder

FILE_COLUMNS = (
    "id, stored_name, original_name, display_name, size, type, "
    "upload_date, blob_path, folder_id"
)
FOLDER_COLUMNS = "id, name, created_date"

def to_db_time(dt: datetime) -> str:
    # Fixed-width ISO strings so ORDER BY on the text column is chronological
    return dt.isoformat(timespec="microseconds")

class DBOperations:
    """
    Row-level access to the files/folders catalog.

    Every method is a single statement committed on its own; callers that
    need several steps sequence them (see operations/lifecycle.py).
    """
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @contextmanager
    def _tx(self, action: str) -> Iterator[sqlite3.Cursor]:
        """Runs one statement in its own transaction, wrapping sqlite errors."""
        try:
            with self.conn:
                yield self.conn.cursor()
        except sqlite3.Error as e:
            logging.error(f"Catalog error while trying to {action}: {e}")
            raise CatalogError(f"Failed to {action}: {e}") from e

    # --- Files ---

    def insert_file(self, rec: FileRecord):
        try:
            with self.conn:
                self.conn.execute(f"""
                    INSERT INTO files ({FILE_COLUMNS}, name_key)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    rec.id, rec.stored_name, rec.original_name, rec.display_name,
                    rec.size, rec.type, to_db_time(rec.upload_date), rec.blob_path,
                    rec.folder_id, rec.name_key,
                ))
        except sqlite3.IntegrityError as e:
            if self.find_by_id(rec.id) is not None:
                raise DuplicateIdError(f"File id already exists: {rec.id}") from e
            raise CatalogError(f"Failed to insert file {rec.id}: {e}") from e
        except sqlite3.Error as e:
            raise CatalogError(f"Failed to insert file {rec.id}: {e}") from e

    def find_by_id(self, file_id: str) -> Optional[FileRecord]:
        with self._tx("look up file") as cur:
            cur.execute(f"SELECT {FILE_COLUMNS} FROM files WHERE id = ?", (file_id,))
            row = cur.fetchone()
        return self._row_to_file(row) if row else None

    def find_by_original_name(self, name: str) -> Optional[FileRecord]:
        """Case-insensitive exact match, served by the name_key index."""
        with self._tx("look up file by name") as cur:
            cur.execute(
                f"SELECT {FILE_COLUMNS} FROM files WHERE name_key = ? ORDER BY rowid DESC LIMIT 1",
                (name.lower(),),
            )
            row = cur.fetchone()
        return self._row_to_file(row) if row else None

    def list_all(self) -> List[FileRecord]:
        """All files, newest upload first."""
        with self._tx("list files") as cur:
            cur.execute(f"SELECT {FILE_COLUMNS} FROM files ORDER BY upload_date DESC, rowid DESC")
            rows = cur.fetchall()
        return [self._row_to_file(r) for r in rows]

    def list_by_folder(self, folder_id: str) -> List[FileRecord]:
        with self._tx("list folder files") as cur:
            cur.execute(
                f"SELECT {FILE_COLUMNS} FROM files WHERE folder_id = ? ORDER BY upload_date DESC, rowid DESC",
                (folder_id,),
            )
            rows = cur.fetchall()
        return [self._row_to_file(r) for r in rows]

    def update_display_name(self, file_id: str, display_name: str) -> bool:
        with self._tx("rename file") as cur:
            cur.execute("UPDATE files SET display_name = ? WHERE id = ?", (display_name, file_id))
            return cur.rowcount > 0

    def update_folder(self, file_id: str, folder_id: Optional[str]) -> bool:
        with self._tx("move file") as cur:
            cur.execute("UPDATE files SET folder_id = ? WHERE id = ?", (folder_id, file_id))
            return cur.rowcount > 0

    def delete_file(self, file_id: str):
        with self._tx("delete file") as cur:
            cur.execute("DELETE FROM files WHERE id = ?", (file_id,))

    def delete_all_files(self) -> int:
        with self._tx("clear files") as cur:
            cur.execute("DELETE FROM files")
            return cur.rowcount

    def delete_files_by_folder(self, folder_id: str) -> int:
        with self._tx("delete folder files") as cur:
            cur.execute("DELETE FROM files WHERE folder_id = ?", (folder_id,))
            return cur.rowcount

    # --- Folders ---

    def insert_folder(self, folder: Folder):
        try:
            with self.conn:
                self.conn.execute(
                    f"INSERT INTO folders ({FOLDER_COLUMNS}) VALUES (?, ?, ?)",
                    (folder.id, folder.name, to_db_time(folder.created_date)),
                )
        except sqlite3.IntegrityError as e:
            raise DuplicateIdError(f"Folder id already exists: {folder.id}") from e
        except sqlite3.Error as e:
            raise CatalogError(f"Failed to insert folder {folder.id}: {e}") from e

    def find_folder(self, folder_id: str) -> Optional[Folder]:
        with self._tx("look up folder") as cur:
            cur.execute(f"SELECT {FOLDER_COLUMNS} FROM folders WHERE id = ?", (folder_id,))
            row = cur.fetchone()
        return self._row_to_folder(row) if row else None

    def list_folders(self) -> List[Folder]:
        """All folders, newest first."""
        with self._tx("list folders") as cur:
            cur.execute(f"SELECT {FOLDER_COLUMNS} FROM folders ORDER BY created_date DESC, rowid DESC")
            rows = cur.fetchall()
        return [self._row_to_folder(r) for r in rows]

    def update_folder_name(self, folder_id: str, name: str) -> bool:
        with self._tx("rename folder") as cur:
            cur.execute("UPDATE folders SET name = ? WHERE id = ?", (name, folder_id))
            return cur.rowcount > 0

    def delete_folder(self, folder_id: str):
        with self._tx("delete folder") as cur:
            cur.execute("DELETE FROM folders WHERE id = ?", (folder_id,))

    # --- Row mapping ---

    @staticmethod
    def _row_to_file(row) -> FileRecord:
        fid, stored, orig, display, size, ftype, uploaded, blob_path, folder_id = row
        return FileRecord(
            id=fid,
            stored_name=stored,
            original_name=orig,
            display_name=display,
            size=size,
            type=ftype,
            upload_date=datetime.fromisoformat(uploaded),
            blob_path=blob_path,
            folder_id=folder_id,
        )

    @staticmethod
    def _row_to_folder(row) -> Folder:
        fid, name, created = row
        return Folder(id=fid, name=name, created_date=datetime.fromisoformat(created))
