import logging
import uuid
from datetime import datetime, UTC
from pathlib import Path
from typing import Optional

from .. import config
from ..database.ops import DBOperations
from ..exceptions import (
    CatalogError,
    InvalidArgumentError,
    NotFoundError,
    PayloadTooLargeError,
    UnsupportedTypeError,
)
from ..models import FileRecord
from ..naming import file_type_for, recover_filename
from ..storage.blobs import BlobStore

class FileRegistrar:
    """
    Upload protocol: validate, decode the name, replace any same-named
    file, write the blob, then commit the record.
    """
    def __init__(self, db_ops: DBOperations, blobs: BlobStore):
        self.db = db_ops
        self.blobs = blobs

    def register(self, data: bytes, filename: str, folder_id: Optional[str] = None) -> FileRecord:
        # --- Validation (no side effects past this block) ---
        if not filename or not filename.strip():
            raise InvalidArgumentError("Filename is required")

        file_type = file_type_for(filename)
        if file_type is None:
            raise UnsupportedTypeError(f"Only MD and PDF files are allowed: {filename!r}")

        if len(data) > config.MAX_UPLOAD_BYTES:
            raise PayloadTooLargeError(
                f"{filename!r} is {len(data)} bytes; limit is {config.MAX_UPLOAD_BYTES}"
            )

        # Applied once here, at the point the name enters the system
        name = recover_filename(filename)

        if folder_id is not None and self.db.find_folder(folder_id) is None:
            raise NotFoundError(f"Folder not found: {folder_id}")

        # --- Replace on collision ---
        existing = self.db.find_by_original_name(name)
        if existing:
            logging.info(f"Replacing existing file {existing.id} ({existing.original_name!r}) with new upload")
            self.blobs.remove(existing.blob_path)
            self.db.delete_file(existing.id)

        # --- Commit: blob first, then record ---
        blob_path = self.blobs.put(data, name)
        record = FileRecord(
            id=f"{config.FILE_ID_PREFIX}{uuid.uuid4().hex}",
            stored_name=Path(blob_path).name,
            original_name=name,
            display_name=name,
            size=len(data),
            type=file_type,
            upload_date=datetime.now(UTC),
            blob_path=blob_path,
            folder_id=folder_id,
        )

        try:
            self.db.insert_file(record)
        except CatalogError:
            logging.error(
                f"OrphanBlob: blob {blob_path} was written but its catalog record "
                f"could not be saved; run 'docshelf check --fix' to reconcile"
            )
            raise

        logging.info(f"Uploaded {name!r} as {record.id} ({record.size} bytes, {record.type})")
        return record
