from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

@dataclass
class FileRecord:
    """
    Catalog entry for one uploaded document.
    """
    id: str
    stored_name: str        # blob filename, never shown to users
    original_name: str      # decoded upload name, duplicate-detection key
    display_name: str       # user label, changed only by rename
    size: int
    type: str               # md/pdf
    upload_date: datetime
    blob_path: str

    folder_id: Optional[str] = None

    @property
    def name_key(self) -> str:
        """Case-insensitive lookup key for duplicate detection."""
        return self.original_name.lower()

@dataclass
class Folder:
    id: str
    name: str
    created_date: datetime

@dataclass
class StoredFile:
    """A record together with its content (text for md, bytes for pdf)."""
    record: FileRecord
    content: Union[str, bytes]

@dataclass
class Download:
    content: bytes
    filename: str
    content_disposition: str

@dataclass
class StoreStats:
    total_files: int
    md_files: int
    pdf_files: int
    total_size: int
