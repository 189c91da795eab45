"""
Configuration constants for the document store.
"""
from pathlib import Path

# --- File Type Definitions ---
MARKDOWN_EXTS = {'.md'}
PDF_EXTS = {'.pdf'}

# Extension to Type Mapping
# Anything not listed here is rejected at upload time
EXT_TO_TYPE = {}
for ext in MARKDOWN_EXTS: EXT_TO_TYPE[ext] = 'md'
for ext in PDF_EXTS: EXT_TO_TYPE[ext] = 'pdf'

SUPPORTED_TYPES = frozenset(EXT_TO_TYPE.values())

# --- Upload Limits ---
MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MiB
MAX_FILENAME_LENGTH = 255

# --- Encodings ---
# Markdown blobs are served back as text in this encoding
TEXT_ENCODING = 'utf-8'
# Single-byte encoding upload transports fall back to for non-ASCII names
TRANSPORT_FALLBACK_ENCODING = 'latin-1'

# --- Identifiers ---
FILE_ID_PREFIX = 'file_'
FOLDER_ID_PREFIX = 'folder_'

# --- Blob Naming ---
# Pattern: <epoch-ms>_<random>_<sanitized original name>
BLOB_TOKEN_BYTES = 5
BLOB_NAME_ATTEMPTS = 5

# --- Default Layout ---
DEFAULT_HOME = Path.home() / ".docshelf"
DB_FILENAME = "files.db"
CONTENT_DIRNAME = "uploads"
LOG_FILENAME = "docshelf.log"
