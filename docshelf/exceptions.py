"""
Custom exception hierarchy for the document store.

Every error carries a stable ``kind`` string so callers (the CLI, or an
HTTP layer sitting in front of the store) can map failures without
parsing messages.
"""


class DocShelfError(Exception):
    """Base exception for all document store errors."""
    kind = "error"


class UnsupportedTypeError(DocShelfError):
    """Raised when an upload's extension is not one of the supported types."""
    kind = "unsupported_type"


class PayloadTooLargeError(DocShelfError):
    """Raised when an upload exceeds the configured size limit."""
    kind = "payload_too_large"


class NotFoundError(DocShelfError):
    """Raised when a file, folder or blob does not exist."""
    kind = "not_found"


class InvalidArgumentError(DocShelfError):
    """Raised when a caller-supplied value fails validation."""
    kind = "invalid_argument"


class StorageWriteError(DocShelfError):
    """Raised when the content directory cannot be written or cleaned."""
    kind = "storage_write"


class CatalogError(DocShelfError):
    """Raised when database operations fail."""
    kind = "catalog"


class DuplicateIdError(CatalogError):
    """Raised when an inserted record reuses an existing id."""
    kind = "duplicate_id"
