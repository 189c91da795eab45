import logging
import secrets
import time
from pathlib import Path
from typing import Iterator, Union

from .. import config
from ..exceptions import InvalidArgumentError, NotFoundError, StorageWriteError
from ..naming import sanitize_filename

class BlobStore:
    """
    Owns the uploaded bytes under a single content directory.

    Blob names are <epoch-ms>_<random>_<sanitized name>, created with an
    exclusive open so two puts can never land on the same file even when
    they share a suggested name.
    """
    def __init__(self, content_dir: Path):
        self.root = Path(content_dir).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def put(self, data: bytes, suggested_name: str) -> str:
        """
        Persists bytes and returns the blob path, relative to the content directory.
        Raises StorageWriteError if the directory is unwritable or the disk is full.
        """
        for _ in range(config.BLOB_NAME_ATTEMPTS):
            path = self.root / self._blob_name(suggested_name)
            try:
                with open(path, 'xb') as f:
                    f.write(data)
            except FileExistsError:
                logging.debug(f"Blob name clash on {path.name}, retrying")
                continue
            except OSError as e:
                # Don't leave a truncated blob behind
                try:
                    path.unlink(missing_ok=True)
                except OSError as cleanup_err:
                    logging.warning(f"Could not remove partial blob {path}: {cleanup_err}")
                raise StorageWriteError(f"Failed to write blob for {suggested_name!r}: {e}") from e

            logging.debug(f"Wrote blob {path.name} ({len(data)} bytes)")
            return path.name

        raise StorageWriteError(
            f"Could not allocate a unique blob name for {suggested_name!r} "
            f"after {config.BLOB_NAME_ATTEMPTS} attempts"
        )

    def get(self, blob_path: Union[str, Path]) -> bytes:
        """Reads a blob. A missing blob means the catalog and disk are out of sync."""
        path = self.path_of(blob_path)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise NotFoundError(f"Blob missing on disk: {path}") from e
        except OSError as e:
            raise StorageWriteError(f"Failed to read blob {path}: {e}") from e

    def remove(self, blob_path: Union[str, Path]) -> None:
        """Deletes a blob. Already-missing blobs are fine (idempotent)."""
        path = self.path_of(blob_path)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageWriteError(f"Failed to remove blob {path}: {e}") from e

    def exists(self, blob_path: Union[str, Path]) -> bool:
        return self.path_of(blob_path).is_file()

    def iter_blobs(self) -> Iterator[Path]:
        """Yields every blob file in the content directory."""
        for p in sorted(self.root.iterdir()):
            if p.is_file():
                yield p

    def _blob_name(self, suggested_name: str) -> str:
        token = f"{time.time_ns() // 1_000_000}_{secrets.token_hex(config.BLOB_TOKEN_BYTES)}_"
        budget = config.MAX_FILENAME_LENGTH - len(token)
        return token + sanitize_filename(suggested_name, max_bytes=budget)

    def path_of(self, blob_path: Union[str, Path]) -> Path:
        """
        Maps a catalog blob path to disk. Relative paths are taken from the
        content directory; anything resolving outside it is refused.
        """
        path = Path(blob_path)
        if not path.is_absolute():
            path = self.root / path
        path = path.resolve()
        if not path.is_relative_to(self.root):
            raise InvalidArgumentError(f"Blob path outside content directory: {blob_path}")
        return path
