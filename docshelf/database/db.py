"""
Opens the docshelf catalog and applies its schema.
"""
import sqlite3
import logging
from pathlib import Path
from typing import Optional

from .schema import init_schema
from ..exceptions import CatalogError

class DBManager:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None

    def connect(self) -> sqlite3.Connection:
        """
        Connects to the SQLite database and ensures the schema exists.
        Reuses the open connection on repeat calls.
        """
        if self._conn:
            return self._conn

        logging.info(f"Connecting to catalog: {self.db_path}")
        try:
            if str(self.db_path) != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            # One connection shared by every caller thread; SQLite serializes access
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)

            # Single-writer catalog; WAL lets readers run alongside it
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA synchronous=NORMAL;")

            init_schema(self._conn)
        except (sqlite3.Error, OSError) as e:
            self.close()
            raise CatalogError(f"Failed to open catalog at {self.db_path}: {e}") from e

        return self._conn

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
