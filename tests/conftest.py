import pytest
import sqlite3
from docshelf.database.schema import init_schema
from docshelf.database.ops import DBOperations
from docshelf.storage.blobs import BlobStore
from docshelf.core import DocShelfApp

@pytest.fixture
def conn():
    """Returns an in-memory SQLite connection with the schema initialized."""
    c = sqlite3.connect(":memory:")
    init_schema(c)
    try:
        yield c
    finally:
        c.close()

@pytest.fixture
def db_ops(conn):
    """Returns a DBOperations instance attached to the in-memory DB."""
    return DBOperations(conn)

@pytest.fixture
def blob_store(tmp_path):
    return BlobStore(tmp_path / "uploads")

@pytest.fixture
def app(tmp_path):
    """A fully wired store on a temp catalog file and content directory."""
    with DocShelfApp(tmp_path / "files.db", tmp_path / "uploads") as a:
        yield a
