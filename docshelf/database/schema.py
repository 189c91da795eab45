"""
Database schema definitions.
"""
import sqlite3
import logging

CURRENT_SCHEMA_VERSION = 1

def init_schema(conn: sqlite3.Connection):
    """
    Applies the catalog schema to the database.
    Creates missing tables and indices; existing ones are left alone.
    """
    with conn:
        # Schema version row, read by later migrations
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            );
        """)

        cur = conn.cursor()
        cur.execute("SELECT version FROM schema_version")
        if not cur.fetchone():
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (CURRENT_SCHEMA_VERSION,))

        # Files
        # name_key is the lowercased original_name, the duplicate-detection key
        conn.execute("""
        CREATE TABLE IF NOT EXISTS files (
            id              TEXT PRIMARY KEY,
            stored_name     TEXT NOT NULL,
            original_name   TEXT NOT NULL,
            name_key        TEXT NOT NULL,
            display_name    TEXT NOT NULL,
            size            INTEGER NOT NULL,
            type            TEXT NOT NULL CHECK (type IN ('md', 'pdf')),
            upload_date     TEXT NOT NULL,
            blob_path       TEXT NOT NULL,
            folder_id       TEXT
        );
        """)

        # Folders
        conn.execute("""
        CREATE TABLE IF NOT EXISTS folders (
            id              TEXT PRIMARY KEY,
            name            TEXT NOT NULL,
            created_date    TEXT NOT NULL
        );
        """)

        # Lookup indices
        conn.execute("CREATE INDEX IF NOT EXISTS idx_files_name_key ON files(name_key);")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_files_folder ON files(folder_id);")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_files_upload_date ON files(upload_date);")

    logging.debug("Catalog schema initialized.")
