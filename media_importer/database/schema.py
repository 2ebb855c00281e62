"""
Database schema definitions.
"""
import sqlite3
import logging

from .. import config

CURRENT_SCHEMA_VERSION = 1

def init_schema(conn: sqlite3.Connection):
    """
    Creates the key-value tables backing each catalog collection.
    Idempotent: safe to run on every startup.
    """
    with conn:
        # 1. Version Tracking (For future migrations)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            );
        """)

        cur = conn.cursor()
        cur.execute("SELECT version FROM schema_version")
        if not cur.fetchone():
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (CURRENT_SCHEMA_VERSION,))

        # 2. One ordered byte-keyed table per collection.
        # WITHOUT ROWID stores rows in primary key order, so scans come back sorted.
        for collection in config.COLLECTIONS:
            conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {collection} (
                key     BLOB PRIMARY KEY,
                value   BLOB NOT NULL
            ) WITHOUT ROWID;
            """)

        # 3. Per-collection id counters
        conn.execute("""
        CREATE TABLE IF NOT EXISTS sequences (
            collection  TEXT PRIMARY KEY,
            value       INTEGER NOT NULL DEFAULT 0
        );
        """)

    logging.debug("Database schema initialized.")
