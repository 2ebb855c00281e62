"""
Catalog store: an ordered, byte-keyed, transactional key-value store on SQLite.
"""
import sqlite3
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from .. import config
from ..exceptions import StoreError, StoreUnavailable
from .schema import init_schema

Key = Union[str, bytes]


def catalog_path(source_root: Path) -> Path:
    """Location of the catalog file for a given source tree."""
    return Path(source_root) / config.CATALOG_DIR_NAME / config.CATALOG_FILE_NAME


def _key_bytes(key: Key) -> bytes:
    # Keys must be stored as BLOBs so that ordering is plain byte order
    return key.encode("utf-8") if isinstance(key, str) else bytes(key)


def _table(collection: str) -> str:
    if collection not in config.COLLECTIONS:
        raise StoreError(f"Unknown collection: {collection!r}")
    return collection


class CatalogTransaction:
    """Operations available inside a single store transaction."""

    def __init__(self, cursor: sqlite3.Cursor):
        self.cur = cursor

    def get(self, collection: str, key: Key) -> Optional[bytes]:
        self.cur.execute(f"SELECT value FROM {_table(collection)} WHERE key = ?", (_key_bytes(key),))
        row = self.cur.fetchone()
        return bytes(row[0]) if row else None

    def put(self, collection: str, key: Key, value: bytes):
        self.cur.execute(
            f"INSERT OR REPLACE INTO {_table(collection)} (key, value) VALUES (?, ?)",
            (_key_bytes(key), bytes(value)),
        )

    def scan(self, collection: str) -> List[Tuple[bytes, bytes]]:
        self.cur.execute(f"SELECT key, value FROM {_table(collection)} ORDER BY key")
        return [(bytes(k), bytes(v)) for k, v in self.cur.fetchall()]

    def count(self, collection: str) -> int:
        self.cur.execute(f"SELECT COUNT(*) FROM {_table(collection)}")
        return int(self.cur.fetchone()[0])

    def next_sequence(self, collection: str) -> int:
        name = _table(collection)
        self.cur.execute("""
            INSERT INTO sequences (collection, value) VALUES (?, 1)
            ON CONFLICT(collection) DO UPDATE SET value = value + 1
        """, (name,))
        self.cur.execute("SELECT value FROM sequences WHERE collection = ?", (name,))
        return int(self.cur.fetchone()[0])


class CatalogStore:
    def __init__(self, source_root: Path):
        self.source_root = Path(source_root)
        self.db_path = catalog_path(self.source_root)
        self._conn: Optional[sqlite3.Connection] = None

    def open(self) -> "CatalogStore":
        """
        Opens the catalog, creating it if needed, and takes an exclusive lock on it.
        """
        if self._conn:
            return self

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreUnavailable(f"Cannot create catalog directory {self.db_path.parent}: {e}") from e

        logging.info(f"Opening catalog: {self.db_path}")
        conn = None
        try:
            # Autocommit mode: every transaction is started explicitly below
            conn = sqlite3.connect(self.db_path, timeout=config.STORE_LOCK_TIMEOUT, isolation_level=None)

            # Single owner per run; the lock is held until close()
            conn.execute("PRAGMA locking_mode=EXCLUSIVE;")
            conn.execute("PRAGMA journal_mode=WAL;")
            # Every commit must survive a crash
            conn.execute("PRAGMA synchronous=FULL;")

            init_schema(conn)
        except sqlite3.Error as e:
            if conn is not None:
                conn.close()
            raise StoreUnavailable(f"Cannot open catalog {self.db_path}: {e}") from e

        self._conn = conn
        return self

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "CatalogStore":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @contextmanager
    def transaction(self, write: bool = False) -> Iterator[CatalogTransaction]:
        """
        Runs the block inside one read or read-write transaction.
        Commits on success; rolls back and raises StoreError on database failure.
        """
        if self._conn is None:
            raise StoreError("Catalog is not open")
        conn = self._conn

        try:
            conn.execute("BEGIN IMMEDIATE" if write else "BEGIN")
        except sqlite3.Error as e:
            raise StoreError(f"Cannot begin transaction: {e}") from e

        try:
            yield CatalogTransaction(conn.cursor())
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            self._rollback(conn)
            raise StoreError(f"Catalog transaction failed: {e}") from e
        except BaseException:
            self._rollback(conn)
            raise

    def _rollback(self, conn: sqlite3.Connection):
        if conn.in_transaction:
            try:
                conn.execute("ROLLBACK")
            except sqlite3.Error as e:
                logging.error(f"Rollback failed: {e}")

    # --- Single-operation helpers ---

    def put(self, collection: str, key: Key, value: bytes):
        with self.transaction(write=True) as tx:
            tx.put(collection, key, value)

    def get(self, collection: str, key: Key) -> Optional[bytes]:
        with self.transaction() as tx:
            return tx.get(collection, key)

    def scan(self, collection: str) -> List[Tuple[bytes, bytes]]:
        with self.transaction() as tx:
            return tx.scan(collection)

    def count(self, collection: str) -> int:
        with self.transaction() as tx:
            return tx.count(collection)

    def next_sequence(self, collection: str) -> int:
        with self.transaction(write=True) as tx:
            return tx.next_sequence(collection)
