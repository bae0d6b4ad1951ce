"""
DuckDB connection management for purrgallery.

DatabaseManager owns one DuckDB connection and creates a schema on it.
KeyValueStore is the synchronous key-value mechanism shared by the metadata
snapshots and the session markers.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import duckdb

from .schema import get_kv_schema_statements

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"


class DatabaseManager:
    """
    Manages a DuckDB database connection and its schema.
    """

    def __init__(self, db_path: str, schema_statements: list[str] | None = None):
        """
        Initialize DatabaseManager.

        Args:
            db_path: Path to the DuckDB database file, or ``:memory:``
            schema_statements: Statements run once when the connection opens
        """
        self.db_path = db_path
        self.schema_statements = list(schema_statements or [])
        self._connection: duckdb.DuckDBPyConnection | None = None

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def connect(self) -> duckdb.DuckDBPyConnection:
        """
        Get or create the database connection, initializing the schema on first use.

        Returns:
            DuckDB connection object
        """
        if self._connection is None:
            if self.db_path != IN_MEMORY:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            connection = duckdb.connect(self.db_path)
            try:
                self._initialize_schema(connection)
            except duckdb.Error:
                connection.close()
                raise
            self._connection = connection
            logger.info(f"Connected to DuckDB database at {self.db_path}")

        return self._connection

    def _initialize_schema(self, connection: duckdb.DuckDBPyConnection) -> None:
        for statement in self.schema_statements:
            logger.debug(f"Executing SQL: {statement}")
            connection.execute(statement)

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            logger.info(f"Closed DuckDB database connection to {self.db_path}")

    @contextmanager
    def transaction(self) -> Iterator[duckdb.DuckDBPyConnection]:
        """
        Run a block inside one transaction.

        The transaction is committed when the block exits normally and rolled
        back when it raises.
        """
        conn = self.connect()
        conn.execute("BEGIN TRANSACTION")
        try:
            yield conn
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        else:
            conn.execute("COMMIT")

    def execute_query(self, query: str, parameters: tuple | list | None = None) -> list[tuple]:
        """
        Execute a SQL query and return results.

        Raises:
            duckdb.Error: If query execution fails
        """
        conn = self.connect()

        try:
            if parameters:
                result = conn.execute(query, parameters)
            else:
                result = conn.execute(query)

            return result.fetchall()

        except duckdb.Error as e:
            logger.error(f"Query execution failed: {query}, error: {e}")
            raise

    def __enter__(self) -> "DatabaseManager":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class KeyValueStore:
    """
    Synchronous string key-value store on a ``kv_store`` table.

    Values are opaque strings; callers serialize their own data.
    """

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    def get_item(self, key: str) -> str | None:
        rows = self.db_manager.execute_query("SELECT value FROM kv_store WHERE key = ?", (key,))
        return rows[0][0] if rows else None

    def set_item(self, key: str, value: str) -> None:
        self.db_manager.execute_query(
            "INSERT INTO kv_store (key, value) VALUES (?, ?) ON CONFLICT (key) DO UPDATE SET value = excluded.value",
            (key, value),
        )

    def remove_item(self, key: str) -> None:
        self.db_manager.execute_query("DELETE FROM kv_store WHERE key = ?", (key,))

    def keys(self) -> list[str]:
        return [row[0] for row in self.db_manager.execute_query("SELECT key FROM kv_store ORDER BY key")]

    def close(self) -> None:
        self.db_manager.close()


def create_key_value_store(db_path: str) -> KeyValueStore:
    """
    Create a KeyValueStore on a DuckDB file (or ``:memory:``).

    The connection is opened lazily on first access.
    """
    return KeyValueStore(DatabaseManager(db_path, get_kv_schema_statements()))
