"""
Client state database setup and utilities with read-only support.
"""
import sqlite3
from typing import Any, Optional
import os
import glob


def _load_schema_file(schema_file: str, conn: sqlite3.Connection) -> None:
    """Load a schema file into the database."""
    with open(schema_file, 'r') as f:
        # Drop -- comments so punctuation in them cannot split a statement
        schema_sql = '\n'.join(line.split('--', 1)[0].rstrip() for line in f)
        for statement in schema_sql.split(';'):
            statement = statement.strip()
            if statement:
                conn.execute(statement + ';')


def get_connection(db_path: str = ":memory:") -> sqlite3.Connection:
    """Get a database connection with proper settings."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    if db_path != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL")
    return conn


def init_database(conn: sqlite3.Connection, protocol_dir: Optional[str] = None) -> None:
    """Initialize database schema.

    The framework defines core tables and loads protocol-specific schema from:
    1. Event family .sql files in events/<family>/
    2. Any top-level .sql files in the protocol directory
    """

    # Load core framework schemas
    core_dir = os.path.dirname(os.path.abspath(__file__))
    for schema_file in sorted(glob.glob(os.path.join(core_dir, '*.sql'))):
        _load_schema_file(schema_file, conn)

    if protocol_dir:

        # Load any top-level schema files in the protocol directory
        for schema_file in sorted(glob.glob(os.path.join(protocol_dir, '*.sql'))):
            _load_schema_file(schema_file, conn)

        # Load event family schemas
        events_dir = os.path.join(protocol_dir, 'events')
        if os.path.exists(events_dir):
            for family_dir in sorted(os.listdir(events_dir)):
                family_path = os.path.join(events_dir, family_dir)
                if os.path.isdir(family_path):
                    for schema_file in sorted(glob.glob(os.path.join(family_path, '*.sql'))):
                        _load_schema_file(schema_file, conn)

    conn.commit()


class ReadOnlyConnection:
    """
    A read-only wrapper around sqlite3.Connection that prevents modifications.
    """

    def __init__(self, connection: sqlite3.Connection):
        self._conn = connection
        self._conn.row_factory = sqlite3.Row

    def execute(self, sql: str, parameters: tuple = ()) -> sqlite3.Cursor:
        """Execute a SQL query (read-only)."""
        # Check if this is a modifying query
        sql_upper = sql.upper().strip()
        modifying_keywords = ['INSERT', 'UPDATE', 'DELETE', 'CREATE', 'DROP', 'ALTER', 'REPLACE']

        for keyword in modifying_keywords:
            if sql_upper.startswith(keyword):
                raise PermissionError(f"Read-only connection cannot execute {keyword} statements")

        return self._conn.execute(sql, parameters)

    def commit(self) -> None:
        """Commit is a no-op for read-only connections."""
        pass

    def rollback(self) -> None:
        """Rollback is a no-op for read-only connections."""
        pass

    def close(self) -> None:
        # The owner of the real connection closes it
        pass


def get_readonly_connection(connection: sqlite3.Connection) -> ReadOnlyConnection:
    """
    Get a read-only wrapper around a database connection.

    Args:
        connection: The underlying SQLite connection

    Returns:
        A read-only wrapper that prevents modifications
    """
    return ReadOnlyConnection(connection)
