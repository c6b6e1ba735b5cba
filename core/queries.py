"""
Generic query registry system for protocols.
Queries are registered dynamically and enforce read-only database access.
"""
from typing import Dict, Any, List, Callable, Optional
import sqlite3
import functools
import inspect
import importlib
from pathlib import Path
from .db import ReadOnlyConnection, get_readonly_connection


class QueryRegistry:
    """Registry for protocol queries with read-only enforcement."""

    def __init__(self, protocol_dir: Optional[str] = None):
        self._queries: Dict[str, Callable] = {}
        self._discovered: set[str] = set()
        if protocol_dir:
            self.discover(protocol_dir)

    def register(self, name: str, query: Callable) -> None:
        """Register a query function."""
        self._queries[name] = query

    def execute(self, name: str, params: Dict[str, Any], db: sqlite3.Connection) -> Any:
        """Execute a query with read-only database access."""
        if name not in self._queries:
            raise ValueError(f"Unknown query: {name}")

        query = self._queries[name]

        # Wrap connection in read-only wrapper
        readonly_db = get_readonly_connection(db)

        return query(readonly_db, params)

    def discover(self, protocol_dir: str) -> None:
        """Register @query functions from every protocols.<name>.events.<family>.queries module."""
        protocol_path = Path(protocol_dir)
        if str(protocol_path) in self._discovered:
            return
        events_dir = protocol_path / 'events'

        if not events_dir.exists():
            return

        for family_dir in sorted(events_dir.iterdir()):
            if not family_dir.is_dir() or family_dir.name.startswith('_'):
                continue

            family = family_dir.name
            if not (family_dir / 'queries.py').exists():
                continue

            module_name = f'protocols.{protocol_path.name}.events.{family}.queries'
            module = importlib.import_module(module_name)

            # Find all functions decorated with @query
            for name, obj in inspect.getmembers(module):
                if callable(obj) and hasattr(obj, '_is_query'):
                    # Register with family.function_name format
                    self.register(f'{family}.{name}', obj)

        self._discovered.add(str(protocol_path))


# Global query registry (protocol queries are discovered by the session)
query_registry = QueryRegistry()


def query(func: Callable) -> Callable:
    """
    Decorator for query functions that enforces read-only database access.

    Query functions receive a ReadOnlyConnection that prevents modifications.
    """
    # Check signature - standard is (db, params)
    sig = inspect.signature(func)
    param_names = list(sig.parameters.keys())

    if not param_names or param_names[0] != 'db':
        raise TypeError(
            f"{func.__name__} must have 'db' as first parameter for database connection"
        )

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        # db is first argument - wrap it in read-only if needed
        if args and isinstance(args[0], sqlite3.Connection):
            readonly_conn = get_readonly_connection(args[0])
            args = (readonly_conn,) + args[1:]
        elif args and not isinstance(args[0], ReadOnlyConnection):
            raise TypeError(
                f"{func.__name__} must receive a database connection as first argument"
            )

        return func(*args, **kwargs)

    # Mark as query function
    wrapper._is_query = True  # type: ignore[attr-defined]

    return wrapper


# System query functions

def dump_database(db: ReadOnlyConnection, params: Dict[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    """Dump all tables in the database."""
    cursor = db.execute("SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'")
    tables = [row[0] for row in cursor.fetchall()]

    result = {}
    for table in tables:
        cursor = db.execute(f"SELECT * FROM {table}")
        result[table] = [dict(row) for row in cursor.fetchall()]
    return result


def get_mutations(db: ReadOnlyConnection, params: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    List optimistic mutations and their outcome.

    Optional params:
    - kind: 'message' or 'channel'
    - state: 'pending', 'confirmed' or 'failed'
    """
    sql = "SELECT kind, key, state, error FROM pending_mutations WHERE 1 = 1"
    sql_params: List[Any] = []
    if params.get('kind'):
        sql += " AND kind = ?"
        sql_params.append(params['kind'])
    if params.get('state'):
        sql += " AND state = ?"
        sql_params.append(params['state'])
    sql += " ORDER BY created_at, rowid"
    return [dict(row) for row in db.execute(sql, tuple(sql_params))]


# System queries are registered separately (not auto-discovered)
query_registry.register('system.dump_database', dump_database)
query_registry.register('system.mutations', get_mutations)
