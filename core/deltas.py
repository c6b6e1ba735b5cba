"""
Delta application system for state changes.
Deltas are SQL operations emitted by projectors.
"""
import sqlite3
from typing import List
from core.types import Delta


class DeltaApplicator:
    """Applies deltas (SQL operations) to the database."""

    @staticmethod
    def apply(delta: Delta, db: sqlite3.Connection) -> None:
        """
        Apply a delta to the database.

        Delta format:
        {
            "op": "insert|upsert|update|delete",
            "table": "table_name",
            "data": {...},  # for insert/upsert/update
            "key": [...],   # for upsert: conflict columns
            "where": {...}, # for update/delete
            "sql": "raw sql", # alternative: raw SQL
            "params": []      # params for raw SQL
        }

        Inserts never overwrite an existing row; upserts overwrite every
        non-key column in ``data`` and keep the row's position.
        """
        op = delta.get('op')

        if 'sql' in delta:
            # Raw SQL delta
            db.execute(delta['sql'], delta.get('params', []))
            return

        table = delta['table']

        if op == 'insert':
            columns = list(delta['data'].keys())
            values = list(delta['data'].values())
            placeholders = ','.join(['?' for _ in columns])
            column_list = ','.join(columns)

            sql = f"INSERT OR IGNORE INTO {table} ({column_list}) VALUES ({placeholders})"
            db.execute(sql, values)

        elif op == 'upsert':
            key = delta.get('key') or []
            if not key:
                raise ValueError(f"Upsert into {table} needs key columns")
            columns = list(delta['data'].keys())
            values = list(delta['data'].values())
            placeholders = ','.join(['?' for _ in columns])
            column_list = ','.join(columns)
            updates = ','.join([f"{c} = excluded.{c}" for c in columns if c not in key])

            sql = f"INSERT INTO {table} ({column_list}) VALUES ({placeholders})"
            if updates:
                sql += f" ON CONFLICT({','.join(key)}) DO UPDATE SET {updates}"
            else:
                sql += f" ON CONFLICT({','.join(key)}) DO NOTHING"
            db.execute(sql, values)

        elif op == 'update':
            set_clause = ','.join([f"{k} = ?" for k in delta['data'].keys()])
            set_values = list(delta['data'].values())

            where_clause = ' AND '.join([f"{k} = ?" for k in delta.get('where', {}).keys()])
            where_values = list(delta.get('where', {}).values())

            sql = f"UPDATE {table} SET {set_clause}"
            if where_clause:
                sql += f" WHERE {where_clause}"

            db.execute(sql, set_values + where_values)

        elif op == 'delete':
            where_clause = ' AND '.join([f"{k} = ?" for k in delta.get('where', {}).keys()])
            where_values = list(delta.get('where', {}).values())

            sql = f"DELETE FROM {table}"
            if where_clause:
                sql += f" WHERE {where_clause}"

            db.execute(sql, where_values)

        else:
            raise ValueError(f"Unknown delta operation: {op}")

    @staticmethod
    def apply_batch(deltas: List[Delta], db: sqlite3.Connection) -> None:
        """Apply multiple deltas in a transaction."""
        try:
            for delta in deltas:
                DeltaApplicator.apply(delta, db)
            db.commit()
        except Exception:
            db.rollback()
            raise
