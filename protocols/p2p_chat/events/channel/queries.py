"""
Queries for the channel directory.
"""
from core.db import ReadOnlyConnection
from typing import Dict, Any, List
from core.queries import query


@query
def get(db: ReadOnlyConnection, params: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    List channels in directory order.

    Optional params:
    - uuid: Only the channel with this uuid
    """
    sql = "SELECT topic, uuid, unread_count, last_message_uuid FROM channels"
    query_params: List[Any] = []

    uuid = params.get('uuid')
    if uuid:
        sql += " WHERE uuid = ?"
        query_params.append(uuid)

    sql += " ORDER BY seq"

    return [dict(row) for row in db.execute(sql, tuple(query_params))]


@query
def exists(db: ReadOnlyConnection, params: Dict[str, Any]) -> bool:
    """
    Check whether a channel uuid is in the directory.

    Required params:
    - uuid
    """
    uuid = params.get('uuid')
    if not uuid:
        raise ValueError("uuid is required for exists")
    row = db.execute("SELECT 1 FROM channels WHERE uuid = ?", (uuid,)).fetchone()
    return row is not None


@query
def unread_total(db: ReadOnlyConnection, params: Dict[str, Any]) -> int:
    """Sum of unread counts across the directory."""
    row = db.execute("SELECT COALESCE(SUM(unread_count), 0) AS total FROM channels").fetchone()
    return int(row['total'])
