"""
Queries for the peer registry.
"""
from core.db import ReadOnlyConnection
from typing import Dict, Any, List
from core.queries import query


@query
def get(db: ReadOnlyConnection, params: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    List live peers in the order they were first seen.

    Optional params:
    - status: 'discovered' or 'connected'
    """
    sql = "SELECT peer_id, address, status FROM peers"
    query_params: List[Any] = []

    status = params.get('status')
    if status:
        sql += " WHERE status = ?"
        query_params.append(status)

    sql += " ORDER BY seq"

    return [dict(row) for row in db.execute(sql, tuple(query_params))]


@query
def get_by_id(db: ReadOnlyConnection, params: Dict[str, Any]) -> Dict[str, Any] | None:
    """
    Look up one peer.

    Required params:
    - peer_id
    """
    peer_id = params.get('peer_id')
    if not peer_id:
        raise ValueError("peer_id is required for get_by_id")

    row = db.execute(
        "SELECT peer_id, address, status FROM peers WHERE peer_id = ?",
        (peer_id,)
    ).fetchone()
    return dict(row) if row else None
