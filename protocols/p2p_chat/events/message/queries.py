"""
Queries for the message log.
"""
from core.db import ReadOnlyConnection
from typing import Dict, Any, List
from core.queries import query


def _row_to_message(row: Any) -> Dict[str, Any]:
    return {
        'topic': row['topic'],
        'from': row['sender'],
        'content': row['content'],
        'timestamp': row['timestamp'],
        'uuid': row['uuid'],
        'own': bool(row['own']),
    }


@query
def get(db: ReadOnlyConnection, params: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    List messages in arrival order.

    Optional params:
    - topic: Only messages for this topic
    - limit: Keep only the most recent N
    """
    sql = "SELECT * FROM messages"
    query_params: List[Any] = []

    topic = params.get('topic')
    if topic is not None:
        sql += " WHERE topic = ?"
        query_params.append(topic)

    limit = params.get('limit')
    if limit:
        # Most recent N, returned oldest first
        sql = f"SELECT * FROM ({sql} ORDER BY seq DESC LIMIT ?) ORDER BY seq"
        query_params.append(int(limit))
    else:
        sql += " ORDER BY seq"

    return [_row_to_message(row) for row in db.execute(sql, tuple(query_params))]

