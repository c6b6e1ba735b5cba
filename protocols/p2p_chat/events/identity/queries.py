"""
Queries for the local identity.
"""
import json
from core.db import ReadOnlyConnection
from typing import Dict, Any, Optional
from core.queries import query


@query
def get(db: ReadOnlyConnection, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Return the current identity snapshot, or None before the backend has
    reported one.
    """
    row = db.execute("SELECT peer_id, addresses FROM my_info WHERE id = 1").fetchone()
    if row is None:
        return None
    return {
        'peer_id': row['peer_id'],
        'addresses': json.loads(row['addresses']),
    }
