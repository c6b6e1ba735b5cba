"""
Projector for identity events.
"""
import json
from typing import List, Any
from core.core_types import projector


@projector
def project(envelope: dict[str, Any]) -> List[dict[str, Any]]:
    """
    Replace the identity snapshot with the event's contents.
    """
    if not envelope.get('validated'):
        return []

    event_data = envelope['event_data']

    return [
        {
            'op': 'delete',
            'table': 'my_info',
            'where': {}
        },
        {
            'op': 'insert',
            'table': 'my_info',
            'data': {
                'id': 1,
                'peer_id': event_data['peer_id'],
                'addresses': json.dumps(list(event_data['addresses'])),
                'updated_at': envelope.get('received_at', 0)
            },
            'where': {}
        }
    ]
