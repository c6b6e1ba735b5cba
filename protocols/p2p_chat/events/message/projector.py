"""
Projector for incoming p2p messages.
"""
from typing import List, Any
from core.core_types import projector


@projector
def project(envelope: dict[str, Any]) -> List[dict[str, Any]]:
    """
    Append a received message and bump its channel's unread count.
    Duplicates produce no deltas.
    """
    if not envelope.get('validated') or envelope.get('duplicate'):
        return []

    event_data = envelope['event_data']

    return [
        {
            'op': 'insert',
            'table': 'messages',
            'data': {
                'uuid': event_data['uuid'],
                'topic': event_data['topic'],
                'sender': event_data['from'],
                'content': event_data['content'],
                'timestamp': event_data['timestamp'],
                'own': 0
            },
            'where': {}
        },
        {
            # Topic carries the channel uuid; a message for an unknown channel matches no row
            'sql': """
                UPDATE channels
                SET unread_count = unread_count + 1, last_message_uuid = ?
                WHERE uuid = ?
            """,
            'params': [event_data['uuid'], event_data['topic']]
        }
    ]
