"""
Projector for peer lifecycle events.
"""
from typing import List, Any
from core.core_types import projector
from protocols.p2p_chat.events import EventKind


@projector
def project(envelope: dict[str, Any]) -> List[dict[str, Any]]:
    """
    Project a peer event to the registry.

    discovered: insert if absent, never overwrites
    connected: insert or promote, address updated
    disconnected/expired: remove
    peers-list/peer-subscribed: informational only
    """
    if not envelope.get('validated'):
        return []

    event_type = envelope['event_type']
    event_data = envelope['event_data']

    if event_type == EventKind.PEER_DISCOVERED.value:
        return [{
            'op': 'insert',
            'table': 'peers',
            'data': {
                'peer_id': event_data['peer_id'],
                'address': event_data['address'],
                'status': 'discovered'
            },
            'where': {}
        }]

    if event_type == EventKind.PEER_CONNECTED.value:
        return [{
            'op': 'upsert',
            'table': 'peers',
            'data': {
                'peer_id': event_data['peer_id'],
                'address': event_data['address'],
                'status': 'connected'
            },
            'key': ['peer_id']
        }]

    if event_type in (EventKind.PEER_DISCONNECTED.value, EventKind.PEER_EXPIRED.value):
        return [{
            'op': 'delete',
            'table': 'peers',
            'where': {'peer_id': event_data['peer_id']}
        }]

    if event_type == EventKind.PEERS_LIST.value:
        print(f"[peer projector] Peers list: {event_data['peer_ids']}")
    elif event_type == EventKind.PEER_SUBSCRIBED.value:
        print(f"[peer projector] Peer {event_data['peer_id']} subscribed to {event_data['topic']}")

    return []
