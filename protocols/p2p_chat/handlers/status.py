"""
Handler that drives the status notifier from connection events.
"""
from typing import List
import sqlite3
from core.config import ChatConfig
from core.handler import Handler
from core.status import StatusNotifier
from core.types import Envelope
from protocols.p2p_chat.events import EventKind

STATUS_EVENTS = {
    EventKind.PEER_CONNECTED.value,
    EventKind.CONNECTION_ERROR.value,
    EventKind.CONNECTION_STATUS.value,
}


class StatusHandler(Handler):
    """
    Consumes: validated peer-connected, connection-error, connection-status
    Emits: nothing; sets notified=True
    """

    def __init__(self, notifier: StatusNotifier, config: ChatConfig) -> None:
        self.notifier = notifier
        self.config = config

    @property
    def name(self) -> str:
        return "status"

    def filter(self, envelope: Envelope) -> bool:
        return (
            envelope.get('validated') is True and
            envelope.get('notified') is not True and
            envelope.get('event_type') in STATUS_EVENTS
        )

    def process(self, envelope: Envelope, db: sqlite3.Connection) -> List[Envelope]:
        event_type = envelope['event_type']
        event_data = envelope['event_data']

        if event_type == EventKind.PEER_CONNECTED.value:
            self.notifier.set(self.config.peer_connected_status, self.config.status_clear_ms)
        elif event_type == EventKind.CONNECTION_ERROR.value:
            self.notifier.alert(f"Connection error: {event_data['text']}")
            self.notifier.clear()
        elif event_type == EventKind.CONNECTION_STATUS.value:
            # Stays until the next status replaces it
            self.notifier.set(event_data['text'], 0)

        envelope['notified'] = True
        return []
