"""
Handler that marks already-stored messages as duplicates.
"""
from typing import List
import sqlite3
from core.handler import Handler
from core.types import Envelope
from protocols.p2p_chat.events import EventKind


class DedupeHandler(Handler):
    """
    Delivery is at-least-once and local echoes share their uuid with the
    network copy, so a message uuid may arrive more than once.
    Consumes: validated p2p-message envelopes
    Emits: nothing; sets duplicate=True/False
    """

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose

    @property
    def name(self) -> str:
        return "dedupe"

    def filter(self, envelope: Envelope) -> bool:
        return (
            envelope.get('validated') is True and
            envelope.get('event_type') == EventKind.P2P_MESSAGE.value and
            'duplicate' not in envelope
        )

    def process(self, envelope: Envelope, db: sqlite3.Connection) -> List[Envelope]:
        uuid = envelope['event_data']['uuid']
        row = db.execute("SELECT 1 FROM messages WHERE uuid = ?", (uuid,)).fetchone()
        envelope['duplicate'] = row is not None
        if envelope['duplicate'] and self.verbose:
            print(f"[dedupe] Duplicate message ignored: {uuid}")
        return []
