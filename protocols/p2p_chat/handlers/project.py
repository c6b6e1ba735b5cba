"""
Handler that projects validated events to state.
"""
from typing import List, Dict
import sqlite3
import importlib
from importlib.util import find_spec
from core.core_types import ProjectorFunc
from core.deltas import DeltaApplicator
from core.errors import MalformedEvent
from core.handler import Handler
from core.types import Envelope
from protocols.p2p_chat.events import EVENT_FAMILY


class ProjectHandler(Handler):
    """
    Projects validated events using their family projectors.
    Consumes: envelopes with validated=True
    Emits: nothing; sets projected=True and deltas
    """

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose
        # Map of event families to their projector functions
        self.projectors: Dict[str, ProjectorFunc] = {}
        self._load_projectors()

    @property
    def name(self) -> str:
        return "project"

    def _load_projectors(self) -> None:
        # Families without a projector.py (status) have no stored state
        for family in sorted(set(EVENT_FAMILY.values())):
            module_name = f"protocols.p2p_chat.events.{family}.projector"
            if find_spec(module_name) is None:
                continue
            self.projectors[family] = importlib.import_module(module_name).project

    def filter(self, envelope: Envelope) -> bool:
        """Process validated events that haven't been projected."""
        return (
            envelope.get('validated') is True and
            envelope.get('projected') is not True and
            envelope.get('event_family') in self.projectors
        )

    def process(self, envelope: Envelope, db: sqlite3.Connection) -> List[Envelope]:
        """Project event to state."""
        projector = self.projectors[envelope['event_family']]

        deltas = projector(dict(envelope))
        if self.verbose:
            print(f"[project] Generated {len(deltas)} deltas for {envelope.get('event_type')}")

        try:
            DeltaApplicator.apply_batch(deltas, db)
        except sqlite3.Error as e:
            # The batch was rolled back; later handlers must not see this event
            raise MalformedEvent(envelope.get('event_name', envelope['event_type']), f"projection failed: {e}") from e

        envelope['projected'] = True
        envelope['deltas'] = deltas
        return []
