"""
Handler that validates events using their family validators.
"""
from typing import List, Dict
import sqlite3
import importlib
from core.core_types import ValidatorFunc
from core.errors import MalformedEvent
from core.handler import Handler
from core.types import Envelope
from protocols.p2p_chat.events import EVENT_FAMILY


class ValidateHandler(Handler):
    """
    Validates decoded events using their family validators.
    Consumes: envelopes with event_data, not yet validated
    Emits: nothing; marks validated=True or raises MalformedEvent
    """

    def __init__(self) -> None:
        self.validators: Dict[str, ValidatorFunc] = {}
        self._load_validators()

    @property
    def name(self) -> str:
        return "validate"

    def _load_validators(self) -> None:
        for family in sorted(set(EVENT_FAMILY.values())):
            module = importlib.import_module(f"protocols.p2p_chat.events.{family}.validator")
            self.validators[family] = module.validate

    def filter(self, envelope: Envelope) -> bool:
        return (
            'event_data' in envelope and
            not envelope.get('validated', False) and
            not envelope.get('error')
        )

    def process(self, envelope: Envelope, db: sqlite3.Connection) -> List[Envelope]:
        family = envelope.get('event_family', '')
        event_name = envelope.get('event_name', '')

        validator = self.validators.get(family)
        if validator is None:
            raise MalformedEvent(event_name, f"no validator for family {family!r}")

        if not validator(dict(envelope)):
            envelope['error'] = "Validation failed"
            raise MalformedEvent(event_name, "validation failed")

        envelope['validated'] = True
        return []
