"""
Handler base class and registry for pipeline processing.
"""
from abc import ABC, abstractmethod
from typing import List, Dict
import sqlite3
from core.types import Envelope


class Handler(ABC):
    """Base class for all handlers in the pipeline."""

    @abstractmethod
    def filter(self, envelope: Envelope) -> bool:
        """
        Return True if this handler should process the envelope.
        This is how handlers subscribe to specific envelope traits.
        """
        pass

    @abstractmethod
    def process(self, envelope: Envelope, db: sqlite3.Connection) -> List[Envelope]:
        """
        Process the envelope and emit zero or more new envelopes.
        Can modify the database as needed.
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Handler name for logging/debugging."""
        pass


class HandlerRegistry:
    """Ordered set of handlers owned by one session."""

    def __init__(self, verbose: bool = False):
        self._handlers: List[Handler] = []
        self._handler_map: Dict[str, Handler] = {}
        self.verbose = verbose

    def register(self, handler: Handler) -> None:
        """Register a handler. Handlers run in registration order."""
        if handler.name in self._handler_map:
            raise ValueError(f"Handler already registered: {handler.name}")
        self._handlers.append(handler)
        self._handler_map[handler.name] = handler

    def process_envelope(self, envelope: Envelope, db: sqlite3.Connection) -> List[Envelope]:
        """
        Pass envelope through all matching handlers.
        Returns all new envelopes emitted by handlers.
        """
        all_emitted: List[Envelope] = []

        for handler in self._handlers:
            if handler.filter(envelope):
                if self.verbose:
                    print(f"[{handler.name}] Processing: {envelope.get('event_type')}")
                emitted = handler.process(envelope, db)
                if emitted:
                    if self.verbose:
                        print(f"[{handler.name}] Emitted {len(emitted)} envelopes")
                    all_emitted.extend(emitted)

        return all_emitted

    def names(self) -> List[str]:
        return [h.name for h in self._handlers]
