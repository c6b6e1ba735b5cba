"""
Event ingestion pipeline: turns backend pushes into envelopes and runs them
through the session's handlers.
"""
import json
import sqlite3
import time
from typing import Any, Callable, Iterable, List, Optional

from .backend import Backend, Unlisten
from .errors import MalformedEvent
from .handler import HandlerRegistry
from .types import Envelope

Decoder = Callable[[str, Any], Envelope]


class EventPipeline:
    """Subscribes to backend events and processes each one to completion.

    Events are handled synchronously inside the backend callback, in
    delivery order. A MalformedEvent raised by the decoder or by any handler
    drops the event; deltas are only applied by the project handler, after
    validation, so a dropped event leaves no partial state.
    """

    def __init__(self, db: sqlite3.Connection, handlers: HandlerRegistry,
                 decoder: Decoder, event_names: Iterable[str], verbose: bool = False):
        self.db = db
        self.handlers = handlers
        self.decoder = decoder
        self.event_names = list(event_names)
        self.verbose = verbose
        self.processed_count = 0
        self.dropped_count = 0
        self._unlisteners: List[Unlisten] = []
        self._attached = False

    @property
    def attached(self) -> bool:
        return self._attached

    def log(self, message: str) -> None:
        print(f"[pipeline] {message}")

    def log_envelope(self, action: str, envelope: Envelope) -> None:
        """Log envelope details in verbose mode."""
        if self.verbose:
            envelope_str = json.dumps(envelope, default=str)
            if len(envelope_str) > 500:
                envelope_str = envelope_str[:500] + "..."
            self.log(f"{action}: {envelope_str}")

    def attach(self, backend: Backend) -> None:
        """Listen to every known event name until detach()."""
        if self._attached:
            raise RuntimeError("Pipeline is already attached to a backend")
        for name in self.event_names:
            self._unlisteners.append(backend.listen(name, self._make_callback(name)))
        self._attached = True
        if self.verbose:
            self.log(f"Listening to {len(self.event_names)} events")

    def detach(self) -> None:
        """Release every subscription. Late deliveries are ignored."""
        self._attached = False
        unlisteners, self._unlisteners = self._unlisteners, []
        for unlisten in unlisteners:
            unlisten()

    def _make_callback(self, name: str) -> Callable[[Any], None]:
        def callback(payload: Any) -> None:
            if not self._attached:
                if self.verbose:
                    self.log(f"Ignoring {name} after detach")
                return
            self.ingest(name, payload)
        return callback

    def ingest(self, event_name: str, payload: Any) -> Optional[Envelope]:
        """
        Decode and process one backend event.

        Returns the processed envelope, or None if the event was dropped.
        """
        try:
            envelope = self.decoder(event_name, payload)
            envelope['received_at'] = int(time.time() * 1000)
            self.log_envelope("RECEIVED", envelope)
            self.processed_count += 1
            self.handlers.process_envelope(envelope, self.db)
        except MalformedEvent as e:
            self.dropped_count += 1
            self.log(f"Dropping event: {e}")
            return None
        return envelope

