"""Test the event pipeline's attach/detach and drop behaviour."""

from typing import List

from core.db import get_connection
from core.errors import MalformedEvent
from core.handler import Handler, HandlerRegistry
from core.network_simulator import BackendSimulator
from core.pipeline import EventPipeline


def decode(event_name, payload):
    if event_name not in ('ping', 'pong'):
        raise MalformedEvent(event_name, "unknown event name")
    if not isinstance(payload, dict):
        raise MalformedEvent(event_name, "expected an object")
    return {'event_name': event_name, 'event_type': event_name, 'event_data': dict(payload)}


class RecordingHandler(Handler):
    def __init__(self):
        self.seen: List[str] = []

    @property
    def name(self) -> str:
        return "recording"

    def filter(self, envelope) -> bool:
        return True

    def process(self, envelope, db):
        if envelope['event_data'].get('bad'):
            raise MalformedEvent(envelope['event_name'], "bad flag")
        self.seen.append(envelope['event_data']['n'])
        return []


def make_pipeline():
    handler = RecordingHandler()
    registry = HandlerRegistry()
    registry.register(handler)
    pipeline = EventPipeline(get_connection(), registry, decode, ['ping', 'pong'])
    return pipeline, handler


def test_attach_listens_to_every_name() -> None:
    backend = BackendSimulator()
    pipeline, _ = make_pipeline()

    pipeline.attach(backend)
    assert backend.listener_count('ping') == 1
    assert backend.listener_count('pong') == 1

    pipeline.detach()
    assert backend.listener_count() == 0
    assert not pipeline.attached


def test_events_processed_in_delivery_order() -> None:
    backend = BackendSimulator()
    pipeline, handler = make_pipeline()
    pipeline.attach(backend)

    backend.emit('ping', {'n': 1})
    backend.emit('pong', {'n': 2})
    backend.emit('ping', {'n': 3}, times=2)

    assert handler.seen == [1, 2, 3, 3]
    assert pipeline.processed_count == 4


def test_malformed_events_dropped(capsys) -> None:
    pipeline, handler = make_pipeline()

    assert pipeline.ingest('ping', 'bare') is None
    assert pipeline.ingest('unknown', {'n': 1}) is None
    assert pipeline.ingest('ping', {'bad': True}) is None
    assert pipeline.ingest('ping', {'n': 7}) is not None

    assert handler.seen == [7]
    assert pipeline.dropped_count == 3
    out = capsys.readouterr().out
    assert "Dropping event: Malformed event 'unknown': unknown event name" in out


def test_late_delivery_after_detach_ignored() -> None:
    backend = BackendSimulator()
    pipeline, handler = make_pipeline()
    pipeline.attach(backend)
    callback = backend.listeners['ping'][0]

    pipeline.detach()
    callback({'n': 1})
    assert handler.seen == []


def test_double_attach_rejected() -> None:
    import pytest

    backend = BackendSimulator()
    pipeline, _ = make_pipeline()
    pipeline.attach(backend)
    with pytest.raises(RuntimeError):
        pipeline.attach(backend)


def test_handler_registry_rejects_duplicate_names() -> None:
    import pytest

    registry = HandlerRegistry()
    registry.register(RecordingHandler())
    with pytest.raises(ValueError):
        registry.register(RecordingHandler())
