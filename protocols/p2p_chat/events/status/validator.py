"""
Validator for connection status events.
"""
from typing import Any
from core.core_types import validator
from protocols.p2p_chat.events import validate_event_data


@validator
def validate(envelope: dict[str, Any]) -> bool:
    """Status events carry a single string (which may be empty)."""
    event_data = envelope.get('event_data')
    if not isinstance(event_data, dict):
        print(f"[status validator] Missing event_data")
        return False

    if not validate_event_data(envelope.get('event_type', ''), event_data):
        print(f"[status validator] Expected text payload, got {event_data!r}")
        return False

    return True
