"""
Validator for incoming p2p messages.
"""
from typing import Any
from core.core_types import validator
from protocols.p2p_chat.events import validate_event_data


@validator
def validate(envelope: dict[str, Any]) -> bool:
    """
    Validate a message event.

    Checks:
    - Has from, content, timestamp, topic and uuid, all strings
    - uuid and topic are not empty
    """
    event_data = envelope.get('event_data')
    if not isinstance(event_data, dict):
        print(f"[message validator] Missing event_data")
        return False

    if not validate_event_data(envelope.get('event_type', ''), event_data):
        print(f"[message validator] Event data validation failed")
        return False

    if not event_data['uuid']:
        print(f"[message validator] Empty uuid")
        return False

    if not event_data['topic']:
        print(f"[message validator] Empty topic")
        return False

    return True
