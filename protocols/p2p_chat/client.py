"""
Typed client helpers for the p2p chat backend commands.

These wrappers provide simple, mypy-checkable interfaces over
CommandGateway.call so call sites get param/result type safety and the
wire names and argument shapes live in one place.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, TypedDict, cast
from typing_extensions import NotRequired

from core.errors import BackendCallFailed

from typing import TYPE_CHECKING
if TYPE_CHECKING:  # Avoid runtime import cycles
    from core.gateway import CommandGateway


class CommandName(str, Enum):
    """Closed set of backend commands, by wire name."""
    SEND_MESSAGE = "send_message"
    CONNECT_TO_PEER = "connect_to_peer"
    GET_CONNECTED_PEERS = "get_connected_peers"
    GET_MY_INFO = "get_my_info"
    ADD_TOPIC = "add_topic"
    ADD_CHANNEL = "add_channel"
    GET_CHANNELS = "get_channels"


COMMANDS = [c.value for c in CommandName]


# =========
# Messages
# =========

class SendMessageParams(TypedDict):
    msg: str
    topic: str
    peer_id: str
    uuid: NotRequired[str]


async def send_message(gateway: 'CommandGateway', params: SendMessageParams) -> Any:
    return await gateway.call(CommandName.SEND_MESSAGE.value, cast(Dict[str, Any], params))


# ======
# Peers
# ======

async def connect_to_peer(gateway: 'CommandGateway', address: str) -> Any:
    """Dial a peer by multiaddress. Blank addresses never reach the backend."""
    if not address or not address.strip():
        raise ValueError('address is required for connect_to_peer')
    return await gateway.call(CommandName.CONNECT_TO_PEER.value, {'address': address.strip()})


async def get_connected_peers(gateway: 'CommandGateway') -> Any:
    """Request a peers-list event."""
    return await gateway.call(CommandName.GET_CONNECTED_PEERS.value, {})


async def get_my_info(gateway: 'CommandGateway') -> Any:
    """Request a my-info event."""
    return await gateway.call(CommandName.GET_MY_INFO.value, {})


# =========
# Channels
# =========

class ChannelRecord(TypedDict):
    topic: str
    uuid: str
    last_message_uuid: Optional[str]


async def add_topic(gateway: 'CommandGateway', uuid: str, timeout_ms: int = 0) -> Any:
    """Subscribe the backend to a topic (channels are addressed by uuid)."""
    return await gateway.call(CommandName.ADD_TOPIC.value, {'topic': uuid}, timeout_ms=timeout_ms)


async def add_channel(gateway: 'CommandGateway', topic: str, uuid: str) -> Any:
    """Persist a channel record."""
    return await gateway.call(CommandName.ADD_CHANNEL.value, {'topic': topic, 'uuid': uuid})


async def get_channels(gateway: 'CommandGateway') -> List[ChannelRecord]:
    """Load persisted channel records."""
    command = CommandName.GET_CHANNELS.value
    result = await gateway.call(command, {})
    if not isinstance(result, list):
        raise BackendCallFailed(command, f"expected a list, got {type(result).__name__}")

    records: List[ChannelRecord] = []
    for item in result:
        if not isinstance(item, dict) or not item.get('uuid') or not isinstance(item.get('topic'), str):
            raise BackendCallFailed(command, f"invalid channel record: {item!r}")
        records.append({
            'topic': item['topic'],
            'uuid': item['uuid'],
            'last_message_uuid': item.get('last_message_uuid'),
        })
    return records
