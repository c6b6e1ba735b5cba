"""
Flows for channel operations.
"""
from __future__ import annotations

import uuid as uuid_lib
from typing import Any, Dict, List

from core.errors import BackendCallFailed, ChannelAlreadyJoined
from core.flows import FlowCtx, flow_op
from protocols.p2p_chat import client


@flow_op()  # Registers as 'channel.load'
async def load(params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Replace the directory with the persisted channels, then subscribe to
    each one in turn.

    A failing get_channels propagates. A failing subscribe is logged and
    reported under 'failed'; the remaining channels are still subscribed.
    """
    ctx = FlowCtx.from_params(params)
    records = await client.get_channels(ctx.gateway)

    deltas: List[Dict[str, Any]] = [{'op': 'delete', 'table': 'channels', 'where': {}}]
    for record in records:
        deltas.append({
            'op': 'insert',
            'table': 'channels',
            'data': {
                'topic': record['topic'],
                'uuid': record['uuid'],
                'unread_count': 0,
                'last_message_uuid': record['last_message_uuid']
            },
            'where': {}
        })
    ctx.apply(deltas)

    channels = ctx.query('channel.get')
    subscribed: List[str] = []
    failed: List[Dict[str, str]] = []
    for channel in channels:
        try:
            await client.add_topic(ctx.gateway, channel['uuid'],
                                   timeout_ms=ctx.config.subscribe_timeout_ms)
        except BackendCallFailed as e:
            print(f"[channel] Failed to subscribe to {channel['topic']} ({channel['uuid']}): {e.message}")
            failed.append({'uuid': channel['uuid'], 'topic': channel['topic'], 'error': e.message})
            continue
        subscribed.append(channel['uuid'])

    if ctx.config.verbose:
        print(f"[channel] Loaded {len(channels)} channels, {len(failed)} failed to subscribe")

    return {
        'ids': {},
        'data': {
            'channels': channels,
            'subscribed': subscribed,
            'failed': failed,
        },
    }


@flow_op()  # Registers as 'channel.create'
async def create(params: Dict[str, Any]) -> Dict[str, Any]:
    """Create a channel under a fresh uuid."""
    ctx = FlowCtx.from_params(params)
    name = (params.get('name') or '').strip()
    if not name:
        raise ValueError('name is required for create_channel')

    channel_uuid = str(uuid_lib.uuid4())
    while ctx.query('channel.exists', {'uuid': channel_uuid}):
        channel_uuid = str(uuid_lib.uuid4())

    return await _add_channel(ctx, name, channel_uuid)


@flow_op()  # Registers as 'channel.join'
async def join(params: Dict[str, Any]) -> Dict[str, Any]:
    """Join an existing channel shared by uuid."""
    ctx = FlowCtx.from_params(params)
    name = (params.get('name') or '').strip()
    channel_uuid = (params.get('uuid') or '').strip()
    if not name:
        raise ValueError('name is required for join_channel')
    if not channel_uuid:
        raise ValueError('uuid is required for join_channel')

    if ctx.query('channel.exists', {'uuid': channel_uuid}):
        raise ChannelAlreadyJoined(channel_uuid)

    return await _add_channel(ctx, name, channel_uuid)


async def _add_channel(ctx: FlowCtx, name: str, channel_uuid: str) -> Dict[str, Any]:
    """Optimistic insert, persist, then subscribe."""
    ctx.begin_mutation('channel', channel_uuid, [{
        'op': 'insert',
        'table': 'channels',
        'data': {
            'topic': name,
            'uuid': channel_uuid,
            'unread_count': 0,
            'last_message_uuid': None
        },
        'where': {}
    }])

    try:
        await client.add_channel(ctx.gateway, name, channel_uuid)
    except BackendCallFailed as e:
        retract = []
        if ctx.config.retract_failed_channels:
            retract = [{'op': 'delete', 'table': 'channels', 'where': {'uuid': channel_uuid}}]
        ctx.fail_mutation('channel', channel_uuid, e.message, retract)
        raise

    # Persisted: the next load resubscribes even if this subscribe fails
    ctx.confirm_mutation('channel', channel_uuid)
    await client.add_topic(ctx.gateway, channel_uuid)

    return {
        'ids': {'channel': channel_uuid},
        'data': {
            'topic': name,
            'uuid': channel_uuid,
            'channels': ctx.query('channel.get'),
        },
    }


@flow_op()  # Registers as 'channel.subscribe'
async def subscribe(params: Dict[str, Any]) -> Dict[str, Any]:
    """Subscribe the backend to a channel without touching the directory."""
    ctx = FlowCtx.from_params(params)
    channel_uuid = params.get('uuid', '')
    if not channel_uuid:
        raise ValueError('uuid is required for add_topic')

    await client.add_topic(ctx.gateway, channel_uuid, timeout_ms=params.get('timeout_ms', 0))
    return {'ids': {}, 'data': {'uuid': channel_uuid}}


@flow_op()  # Registers as 'channel.save'
async def save(params: Dict[str, Any]) -> Dict[str, Any]:
    """Persist a channel record without touching the directory."""
    ctx = FlowCtx.from_params(params)
    topic = params.get('topic', '')
    channel_uuid = params.get('uuid', '')
    if not topic:
        raise ValueError('topic is required for add_channel')
    if not channel_uuid:
        raise ValueError('uuid is required for add_channel')

    await client.add_channel(ctx.gateway, topic, channel_uuid)
    return {'ids': {'channel': channel_uuid}, 'data': {'topic': topic, 'uuid': channel_uuid}}


@flow_op()  # Registers as 'channel.mark_read'
async def mark_read(params: Dict[str, Any]) -> Dict[str, Any]:
    """Reset a channel's unread count. Unknown uuids are a no-op."""
    ctx = FlowCtx.from_params(params)
    channel_uuid = params.get('uuid', '')
    if not channel_uuid:
        raise ValueError('uuid is required for mark_read')

    ctx.apply([{
        'op': 'update',
        'table': 'channels',
        'data': {'unread_count': 0},
        'where': {'uuid': channel_uuid}
    }])
    return {'ids': {}, 'data': {'channels': ctx.query('channel.get', {'uuid': channel_uuid})}}
