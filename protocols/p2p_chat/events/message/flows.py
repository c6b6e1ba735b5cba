"""
Flows for message operations.
"""
from __future__ import annotations

import uuid as uuid_lib
from typing import Any, Dict

from core.errors import BackendCallFailed
from core.flows import FlowCtx, flow_op, now_iso
from protocols.p2p_chat import client


@flow_op()  # Registers as 'message.send'
async def send(params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Append the local echo, then relay the message to the backend.

    The echo is visible before the backend answers. If the backend rejects
    the send the echo stays (messages are immutable) and the mutation is
    recorded as failed before the error propagates.
    """
    ctx = FlowCtx.from_params(params)
    msg = params.get('msg', '')
    topic = params.get('topic', '')
    peer_id = params.get('peer_id', '')

    if not msg:
        raise ValueError('msg is required for send_message')
    if not topic:
        raise ValueError('topic is required for send_message')

    message_uuid = params.get('uuid') or str(uuid_lib.uuid4())

    echo = {
        'uuid': message_uuid,
        'topic': topic,
        'sender': ctx.config.local_sender_label,
        'content': msg,
        'timestamp': now_iso(),
        'own': 1
    }
    ctx.begin_mutation('message', message_uuid, [{
        'op': 'insert',
        'table': 'messages',
        'data': echo,
        'where': {}
    }])

    try:
        await client.send_message(ctx.gateway, {
            'msg': msg,
            'topic': topic,
            'peer_id': peer_id,
            'uuid': message_uuid,
        })
    except BackendCallFailed as e:
        ctx.fail_mutation('message', message_uuid, e.message)
        raise

    ctx.confirm_mutation('message', message_uuid)

    return {
        'ids': {'message': message_uuid},
        'data': {
            'uuid': message_uuid,
            'topic': topic,
            'content': msg,
            'messages': ctx.query('message.get', {'topic': topic, 'limit': 50}),
        },
    }
