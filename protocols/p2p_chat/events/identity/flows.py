"""
Flows for identity operations.
"""
from __future__ import annotations

from typing import Any, Dict

from core.flows import FlowCtx, flow_op
from protocols.p2p_chat import client


@flow_op()  # Registers as 'identity.refresh'
async def refresh(params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Ask the backend to re-announce the local identity.

    The snapshot arrives asynchronously as a my-info event.
    """
    ctx = FlowCtx.from_params(params)
    await client.get_my_info(ctx.gateway)
    return {'ids': {}, 'data': {'requested': True}}
