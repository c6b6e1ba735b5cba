"""
Flows for peer operations.
"""
from __future__ import annotations

from typing import Any, Dict

from core.flows import FlowCtx, flow_op
from protocols.p2p_chat import client


@flow_op()  # Registers as 'peer.connect'
async def connect(params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Dial a peer by multiaddress.

    The registry is not touched here; the peer appears when the backend
    reports peer-connected.
    """
    ctx = FlowCtx.from_params(params)
    address = params.get('address', '')
    await client.connect_to_peer(ctx.gateway, address)
    return {'ids': {}, 'data': {'address': address.strip()}}


@flow_op()  # Registers as 'peer.refresh'
async def refresh(params: Dict[str, Any]) -> Dict[str, Any]:
    """Ask the backend for its connected peers (answered by peers-list)."""
    ctx = FlowCtx.from_params(params)
    await client.get_connected_peers(ctx.gateway)
    return {'ids': {}, 'data': {'peers': ctx.query('peer.get')}}
