"""
Core flow helpers for readable orchestrations.

Flows should:
- Validate their params before touching any state
- Query via query registry (read-only)
- Write state only as deltas, recording optimistic writes as mutations
- Reach the backend only through the gateway
- Return a result dict
"""
from __future__ import annotations

import importlib
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from core.config import ChatConfig
from core.deltas import DeltaApplicator
from core.gateway import CommandGateway
from core.status import StatusNotifier
from core.types import Delta, MutationState

FlowFunc = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class FlowCtx:
    db: sqlite3.Connection
    gateway: CommandGateway
    notifier: StatusNotifier
    config: ChatConfig

    @staticmethod
    def from_params(params: Dict[str, Any]) -> "FlowCtx":
        db = params.get('_db')
        gateway = params.get('_gateway')
        notifier = params.get('_notifier')
        config = params.get('_config')
        if db is None or gateway is None or notifier is None or config is None:
            raise ValueError("FlowCtx missing required context (_db, _gateway, _notifier, _config)")
        return FlowCtx(db=db, gateway=gateway, notifier=notifier, config=config)

    def query(self, query_id: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return query(self, query_id, params)

    async def call(self, command: str, args: Optional[Dict[str, Any]] = None,
                   timeout_ms: int = 0) -> Any:
        return await self.gateway.call(command, args, timeout_ms=timeout_ms)

    def apply(self, deltas: List[Delta]) -> None:
        """Apply deltas atomically."""
        if deltas:
            DeltaApplicator.apply_batch(deltas, self.db)

    # Optimistic mutations

    def begin_mutation(self, kind: str, key: str, deltas: Iterable[Delta] = ()) -> None:
        """Apply an optimistic change and record it as pending, in one transaction."""
        ts = now_iso()
        self.apply(list(deltas) + [{
            'op': 'upsert',
            'table': 'pending_mutations',
            'data': {'kind': kind, 'key': key, 'state': 'pending', 'error': None,
                     'created_at': ts, 'updated_at': ts},
            'key': ['kind', 'key'],
        }])

    def confirm_mutation(self, kind: str, key: str) -> None:
        self._settle(kind, key, 'confirmed', None, ())

    def fail_mutation(self, kind: str, key: str, error: str,
                      deltas: Iterable[Delta] = ()) -> None:
        """Mark a mutation failed, applying any compensating deltas with it."""
        self._settle(kind, key, 'failed', error, deltas)

    def _settle(self, kind: str, key: str, state: MutationState, error: Optional[str],
                deltas: Iterable[Delta]) -> None:
        self.apply(list(deltas) + [{
            'op': 'update',
            'table': 'pending_mutations',
            'data': {'state': state, 'error': error, 'updated_at': now_iso()},
            'where': {'kind': kind, 'key': key},
        }])


def query(ctx: FlowCtx, query_id: str, params: Optional[Dict[str, Any]] = None) -> Any:
    """
    Execute a read-only query via query registry.
    """
    from core.queries import query_registry
    return query_registry.execute(query_id, params or {}, ctx.db)


class FlowRegistry:
    """Registry for flows (async operation-like functions)."""

    def __init__(self) -> None:
        self._flows: Dict[str, FlowFunc] = {}
        self._discovered: set[str] = set()

    def register(self, op_id: str, func: FlowFunc) -> None:
        self._flows[op_id] = func

    async def execute(self, op_id: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if op_id not in self._flows:
            raise ValueError(f"Unknown flow op: {op_id}")
        return await self._flows[op_id](params)

    def discover(self, protocol_dir: str) -> None:
        """Import every protocols.<name>.events.<family>.flows module so its flows register."""
        protocol_path = Path(protocol_dir)
        if str(protocol_path) in self._discovered:
            return
        events_dir = protocol_path / 'events'
        if events_dir.exists():
            for family_dir in sorted(events_dir.iterdir()):
                if family_dir.is_dir() and (family_dir / 'flows.py').exists():
                    importlib.import_module(f'protocols.{protocol_path.name}.events.{family_dir.name}.flows')
        self._discovered.add(str(protocol_path))


flows_registry = FlowRegistry()


def flow_op(op_id: Optional[str] = None) -> Callable[[FlowFunc], FlowFunc]:
    """
    Decorator to register a flow function as an operation.

    If op_id is not provided, derive it as '<family>.<func_name>' from the module path
    'protocols.<protocol>.events.<family>.flows'.
    """
    def decorator(func: FlowFunc) -> FlowFunc:
        nonlocal op_id
        if op_id is None:
            parts = func.__module__.split('.')
            # Expect: ['protocols', '<protocol>', 'events', '<family>', 'flows']
            family = parts[3] if len(parts) >= 5 else func.__name__
            op_id = f"{family}.{func.__name__}"
        flows_registry.register(op_id, func)
        return func

    return decorator
