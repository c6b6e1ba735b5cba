"""Type definitions for the P2P chat client core"""

from typing import TypedDict, Literal, Any

# Base types
EventName = str

# Operation types for deltas
OpType = Literal["insert", "upsert", "update", "delete"]

# Delivery state of an optimistic mutation
MutationState = Literal["pending", "confirmed", "failed"]


# Core envelope structure
class Envelope(TypedDict, total=False):
    """Carries one backend event through the ingestion pipeline"""
    # As delivered by the backend
    event_name: EventName
    payload: Any
    received_at: int

    # Decoded form
    event_type: str
    event_family: str
    event_data: dict[str, Any]

    # Processing flags
    validated: bool
    duplicate: bool
    projected: bool
    notified: bool

    # Projection output
    deltas: list[dict[str, Any]]
    error: str


class Delta(TypedDict, total=False):
    """A single state change emitted by a projector"""
    op: OpType
    table: str
    data: dict[str, Any]
    where: dict[str, Any]
    key: list[str]
    sql: str
    params: list[Any]
