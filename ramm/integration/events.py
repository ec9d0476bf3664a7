"""
Pool events.

Exactly one ``PoolEvent`` is emitted per committed trade, deposit, withdrawal,
fee collection or state query; nothing is emitted when an operation fails.
Every event carries the full per-asset picture of the pool after the
operation (balances, LP supplies, collected protocol fees) plus an
operation-specific ``details`` payload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Any, Dict, List

from ..state.canonical import canonical_json_bytes
from ..state.pool import AssetId, PoolState


@unique
class EventKind(Enum):
    TRADE = "trade"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    FEE_COLLECTION = "fee_collection"
    STATE_QUERY = "state_query"


@dataclass(frozen=True)
class PoolEvent:
    kind: EventKind
    pool_id: str
    timestamp: int
    assets: tuple[AssetId, ...]
    balances: tuple[int, ...]
    lp_supplies: tuple[int, ...]
    collected_fees: tuple[int, ...]
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "pool_id": self.pool_id,
            "timestamp": self.timestamp,
            "assets": list(self.assets),
            "balances": list(self.balances),
            "lp_supplies": list(self.lp_supplies),
            "collected_fees": list(self.collected_fees),
            "details": dict(self.details),
        }

    def to_json_bytes(self) -> bytes:
        return canonical_json_bytes(self.to_dict())


def pool_state_event(
    kind: EventKind, state: PoolState, timestamp: int, details: Dict[str, Any] | None = None
) -> PoolEvent:
    """Snapshot *state* into an event of the given kind."""
    return PoolEvent(
        kind=kind,
        pool_id=state.pool_id,
        timestamp=timestamp,
        assets=state.asset_ids,
        balances=tuple(slot.balance for slot in state.assets),
        lp_supplies=tuple(slot.lp_supply for slot in state.assets),
        collected_fees=tuple(slot.collected_protocol_fees for slot in state.assets),
        details=dict(details or {}),
    )


class EventLog:
    """``EventSink`` that keeps every event in memory, in emission order."""

    def __init__(self) -> None:
        self.events: List[PoolEvent] = []

    def emit(self, event: PoolEvent) -> None:
        self.events.append(event)

    def of_kind(self, kind: EventKind) -> List[PoolEvent]:
        return [e for e in self.events if e.kind is kind]

    def __len__(self) -> int:
        return len(self.events)
