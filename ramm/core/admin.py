"""
Pool lifecycle and capability-gated administration.

Administrative calls take an explicit capability object. A capability is
bound to one pool at creation time and the pool stores its id:

- ``AdminCap``: every setter, fee collection, asset registration.
- ``NewAssetCap``: asset registration and initialization only; the pool
  forgets it when it is initialized, which freezes the asset set.

Validation order is fixed: a capability issued for a different pool fails
with ``CapabilityMismatch``; a capability for this pool that is not the one
the pool holds fails with ``NotAuthorized``.

Every function is pure: it returns a new ``PoolState`` and never touches the
one it was given.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from ..state.canonical import hash_canonical
from ..state.pool import Address, AssetId, AssetSlot, PoolState
from .config import DEFAULT_CONFIG, MIN_ASSETS, RammConfig
from .errors import (
    CapabilityMismatch,
    InvariantViolation,
    NotAuthorized,
    PoolAlreadyInitialized,
    PoolNotInitialized,
)
from .invariants import check_all

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdminCap:
    pool_id: str
    cap_id: str


@dataclass(frozen=True)
class NewAssetCap:
    pool_id: str
    cap_id: str


def compute_pool_id(fee_collector: Address, salt: str) -> str:
    """Deterministic pool id: H("ramm:PoolId:v1\\0" || canonical_json(...))."""
    return hash_canonical("PoolId", {"fee_collector": fee_collector, "salt": salt})


def new_pool(
    fee_collector: Address,
    *,
    salt: Optional[str] = None,
) -> Tuple[PoolState, AdminCap, NewAssetCap]:
    """Create an empty, uninitialized pool and the two capabilities that control it."""
    if not isinstance(fee_collector, str) or not fee_collector:
        raise ValueError("fee_collector must be a non-empty str")
    pool_id = compute_pool_id(fee_collector, salt if salt is not None else secrets.token_hex(16))
    admin_cap = AdminCap(pool_id=pool_id, cap_id="0x" + secrets.token_hex(32))
    new_asset_cap = NewAssetCap(pool_id=pool_id, cap_id="0x" + secrets.token_hex(32))
    state = PoolState(
        pool_id=pool_id,
        fee_collector=fee_collector,
        admin_cap_id=admin_cap.cap_id,
        new_asset_cap_id=new_asset_cap.cap_id,
    )
    logger.info("created pool %s (fee collector %s)", pool_id, fee_collector)
    return state, admin_cap, new_asset_cap


# ---------------------------------------------------------------------------
# Capability checks
# ---------------------------------------------------------------------------

def require_admin(state: PoolState, cap: AdminCap) -> None:
    if not isinstance(cap, AdminCap):
        raise NotAuthorized("an AdminCap is required")
    if cap.pool_id != state.pool_id:
        raise CapabilityMismatch(f"capability belongs to pool {cap.pool_id}, not {state.pool_id}")
    if cap.cap_id != state.admin_cap_id:
        raise NotAuthorized("capability is not this pool's admin capability")


def require_new_asset_cap(state: PoolState, cap: NewAssetCap) -> None:
    if not isinstance(cap, NewAssetCap):
        raise NotAuthorized("a NewAssetCap is required")
    if cap.pool_id != state.pool_id:
        raise CapabilityMismatch(f"capability belongs to pool {cap.pool_id}, not {state.pool_id}")
    if state.initialized:
        raise PoolAlreadyInitialized("the asset set is frozen once the pool is initialized")
    if cap.cap_id != state.new_asset_cap_id:
        raise NotAuthorized("capability is not this pool's new-asset capability")


def _checked(state: PoolState, config: RammConfig) -> PoolState:
    violations = check_all(state, config)
    if violations:
        raise InvariantViolation(violations)
    return state


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

def add_asset(
    state: PoolState,
    admin_cap: AdminCap,
    new_asset_cap: NewAssetCap,
    *,
    asset: AssetId,
    oracle_reference: str,
    minimum_trade_amount: int,
    decimals: int,
    config: RammConfig = DEFAULT_CONFIG,
) -> PoolState:
    """Register a new asset slot. Only possible before initialization."""
    require_admin(state, admin_cap)
    require_new_asset_cap(state, new_asset_cap)
    if asset in state.asset_ids:
        raise ValueError(f"asset already registered: {asset}")
    if state.asset_count >= config.max_assets:
        raise ValueError(f"pool already holds the maximum of {config.max_assets} assets")
    slot = AssetSlot(
        asset=asset,
        index=state.asset_count,
        decimals=decimals,
        minimum_trade_amount=minimum_trade_amount,
        oracle_reference=oracle_reference,
    )
    logger.info("pool %s: added asset %s at index %d", state.pool_id, asset, slot.index)
    return _checked(state.with_slots(state.assets + (slot,)), config)


def initialize(
    state: PoolState,
    admin_cap: AdminCap,
    new_asset_cap: NewAssetCap,
    config: RammConfig = DEFAULT_CONFIG,
) -> PoolState:
    """Freeze the asset set and open every asset for deposits."""
    require_admin(state, admin_cap)
    require_new_asset_cap(state, new_asset_cap)
    if state.asset_count < MIN_ASSETS:
        raise ValueError(f"a pool needs at least {MIN_ASSETS} assets, has {state.asset_count}")
    slots = tuple(replace(slot, deposits_enabled=True) for slot in state.assets)
    logger.info("pool %s: initialized with %d assets", state.pool_id, len(slots))
    return _checked(
        replace(state, assets=slots, initialized=True, new_asset_cap_id=""), config
    )


# ---------------------------------------------------------------------------
# Setters
# ---------------------------------------------------------------------------

def set_fee_collector(state: PoolState, cap: AdminCap, fee_collector: Address) -> PoolState:
    require_admin(state, cap)
    if not isinstance(fee_collector, str) or not fee_collector:
        raise ValueError("fee_collector must be a non-empty str")
    logger.info("pool %s: fee collector set to %s", state.pool_id, fee_collector)
    return replace(state, fee_collector=fee_collector)


def set_minimum_trade_amount(
    state: PoolState, cap: AdminCap, asset: AssetId, minimum_trade_amount: int
) -> PoolState:
    require_admin(state, cap)
    slot = state.slot(asset)
    logger.info(
        "pool %s: minimum trade amount of %s set to %d", state.pool_id, asset, minimum_trade_amount
    )
    return state.with_slot(replace(slot, minimum_trade_amount=minimum_trade_amount))


def _set_deposits(state: PoolState, cap: AdminCap, asset: AssetId, enabled: bool) -> PoolState:
    require_admin(state, cap)
    if not state.initialized:
        raise PoolNotInitialized("deposit flags can only change after initialization")
    slot = state.slot(asset)
    logger.info(
        "pool %s: deposits for %s %s", state.pool_id, asset, "enabled" if enabled else "disabled"
    )
    return state.with_slot(replace(slot, deposits_enabled=enabled))


def enable_deposits(state: PoolState, cap: AdminCap, asset: AssetId) -> PoolState:
    return _set_deposits(state, cap, asset, True)


def disable_deposits(state: PoolState, cap: AdminCap, asset: AssetId) -> PoolState:
    return _set_deposits(state, cap, asset, False)


def set_oracle_reference(
    state: PoolState, cap: AdminCap, asset: AssetId, oracle_reference: str
) -> PoolState:
    require_admin(state, cap)
    slot = state.slot(asset)
    logger.info("pool %s: oracle for %s set to %s", state.pool_id, asset, oracle_reference)
    return state.with_slot(replace(slot, oracle_reference=oracle_reference))


def collect_fees(state: PoolState, cap: AdminCap) -> Tuple[PoolState, Dict[AssetId, int]]:
    """Zero every asset's accrued protocol fees and return what was collected (native units)."""
    require_admin(state, cap)
    collected = {slot.asset: slot.collected_protocol_fees for slot in state.assets}
    slots = tuple(replace(slot, collected_protocol_fees=0) for slot in state.assets)
    return state.with_slots(slots), collected
