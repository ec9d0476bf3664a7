"""Invariant checkers for pool state.

Each function returns True when the invariant holds; ``check_all()`` returns
the list of violated invariant names (empty = all pass). Engines run
``check_all()`` on every post-state and reject the operation on violation,
so a bug can never commit an inconsistent pool.
"""

from __future__ import annotations

from typing import Callable

from ..state.pool import PoolState
from .config import MIN_ASSETS, RammConfig


def inv_balance_iff_supply(s: PoolState) -> bool:
    return all((slot.balance == 0) == (slot.lp_supply == 0) for slot in s.assets)


def inv_asset_count_bounded(s: PoolState, config: RammConfig) -> bool:
    return s.asset_count <= config.max_assets


def inv_initialized_has_min_assets(s: PoolState) -> bool:
    if not s.initialized:
        return True
    return s.asset_count >= MIN_ASSETS


def inv_deposits_only_when_initialized(s: PoolState) -> bool:
    if s.initialized:
        return True
    return not any(slot.deposits_enabled for slot in s.assets)


def inv_no_liquidity_before_initialization(s: PoolState) -> bool:
    if s.initialized:
        return True
    return all(slot.balance == 0 and slot.lp_supply == 0 for slot in s.assets)


def inv_volatility_needs_baseline(s: PoolState) -> bool:
    return all(
        slot.previous_price != 0 or slot.volatility_index == 0 for slot in s.assets
    )


def inv_volatility_not_ahead_of_price(s: PoolState) -> bool:
    return all(
        slot.volatility_timestamp <= slot.previous_price_timestamp for slot in s.assets
    )


_STATE_INVARIANTS: list[tuple[str, Callable[[PoolState], bool]]] = [
    ("balance_iff_supply", inv_balance_iff_supply),
    ("initialized_has_min_assets", inv_initialized_has_min_assets),
    ("deposits_only_when_initialized", inv_deposits_only_when_initialized),
    ("no_liquidity_before_initialization", inv_no_liquidity_before_initialization),
    ("volatility_needs_baseline", inv_volatility_needs_baseline),
    ("volatility_not_ahead_of_price", inv_volatility_not_ahead_of_price),
]


def check_all(s: PoolState, config: RammConfig) -> list[str]:
    """Return names of all violated invariants (empty list = all pass)."""
    violations = [name for name, fn in _STATE_INVARIANTS if not fn(s)]
    if not inv_asset_count_bounded(s, config):
        violations.append("asset_count_bounded")
    return violations
