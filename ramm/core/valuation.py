"""Oracle-based valuation of pool balances and LP claims.

The imbalance ratio of asset ``k`` compares its per-share balance with the
pool-wide per-share value:

    IR_k = (B_k / L_k) / (sum_j B_j * p_j / sum_j L_j * p_j)

A perfectly balanced pool has every ``IR_k == ONE``. Trades are only allowed
while they keep the traded assets inside ``ONE ± max_imbalance_delta``.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..state.pool import AssetSlot, PoolState
from .fixed_point import div, mul, mul3


def pool_value(state: PoolState, prices: Sequence[int]) -> int:
    """Quote value of every balance held by the pool."""
    return sum(mul(slot.balance, prices[slot.index]) for slot in state.assets)


def lp_value(state: PoolState, prices: Sequence[int]) -> int:
    """Quote value of every outstanding LP share at its issuance ratio."""
    return sum(mul(slot.lp_supply, prices[slot.index]) for slot in state.assets)


def imbalance_ratio(state: PoolState, asset_index: int, prices: Sequence[int]) -> Optional[int]:
    """IR of one asset, or None when it is undefined (no shares or an empty pool)."""
    slot = state.assets[asset_index]
    if slot.lp_supply == 0:
        return None
    total_balance_value = pool_value(state, prices)
    total_lp_value = lp_value(state, prices)
    if total_balance_value == 0 or total_lp_value == 0:
        return None
    per_share = div(slot.balance, slot.lp_supply)
    pool_per_share = div(total_balance_value, total_lp_value)
    if pool_per_share == 0:
        return None
    return div(per_share, pool_per_share)


def share_value(shares: int, slot: AssetSlot, price: int) -> int:
    """Quote value of *shares* LP shares of *slot*."""
    if slot.lp_supply == 0:
        return 0
    return mul3(shares, div(slot.balance, slot.lp_supply), price)
