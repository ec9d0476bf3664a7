"""Per-asset volatility tracking.

Each asset keeps a decaying record of recent relative price movement:

- ``change = |p - previous_price| / previous_price`` (skipped on the first
  observation, when there is no baseline yet);
- within ``tau`` seconds of the last volatility update the change is added to
  the index, otherwise the window has expired and the index restarts at
  ``change``;
- the baseline price, its timestamp and the volatility timestamp are always
  overwritten with the new observation.

This is a cheap heuristic that is monotone in recent movement, not a
statistical estimator. The index feeds straight into the fee rate.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Tuple

from ..state.pool import AssetSlot, PoolState
from .config import RammConfig
from .fixed_point import abs_diff, check_word, div
from .oracle import PriceObservation


def relative_change(previous_price: int, price: int) -> int:
    """``|price - previous_price| / previous_price`` at internal scale (0 without a baseline)."""
    if previous_price == 0:
        return 0
    return div(abs_diff(price, previous_price), previous_price)


def observe(slot: AssetSlot, price: int, timestamp: int, config: RammConfig) -> AssetSlot:
    """Fold one normalized price observation into the slot's volatility state."""
    index = slot.volatility_index
    if slot.previous_price != 0:
        change = relative_change(slot.previous_price, price)
        if timestamp - slot.volatility_timestamp <= config.tau:
            index = check_word(index + change, name="volatility index")
        else:
            index = change
    return replace(
        slot,
        previous_price=price,
        previous_price_timestamp=timestamp,
        volatility_index=index,
        volatility_timestamp=timestamp,
    )


def observe_all(
    state: PoolState,
    observations: Tuple[PriceObservation, ...],
    config: RammConfig,
) -> PoolState:
    """Apply one observation per slot (ordered by slot index)."""
    if len(observations) != state.asset_count:
        raise ValueError(
            f"expected {state.asset_count} observations, got {len(observations)}"
        )
    slots = []
    for slot, obs in zip(state.assets, observations):
        if obs.asset != slot.asset:
            raise ValueError(f"observation for {obs.asset} does not match slot {slot.asset}")
        slots.append(observe(slot, obs.price, obs.timestamp, config))
    return state.with_slots(tuple(slots))
