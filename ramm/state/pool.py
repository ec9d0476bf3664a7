"""
Pool state for a multi-asset RAMM pool.

A pool is an ordered tuple of per-asset slots plus a little pool-wide
metadata. Assets are addressed by a runtime identifier (e.g. a coin type tag
or a ticker) through the pool's index table; the slot order is fixed once the
pool is initialized.

Units:
- ``balance`` and ``lp_supply`` are internal-scale integers (12 decimals).
- ``minimum_trade_amount`` and ``collected_protocol_fees`` are native units.
- prices are internal-scale quote values per whole unit of the asset.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterator, Tuple

from ..core.errors import UnknownAsset
from ..core.fixed_point import scale_factor

# Type aliases
AssetId = str
Address = str
Amount = int


@dataclass(frozen=True)
class AssetSlot:
    """Everything the pool tracks for one asset."""

    asset: AssetId
    index: int
    decimals: int
    minimum_trade_amount: Amount
    oracle_reference: str
    balance: int = 0
    lp_supply: int = 0
    collected_protocol_fees: Amount = 0
    deposits_enabled: bool = False
    previous_price: int = 0
    previous_price_timestamp: int = 0
    volatility_index: int = 0
    volatility_timestamp: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.asset, str) or not self.asset:
            raise ValueError("asset must be a non-empty str")
        if not isinstance(self.oracle_reference, str) or not self.oracle_reference:
            raise ValueError("oracle_reference must be a non-empty str")
        for name, val in (
            ("index", self.index),
            ("decimals", self.decimals),
            ("minimum_trade_amount", self.minimum_trade_amount),
            ("balance", self.balance),
            ("lp_supply", self.lp_supply),
            ("collected_protocol_fees", self.collected_protocol_fees),
            ("previous_price", self.previous_price),
            ("previous_price_timestamp", self.previous_price_timestamp),
            ("volatility_index", self.volatility_index),
            ("volatility_timestamp", self.volatility_timestamp),
        ):
            if not isinstance(val, int) or isinstance(val, bool):
                raise TypeError(f"{name} must be an int")
            if val < 0:
                raise ValueError(f"{name} must be non-negative: {val}")
        if not isinstance(self.deposits_enabled, bool):
            raise TypeError("deposits_enabled must be a bool")
        # Raises for decimals outside [0, 12].
        scale_factor(self.decimals)

    @property
    def decimal_scale_factor(self) -> int:
        return scale_factor(self.decimals)


@dataclass(frozen=True)
class PoolState:
    """Immutable snapshot of one pool."""

    pool_id: str
    fee_collector: Address
    admin_cap_id: str
    new_asset_cap_id: str = ""
    assets: Tuple[AssetSlot, ...] = ()
    initialized: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.assets, tuple):
            raise TypeError("assets must be a tuple of AssetSlot")
        seen: set[AssetId] = set()
        for pos, slot in enumerate(self.assets):
            if not isinstance(slot, AssetSlot):
                raise TypeError("assets must contain AssetSlot values")
            if slot.index != pos:
                raise ValueError(f"slot index {slot.index} does not match position {pos}")
            if slot.asset in seen:
                raise ValueError(f"duplicate asset in pool: {slot.asset}")
            seen.add(slot.asset)
        if self.initialized and self.new_asset_cap_id:
            raise ValueError("an initialized pool cannot hold a new-asset capability")

    # -- Index table ---------------------------------------------------------

    @property
    def asset_ids(self) -> Tuple[AssetId, ...]:
        return tuple(slot.asset for slot in self.assets)

    @property
    def asset_count(self) -> int:
        return len(self.assets)

    def index_of(self, asset: AssetId) -> int:
        for slot in self.assets:
            if slot.asset == asset:
                return slot.index
        raise UnknownAsset(asset)

    def slot(self, asset: AssetId) -> AssetSlot:
        return self.assets[self.index_of(asset)]

    def __iter__(self) -> Iterator[AssetSlot]:
        return iter(self.assets)

    # -- Functional updates --------------------------------------------------

    def with_slots(self, slots: Tuple[AssetSlot, ...]) -> "PoolState":
        return replace(self, assets=tuple(slots))

    def with_slot(self, slot: AssetSlot) -> "PoolState":
        slots = list(self.assets)
        slots[slot.index] = slot
        return replace(self, assets=tuple(slots))
