"""
Oracle gateway.

The functional core only ever sees already-fetched readings; fetching from a
feed is the imperative shell's job (see ``ramm.integration.interfaces``).

A reading is a ``(price, decimals, timestamp)`` triple whose price is scaled by
``10**decimals``. The gateway rescales it to the internal 12-decimal scale and
rejects readings that are non-positive, stale, from the future, or older than
what the pool has already observed for that asset.

Validation is all-or-nothing: ``read_all`` checks every asset slot of the
pool and fails on the first bad feed, before anything is mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Tuple

from ..state.pool import AssetId, AssetSlot, PoolState
from .config import RammConfig
from .errors import InvalidPrice, StalePrice
from .fixed_point import SCALE, check_word

MAX_ORACLE_DECIMALS = 36


@dataclass(frozen=True)
class OracleReading:
    """Raw feed value, as the feed reports it."""

    price: int
    decimals: int
    timestamp: int

    def __post_init__(self) -> None:
        for name, val in (
            ("price", self.price),
            ("decimals", self.decimals),
            ("timestamp", self.timestamp),
        ):
            if not isinstance(val, int) or isinstance(val, bool):
                raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class PriceObservation:
    """A validated reading, rescaled to the internal scale."""

    asset: AssetId
    price: int
    timestamp: int


def normalize_price(reading: OracleReading) -> int:
    """``price * SCALE / 10**decimals``, truncated."""
    return check_word((reading.price * SCALE) // (10**reading.decimals), name="normalized price")


def is_fresh(price_timestamp: int, current_timestamp: int, max_staleness_seconds: int) -> bool:
    """True if the reading is not from the future and within the staleness window."""
    if price_timestamp > current_timestamp:
        return False
    return (current_timestamp - price_timestamp) <= max_staleness_seconds


def validate_reading(
    slot: AssetSlot,
    reading: OracleReading,
    now: int,
    config: RammConfig,
) -> PriceObservation:
    """Check one reading against freshness and range rules."""
    if reading.price <= 0:
        raise InvalidPrice(slot.asset, f"non-positive price {reading.price}")
    if not (0 <= reading.decimals <= MAX_ORACLE_DECIMALS):
        raise InvalidPrice(slot.asset, f"unsupported price decimals {reading.decimals}")
    if not is_fresh(reading.timestamp, now, config.staleness_threshold):
        raise StalePrice(
            slot.asset,
            f"reading at {reading.timestamp} is not fresh at {now} "
            f"(threshold {config.staleness_threshold}s)",
        )
    if reading.timestamp < slot.previous_price_timestamp:
        raise StalePrice(
            slot.asset,
            f"reading at {reading.timestamp} predates last observation "
            f"at {slot.previous_price_timestamp}",
        )
    price = normalize_price(reading)
    if price == 0:
        raise InvalidPrice(slot.asset, "price rounds to zero at internal scale")
    return PriceObservation(asset=slot.asset, price=price, timestamp=reading.timestamp)


def read_all(
    state: PoolState,
    readings: Mapping[AssetId, OracleReading],
    now: int,
    config: RammConfig,
) -> Tuple[PriceObservation, ...]:
    """Validate one reading per asset slot; result is ordered by slot index."""
    observations = []
    for slot in state.assets:
        reading = readings.get(slot.asset)
        if reading is None:
            raise StalePrice(slot.asset, "no reading supplied")
        observations.append(validate_reading(slot, reading, now, config))
    return tuple(observations)
