"""
Interfaces the pool consumes from its host environment.

- ``OracleFeed``: one price reading per feed id (the asset's oracle reference).
- ``ValueTransfer``: custody of deposited assets and LP-share accounting for
  external parties. Pool holdings sit under the ``custody`` account.
- ``EventSink``: receives one ``PoolEvent`` per committed operation.

The shell checks availability up front and then treats transfers as
infallible; implementations raise ``ValueError`` if asked to move what is
not there.
"""

from __future__ import annotations

from typing import Dict, Mapping, Protocol, runtime_checkable

from ..core.oracle import OracleReading
from ..state.pool import Address, AssetId
from .events import PoolEvent


@runtime_checkable
class OracleFeed(Protocol):
    def read(self, feed_id: str) -> OracleReading: ...


@runtime_checkable
class ValueTransfer(Protocol):
    custody: Address

    def balance_of(self, party: Address, asset: AssetId) -> int: ...

    def lp_balance_of(self, party: Address, pool_id: str, asset: AssetId) -> int: ...

    def receive(self, party: Address, asset: AssetId, amount: int) -> None: ...

    def send(self, party: Address, asset: AssetId, amount: int) -> None: ...

    def mint_lp(self, party: Address, pool_id: str, asset: AssetId, shares: int) -> None: ...

    def burn_lp(self, party: Address, pool_id: str, asset: AssetId, shares: int) -> None: ...


@runtime_checkable
class EventSink(Protocol):
    def emit(self, event: PoolEvent) -> None: ...


class StaticOracleFeed:
    """In-memory feed for simulations and tests: readings are set explicitly."""

    def __init__(self, readings: Mapping[str, OracleReading] | None = None) -> None:
        self._readings: Dict[str, OracleReading] = dict(readings or {})

    def set(self, feed_id: str, price: int, decimals: int, timestamp: int) -> None:
        self._readings[feed_id] = OracleReading(price=price, decimals=decimals, timestamp=timestamp)

    def read(self, feed_id: str) -> OracleReading:
        try:
            return self._readings[feed_id]
        except KeyError:
            raise KeyError(f"no reading for feed {feed_id}") from None
