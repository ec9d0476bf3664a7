"""
In-memory value transfer: asset balances and LP-share balances.

``Ledger`` implements ``ValueTransfer`` for simulations and tests. Asset
balances are keyed by ``(party, asset)`` in native units; LP balances by
``(party, pool_id, asset)`` since every asset of a pool has its own share
supply. Tokens received from parties are held under the ``custody`` account,
and payouts are drawn from it.
"""

from __future__ import annotations

from typing import Dict, Tuple

from ..state.pool import Address, Amount, AssetId


class BalanceTable:
    """
    Sparse table mapping a key tuple -> non-negative amount.

    Zero balances are dropped. Do not rely on dict iteration order; callers
    sort keys explicitly when they serialize.
    """

    def __init__(self) -> None:
        self._balances: Dict[Tuple[str, ...], Amount] = {}

    def get(self, key: Tuple[str, ...]) -> Amount:
        """Get balance for *key*. Returns 0 if not found."""
        return self._balances.get(key, 0)

    def set(self, key: Tuple[str, ...], amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop(key, None)
        else:
            self._balances[key] = amount

    def add(self, key: Tuple[str, ...], delta: int) -> None:
        """Add delta to balance (delta may be negative)."""
        current = self.get(key)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(
                f"Insufficient balance for {key}: {current} + {delta} = {new_balance} < 0"
            )
        self.set(key, new_balance)

    def subtract(self, key: Tuple[str, ...], delta: Amount) -> None:
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        self.add(key, -delta)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"


class Ledger:
    """``ValueTransfer`` backed by two balance tables."""

    def __init__(self, custody: Address = "ramm-pool") -> None:
        self.custody = custody
        self.assets = BalanceTable()
        self.lp = BalanceTable()

    # -- Funding (test/simulation setup) -------------------------------------

    def credit(self, party: Address, asset: AssetId, amount: int) -> None:
        """Mint *amount* native units of *asset* to *party* out of thin air."""
        if amount < 0:
            raise ValueError(f"Credit must be non-negative: {amount}")
        self.assets.add((party, asset), amount)

    # -- ValueTransfer -------------------------------------------------------

    def balance_of(self, party: Address, asset: AssetId) -> int:
        return self.assets.get((party, asset))

    def lp_balance_of(self, party: Address, pool_id: str, asset: AssetId) -> int:
        return self.lp.get((party, pool_id, asset))

    def receive(self, party: Address, asset: AssetId, amount: int) -> None:
        """Move *amount* from *party* into custody."""
        self.assets.subtract((party, asset), amount)
        self.assets.add((self.custody, asset), amount)

    def send(self, party: Address, asset: AssetId, amount: int) -> None:
        """Pay *amount* out of custody to *party*."""
        self.assets.subtract((self.custody, asset), amount)
        self.assets.add((party, asset), amount)

    def mint_lp(self, party: Address, pool_id: str, asset: AssetId, shares: int) -> None:
        if shares < 0:
            raise ValueError(f"Shares must be non-negative: {shares}")
        self.lp.add((party, pool_id, asset), shares)

    def burn_lp(self, party: Address, pool_id: str, asset: AssetId, shares: int) -> None:
        self.lp.subtract((party, pool_id, asset), shares)

    def __repr__(self) -> str:
        return f"Ledger(custody={self.custody!r}, {self.assets!r}, lp={self.lp!r})"
