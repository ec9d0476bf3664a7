"""
RAMM pool adapter.

This is the imperative shell around the functional core:
- Fetches one oracle reading per asset from the configured ``OracleFeed``.
- Runs the pure trade / liquidity / admin functions against the current
  ``PoolState``.
- Checks the counterparty and the custody account can cover every transfer,
  performs the value transfers and only then swaps in the new state and emits
  one ``PoolEvent``.

Failures raise ``RammError``; the pool state, the ledger and the event sink
are untouched when they do.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

from ..core import admin
from ..core.config import DEFAULT_CONFIG, RammConfig
from ..core.errors import InsufficientFunds
from ..core.liquidity import LiquidityOutcome, LiquidityResult, deposit, withdraw
from ..core.oracle import OracleReading
from ..core.trade import TradeOutcome, TradeRequest, TradeResult, execute_trade
from ..state.pool import Address, AssetId, PoolState
from ..state.snapshot import compute_state_root
from .events import EventKind, PoolEvent, pool_state_event
from .interfaces import EventSink, OracleFeed, ValueTransfer

logger = logging.getLogger(__name__)


def _wall_clock() -> int:
    return int(time.time())


def _raise_rejection(op: str, result: TradeResult | LiquidityResult) -> None:
    if not result.accepted:
        assert result.error is not None
        logger.debug("%s rejected: %s (%s)", op, result.rejection, result.error)
        raise result.error


class RammPool:
    """One live pool wired to its oracle, custody and event sink."""

    def __init__(
        self,
        state: PoolState,
        *,
        oracle: OracleFeed,
        transfer: ValueTransfer,
        sink: EventSink,
        config: RammConfig = DEFAULT_CONFIG,
        clock: Callable[[], int] = _wall_clock,
    ) -> None:
        self._state = state
        self.oracle = oracle
        self.transfer = transfer
        self.sink = sink
        self.config = config
        self.clock = clock

    @property
    def state(self) -> PoolState:
        return self._state

    @property
    def pool_id(self) -> str:
        return self._state.pool_id

    def state_root(self) -> str:
        return compute_state_root(self._state)

    def _require_custody(self, op: str, payouts: Dict[AssetId, int]) -> None:
        """Every payout must be covered before the first transfer is made."""
        custody = self.transfer.custody
        for asset, amount in payouts.items():
            held = self.transfer.balance_of(custody, asset)
            if held < amount:
                logger.debug("%s rejected: custody holds %d %s", op, held, asset)
                raise InsufficientFunds(f"custody holds {held} {asset}, {op} pays out {amount}")

    # -- Oracle --------------------------------------------------------------

    def read_prices(self) -> Dict[AssetId, OracleReading]:
        """One reading per asset; feeds without a reading are left out (the core rejects them)."""
        readings: Dict[AssetId, OracleReading] = {}
        for slot in self._state.assets:
            try:
                readings[slot.asset] = self.oracle.read(slot.oracle_reference)
            except KeyError:
                logger.debug("no reading for %s (feed %s)", slot.asset, slot.oracle_reference)
                continue
        return readings

    # -- Trades --------------------------------------------------------------

    def trade_amount_in(
        self,
        trader: Address,
        asset_in: AssetId,
        asset_out: AssetId,
        amount_in: int,
        min_amount_out: int,
    ) -> TradeOutcome:
        return self._trade(trader, TradeRequest.amount_in(asset_in, asset_out, amount_in, min_amount_out))

    def trade_amount_out(
        self,
        trader: Address,
        asset_in: AssetId,
        asset_out: AssetId,
        amount_out: int,
        max_amount_in: int,
    ) -> TradeOutcome:
        return self._trade(trader, TradeRequest.amount_out(asset_in, asset_out, amount_out, max_amount_in))

    def _trade(self, trader: Address, request: TradeRequest) -> TradeOutcome:
        now = self.clock()
        result = execute_trade(self._state, request, self.read_prices(), now, self.config)
        _raise_rejection("trade", result)
        assert result.state is not None and result.outcome is not None
        outcome = result.outcome

        available = self.transfer.balance_of(trader, outcome.asset_in)
        if available < outcome.amount_in:
            logger.debug("trade rejected: %s holds %d %s", trader, available, outcome.asset_in)
            raise InsufficientFunds(
                f"{trader} holds {available} {outcome.asset_in}, trade needs {outcome.amount_in}"
            )

        self._require_custody("trade", {outcome.asset_out: outcome.amount_out})
        self.transfer.receive(trader, outcome.asset_in, outcome.amount_in)
        self.transfer.send(trader, outcome.asset_out, outcome.amount_out)
        self._state = result.state
        self._emit(
            EventKind.TRADE,
            now,
            {
                "trader": trader,
                "mode": outcome.mode.value,
                "asset_in": outcome.asset_in,
                "asset_out": outcome.asset_out,
                "amount_in": outcome.amount_in,
                "amount_out": outcome.amount_out,
                "price_in": outcome.price_in,
                "price_out": outcome.price_out,
                "fee_rate": outcome.fee.rate,
                "net_fee": outcome.fee.net_fee,
                "protocol_fee": outcome.fee.protocol_fee_native,
                "lp_fee": outcome.fee.lp_share,
            },
        )
        logger.debug(
            "trade %s: %d %s -> %d %s (protocol fee %d)",
            self.pool_id,
            outcome.amount_in,
            outcome.asset_in,
            outcome.amount_out,
            outcome.asset_out,
            outcome.fee.protocol_fee_native,
        )
        return outcome

    # -- Liquidity -----------------------------------------------------------

    def deposit(self, provider: Address, asset: AssetId, amount: int) -> LiquidityOutcome:
        available = self.transfer.balance_of(provider, asset)
        if available < amount:
            logger.debug("deposit rejected: %s holds %d %s", provider, available, asset)
            raise InsufficientFunds(f"{provider} holds {available} {asset}, deposit needs {amount}")

        now = self.clock()
        result = deposit(self._state, asset, amount, self.read_prices(), now, self.config)
        _raise_rejection("deposit", result)
        assert result.state is not None and result.outcome is not None
        outcome = result.outcome

        self.transfer.receive(provider, asset, outcome.amount)
        self.transfer.mint_lp(provider, self.pool_id, asset, outcome.shares)
        self._state = result.state
        self._emit(EventKind.DEPOSIT, now, self._liquidity_details(provider, outcome))
        logger.debug(
            "deposit %s: %d %s for %d shares", self.pool_id, outcome.amount, asset, outcome.shares
        )
        return outcome

    def withdraw(self, provider: Address, asset: AssetId, shares: int) -> LiquidityOutcome:
        held = self.transfer.lp_balance_of(provider, self.pool_id, asset)
        if held < shares:
            logger.debug("withdrawal rejected: %s holds %d %s shares", provider, held, asset)
            raise InsufficientFunds(f"{provider} holds {held} {asset} shares, withdrawal burns {shares}")

        now = self.clock()
        result = withdraw(self._state, asset, shares, self.read_prices(), now, self.config)
        _raise_rejection("withdrawal", result)
        assert result.state is not None and result.outcome is not None
        outcome = result.outcome

        self._require_custody("withdrawal", {asset: outcome.amount})
        self.transfer.burn_lp(provider, self.pool_id, asset, outcome.shares)
        self.transfer.send(provider, asset, outcome.amount)
        self._state = result.state
        details = self._liquidity_details(provider, outcome)
        details["dust_forfeited"] = outcome.dust_forfeited
        self._emit(EventKind.WITHDRAWAL, now, details)
        logger.debug(
            "withdrawal %s: %d shares for %d %s", self.pool_id, outcome.shares, outcome.amount, asset
        )
        return outcome

    @staticmethod
    def _liquidity_details(provider: Address, outcome: LiquidityOutcome) -> Dict[str, Any]:
        return {
            "provider": provider,
            "asset": outcome.asset,
            "amount": outcome.amount,
            "shares": outcome.shares,
            "price": outcome.price,
            "value": outcome.value,
        }

    # -- Admin ---------------------------------------------------------------

    def collect_fees(self, cap: admin.AdminCap) -> Dict[AssetId, int]:
        """Pay every asset's accrued protocol fees to the fee collector."""
        post, collected = admin.collect_fees(self._state, cap)
        collector = self._state.fee_collector
        payouts = {asset: amount for asset, amount in collected.items() if amount > 0}
        self._require_custody("fee collection", payouts)
        for asset, amount in payouts.items():
            self.transfer.send(collector, asset, amount)
        self._state = post
        now = self.clock()
        self._emit(EventKind.FEE_COLLECTION, now, {"collector": collector, "collected": dict(collected)})
        logger.info("pool %s: collected protocol fees %s to %s", self.pool_id, collected, collector)
        return collected

    def add_asset(
        self,
        admin_cap: admin.AdminCap,
        new_asset_cap: admin.NewAssetCap,
        *,
        asset: AssetId,
        oracle_reference: str,
        minimum_trade_amount: int,
        decimals: int,
    ) -> None:
        self._state = admin.add_asset(
            self._state,
            admin_cap,
            new_asset_cap,
            asset=asset,
            oracle_reference=oracle_reference,
            minimum_trade_amount=minimum_trade_amount,
            decimals=decimals,
            config=self.config,
        )

    def initialize(self, admin_cap: admin.AdminCap, new_asset_cap: admin.NewAssetCap) -> None:
        self._state = admin.initialize(self._state, admin_cap, new_asset_cap, self.config)

    def set_fee_collector(self, cap: admin.AdminCap, fee_collector: Address) -> None:
        self._state = admin.set_fee_collector(self._state, cap, fee_collector)

    def set_minimum_trade_amount(self, cap: admin.AdminCap, asset: AssetId, amount: int) -> None:
        self._state = admin.set_minimum_trade_amount(self._state, cap, asset, amount)

    def enable_deposits(self, cap: admin.AdminCap, asset: AssetId) -> None:
        self._state = admin.enable_deposits(self._state, cap, asset)

    def disable_deposits(self, cap: admin.AdminCap, asset: AssetId) -> None:
        self._state = admin.disable_deposits(self._state, cap, asset)

    def set_oracle_reference(self, cap: admin.AdminCap, asset: AssetId, oracle_reference: str) -> None:
        self._state = admin.set_oracle_reference(self._state, cap, asset, oracle_reference)

    # -- Queries -------------------------------------------------------------

    def query_state(self) -> PoolEvent:
        """Emit and return a snapshot event of the current pool state."""
        return self._emit(EventKind.STATE_QUERY, self.clock(), {"state_root": self.state_root()})

    def _emit(self, kind: EventKind, timestamp: int, details: Optional[Dict[str, Any]]) -> PoolEvent:
        event = pool_state_event(kind, self._state, timestamp, details)
        self.sink.emit(event)
        return event
