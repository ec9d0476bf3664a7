"""Trade engine.

One pure pipeline serves every pool size (2 or N assets) and both entry shapes:

1. Validate: pool initialized, assets registered, every oracle fresh.
2. Observe: fold every asset's price into its volatility state.
3. Price: oracle exchange rate between the two assets, fee on the gross
   outbound notional (see ``fees.compute_fee``).
4. Bound: minimum trade amounts, the caller's slippage limit, outbound
   liquidity and the imbalance-ratio band.
5. Apply: credit the inbound balance, debit the outbound balance by what the
   trader receives plus the narrowed protocol fee, accrue the protocol fee.
6. Check invariants on the post-state.

Pricing, with ``f`` the per-asset scale factor and ``p`` normalized prices:

- amount-in:  ``gross_out = ai * p_in / p_out`` (floor),
  ``amount_out = (gross_out - fee) // f_out``
- amount-out: ``gross_out = ceil(ao / (1 - rate))``,
  ``amount_in = ceil(gross_out * p_out / (p_in * f_in))``

Every rounding step favors the pool. ``execute_trade`` never raises for a
``RammError``: failures come back as a rejected ``TradeResult`` and the input
state is untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, unique
from typing import Mapping, Optional, Tuple

from ..state.pool import AssetId, PoolState
from .config import DEFAULT_CONFIG, RammConfig
from .errors import (
    InsufficientLiquidity,
    ImbalanceRatioExceeded,
    InvariantViolation,
    PoolNotInitialized,
    RammError,
    SlippageExceeded,
    TradeTooSmall,
)
from .fees import FeeQuote, compute_fee, fee_rate
from .fixed_point import ONE, check_word, mul_div, to_internal, to_native
from .invariants import check_all
from .oracle import OracleReading, read_all
from .valuation import imbalance_ratio
from .volatility import observe_all


@unique
class TradeMode(Enum):
    AMOUNT_IN = "amount_in"
    AMOUNT_OUT = "amount_out"


@dataclass(frozen=True)
class TradeRequest:
    """A trade as the caller states it, in native units.

    ``amount`` is the fixed side (input for AMOUNT_IN, output for AMOUNT_OUT);
    ``limit`` is the minimum acceptable output or the maximum acceptable input.
    """

    asset_in: AssetId
    asset_out: AssetId
    mode: TradeMode
    amount: int
    limit: int

    def __post_init__(self) -> None:
        if not isinstance(self.mode, TradeMode):
            raise TypeError("mode must be a TradeMode")
        if self.asset_in == self.asset_out:
            raise ValueError(f"cannot trade an asset for itself: {self.asset_in}")
        for name, v in (("amount", self.amount), ("limit", self.limit)):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
        if self.amount <= 0:
            raise ValueError(f"amount must be positive: {self.amount}")
        if self.limit < 0:
            raise ValueError(f"limit must be non-negative: {self.limit}")

    @classmethod
    def amount_in(
        cls, asset_in: AssetId, asset_out: AssetId, amount_in: int, min_amount_out: int
    ) -> "TradeRequest":
        return cls(asset_in, asset_out, TradeMode.AMOUNT_IN, amount_in, min_amount_out)

    @classmethod
    def amount_out(
        cls, asset_in: AssetId, asset_out: AssetId, amount_out: int, max_amount_in: int
    ) -> "TradeRequest":
        return cls(asset_in, asset_out, TradeMode.AMOUNT_OUT, amount_out, max_amount_in)


@dataclass(frozen=True)
class TradeOutcome:
    """What a committed trade did.

    ``amount_in`` / ``amount_out`` are native units moved between trader and
    pool. The ``balance_*_delta`` fields are the internal-scale changes of the
    two pool balances.
    """

    asset_in: AssetId
    asset_out: AssetId
    mode: TradeMode
    amount_in: int
    amount_out: int
    price_in: int
    price_out: int
    gross_out: int
    fee: FeeQuote
    balance_in_delta: int
    balance_out_delta: int
    timestamp: int

    @property
    def fee_asset(self) -> AssetId:
        return self.asset_out


@dataclass(frozen=True)
class TradeResult:
    accepted: bool
    state: Optional[PoolState] = None
    outcome: Optional[TradeOutcome] = None
    rejection: Optional[str] = None
    error: Optional[RammError] = None


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------

def _ceil_div(a: int, b: int) -> int:
    return -(-a // b)


def _price_amount_in(
    request: TradeRequest, state: PoolState, i: int, o: int, prices: Tuple[int, ...], config: RammConfig
) -> Tuple[int, int, int, FeeQuote]:
    slot_in, slot_out = state.assets[i], state.assets[o]
    ai = to_internal(request.amount, slot_in.decimal_scale_factor)
    gross_out = mul_div(ai, prices[i], prices[o])
    fee = compute_fee(slot_in, slot_out, gross_out, config)
    if fee.net_fee >= gross_out:
        raise SlippageExceeded(
            f"fee {fee.net_fee} consumes the whole outbound notional {gross_out}"
        )
    amount_out = to_native(gross_out - fee.net_fee, slot_out.decimal_scale_factor)
    if amount_out < slot_out.minimum_trade_amount:
        raise TradeTooSmall(
            f"{slot_out.asset}: output {amount_out} below minimum {slot_out.minimum_trade_amount}"
        )
    if amount_out < request.limit:
        raise SlippageExceeded(f"output {amount_out} below minimum {request.limit}")
    return request.amount, amount_out, gross_out, fee


def _price_amount_out(
    request: TradeRequest, state: PoolState, i: int, o: int, prices: Tuple[int, ...], config: RammConfig
) -> Tuple[int, int, int, FeeQuote]:
    slot_in, slot_out = state.assets[i], state.assets[o]
    ao = to_internal(request.amount, slot_out.decimal_scale_factor)
    rate = fee_rate(slot_in, slot_out, config)
    if rate >= ONE:
        raise SlippageExceeded(f"fee rate {rate} leaves nothing to trade")
    gross_out = check_word(_ceil_div(ao * ONE, ONE - rate), name="gross output")
    fee = compute_fee(slot_in, slot_out, gross_out, config)
    amount_in = check_word(
        _ceil_div(gross_out * prices[o], prices[i] * slot_in.decimal_scale_factor),
        name="amount in",
    )
    if amount_in < slot_in.minimum_trade_amount:
        raise TradeTooSmall(
            f"{slot_in.asset}: input {amount_in} below minimum {slot_in.minimum_trade_amount}"
        )
    if amount_in > request.limit:
        raise SlippageExceeded(f"input {amount_in} above maximum {request.limit}")
    return amount_in, request.amount, gross_out, fee


_PRICERS = {
    TradeMode.AMOUNT_IN: _price_amount_in,
    TradeMode.AMOUNT_OUT: _price_amount_out,
}


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------

def _guard_fixed_side_minimum(request: TradeRequest, state: PoolState, i: int, o: int) -> None:
    if request.mode is TradeMode.AMOUNT_IN:
        slot = state.assets[i]
    else:
        slot = state.assets[o]
    if request.amount < slot.minimum_trade_amount:
        raise TradeTooSmall(
            f"{slot.asset}: amount {request.amount} below minimum {slot.minimum_trade_amount}"
        )


def _guard_liquidity(state: PoolState, i: int, o: int) -> None:
    for idx in (i, o):
        slot = state.assets[idx]
        if slot.lp_supply == 0 or slot.balance == 0:
            raise InsufficientLiquidity(f"{slot.asset} has no liquidity")


def _guard_imbalance(
    post: PoolState, i: int, o: int, prices: Tuple[int, ...], config: RammConfig
) -> None:
    lower = ONE - config.max_imbalance_delta
    upper = ONE + config.max_imbalance_delta
    ir_out = imbalance_ratio(post, o, prices)
    if ir_out is not None and ir_out < lower:
        raise ImbalanceRatioExceeded(
            f"{post.assets[o].asset}: imbalance ratio {ir_out} below {lower}"
        )
    ir_in = imbalance_ratio(post, i, prices)
    if ir_in is not None and ir_in > upper:
        raise ImbalanceRatioExceeded(
            f"{post.assets[i].asset}: imbalance ratio {ir_in} above {upper}"
        )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

def _execute(
    state: PoolState,
    request: TradeRequest,
    readings: Mapping[AssetId, OracleReading],
    now: int,
    config: RammConfig,
) -> Tuple[PoolState, TradeOutcome]:
    if not state.initialized:
        raise PoolNotInitialized("trades require an initialized pool")
    i = state.index_of(request.asset_in)
    o = state.index_of(request.asset_out)

    observations = read_all(state, readings, now, config)
    observed = observe_all(state, observations, config)
    prices = tuple(obs.price for obs in observations)

    _guard_liquidity(observed, i, o)
    _guard_fixed_side_minimum(request, observed, i, o)

    amount_in, amount_out, gross_out, fee = _PRICERS[request.mode](
        request, observed, i, o, prices, config
    )

    slot_in, slot_out = observed.assets[i], observed.assets[o]
    in_credit = to_internal(amount_in, slot_in.decimal_scale_factor)
    out_debit = to_internal(amount_out + fee.protocol_fee_native, slot_out.decimal_scale_factor)
    if out_debit > slot_out.balance:
        raise InsufficientLiquidity(
            f"{slot_out.asset}: debit {out_debit} exceeds balance {slot_out.balance}"
        )

    post = observed.with_slot(
        replace(slot_in, balance=check_word(slot_in.balance + in_credit, name="balance"))
    ).with_slot(
        replace(
            slot_out,
            balance=slot_out.balance - out_debit,
            collected_protocol_fees=slot_out.collected_protocol_fees + fee.protocol_fee_native,
        )
    )

    _guard_imbalance(post, i, o, prices, config)

    violations = check_all(post, config)
    if violations:
        raise InvariantViolation(violations)

    outcome = TradeOutcome(
        asset_in=request.asset_in,
        asset_out=request.asset_out,
        mode=request.mode,
        amount_in=amount_in,
        amount_out=amount_out,
        price_in=prices[i],
        price_out=prices[o],
        gross_out=gross_out,
        fee=fee,
        balance_in_delta=in_credit,
        balance_out_delta=out_debit,
        timestamp=now,
    )
    return post, outcome


def execute_trade(
    state: PoolState,
    request: TradeRequest,
    readings: Mapping[AssetId, OracleReading],
    now: int,
    config: RammConfig = DEFAULT_CONFIG,
) -> TradeResult:
    """Run one trade against *state*.

    Returns ``TradeResult`` with ``accepted=True`` and the post-state on
    success, or ``accepted=False`` with the error's code as ``rejection``.
    """
    try:
        post, outcome = _execute(state, request, readings, now, config)
    except RammError as exc:
        return TradeResult(accepted=False, rejection=exc.code, error=exc)
    return TradeResult(accepted=True, state=post, outcome=outcome)


def trade_amount_in(
    state: PoolState,
    asset_in: AssetId,
    asset_out: AssetId,
    amount_in: int,
    min_amount_out: int,
    readings: Mapping[AssetId, OracleReading],
    now: int,
    config: RammConfig = DEFAULT_CONFIG,
) -> TradeResult:
    request = TradeRequest.amount_in(asset_in, asset_out, amount_in, min_amount_out)
    return execute_trade(state, request, readings, now, config)


def trade_amount_out(
    state: PoolState,
    asset_in: AssetId,
    asset_out: AssetId,
    amount_out: int,
    max_amount_in: int,
    readings: Mapping[AssetId, OracleReading],
    now: int,
    config: RammConfig = DEFAULT_CONFIG,
) -> TradeResult:
    request = TradeRequest.amount_out(asset_in, asset_out, amount_out, max_amount_in)
    return execute_trade(state, request, readings, now, config)


def trade_or_raise(
    state: PoolState,
    request: TradeRequest,
    readings: Mapping[AssetId, OracleReading],
    now: int,
    config: RammConfig = DEFAULT_CONFIG,
) -> TradeResult:
    """Like ``execute_trade()`` but raises the rejection's ``RammError``."""
    result = execute_trade(state, request, readings, now, config)
    if not result.accepted:
        assert result.error is not None
        raise result.error
    return result
