"""
Liquidity operations: single-asset deposits and withdrawals.

Each asset has its own LP-share supply. Shares are internal-scale integers.

Deposit of ``d`` (internal units) into asset X:
    minted = floor(d * lp_supply / balance)   if lp_supply > 0
    minted = d                                 otherwise (bootstrap, 1:1)

Withdrawal of ``s`` shares of asset X:
    claim  = floor(s * balance / lp_supply)
    amount = floor(claim / scale_factor)       (native units paid out)

Both directions round against the caller, so ``balance / lp_supply`` never
decreases. Burning the last outstanding shares empties the balance; the
sub-native remainder that cannot be paid out is forfeited and reported as
``dust_forfeited``.

Every asset's oracle must be fresh, even though only one asset moves: the
pool is valued as a whole basket.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, unique
from typing import Mapping, Optional, Tuple

from ..state.pool import AssetId, PoolState
from .config import DEFAULT_CONFIG, RammConfig
from .errors import (
    DepositsDisabled,
    InsufficientSupply,
    InvariantViolation,
    PoolNotInitialized,
    RammError,
    TradeTooSmall,
)
from .fixed_point import check_word, mul, mul_div, to_internal, to_native
from .invariants import check_all
from .oracle import OracleReading, read_all
from .valuation import share_value
from .volatility import observe_all


@unique
class LiquidityAction(Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


@dataclass(frozen=True)
class LiquidityOutcome:
    """What a committed deposit or withdrawal did.

    ``amount`` is native units moved between provider and pool, ``shares`` the
    LP shares minted or burnt, ``value`` the quote value of the moved
    liquidity at the oracle price.
    """

    action: LiquidityAction
    asset: AssetId
    amount: int
    shares: int
    balance_delta: int
    price: int
    value: int
    timestamp: int
    dust_forfeited: int = 0


@dataclass(frozen=True)
class LiquidityResult:
    accepted: bool
    state: Optional[PoolState] = None
    outcome: Optional[LiquidityOutcome] = None
    rejection: Optional[str] = None
    error: Optional[RammError] = None


def _observe(
    state: PoolState,
    asset: AssetId,
    readings: Mapping[AssetId, OracleReading],
    now: int,
    config: RammConfig,
) -> Tuple[PoolState, int, int]:
    if not state.initialized:
        raise PoolNotInitialized("liquidity operations require an initialized pool")
    idx = state.index_of(asset)
    observations = read_all(state, readings, now, config)
    observed = observe_all(state, observations, config)
    return observed, idx, observations[idx].price


def _check(post: PoolState, config: RammConfig) -> None:
    violations = check_all(post, config)
    if violations:
        raise InvariantViolation(violations)


def _deposit(
    state: PoolState,
    asset: AssetId,
    amount: int,
    readings: Mapping[AssetId, OracleReading],
    now: int,
    config: RammConfig,
) -> Tuple[PoolState, LiquidityOutcome]:
    observed, idx, price = _observe(state, asset, readings, now, config)
    slot = observed.assets[idx]
    if not slot.deposits_enabled:
        raise DepositsDisabled(f"deposits are disabled for {asset}")
    if amount < slot.minimum_trade_amount:
        raise TradeTooSmall(
            f"{asset}: deposit {amount} below minimum {slot.minimum_trade_amount}"
        )

    d = to_internal(amount, slot.decimal_scale_factor)
    if slot.lp_supply > 0:
        minted = mul_div(d, slot.lp_supply, slot.balance)
    else:
        minted = d
    if minted == 0:
        raise TradeTooSmall(f"{asset}: deposit {amount} mints no shares")

    post = observed.with_slot(
        replace(
            slot,
            balance=check_word(slot.balance + d, name="balance"),
            lp_supply=check_word(slot.lp_supply + minted, name="lp_supply"),
        )
    )
    _check(post, config)
    return post, LiquidityOutcome(
        action=LiquidityAction.DEPOSIT,
        asset=asset,
        amount=amount,
        shares=minted,
        balance_delta=d,
        price=price,
        value=mul(d, price),
        timestamp=now,
    )


def _withdraw(
    state: PoolState,
    asset: AssetId,
    shares: int,
    readings: Mapping[AssetId, OracleReading],
    now: int,
    config: RammConfig,
) -> Tuple[PoolState, LiquidityOutcome]:
    observed, idx, price = _observe(state, asset, readings, now, config)
    slot = observed.assets[idx]
    if slot.lp_supply == 0:
        raise InsufficientSupply(f"{asset} has no outstanding LP shares")
    if shares > slot.lp_supply:
        raise InsufficientSupply(
            f"{asset}: cannot burn {shares} shares of a supply of {slot.lp_supply}"
        )

    factor = slot.decimal_scale_factor
    if shares == slot.lp_supply:
        amount = to_native(slot.balance, factor)
        debit = slot.balance
    else:
        amount = to_native(mul_div(shares, slot.balance, slot.lp_supply), factor)
        debit = amount * factor
    if amount == 0:
        raise TradeTooSmall(f"{asset}: burning {shares} shares pays out nothing")

    post = observed.with_slot(
        replace(slot, balance=slot.balance - debit, lp_supply=slot.lp_supply - shares)
    )
    _check(post, config)
    return post, LiquidityOutcome(
        action=LiquidityAction.WITHDRAW,
        asset=asset,
        amount=amount,
        shares=shares,
        balance_delta=debit,
        price=price,
        value=share_value(shares, slot, price),
        timestamp=now,
        dust_forfeited=debit - amount * factor,
    )


def _validate_quantity(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value <= 0:
        raise ValueError(f"{name} must be positive: {value}")


def deposit(
    state: PoolState,
    asset: AssetId,
    amount: int,
    readings: Mapping[AssetId, OracleReading],
    now: int,
    config: RammConfig = DEFAULT_CONFIG,
) -> LiquidityResult:
    """Deposit *amount* native units of *asset* and mint LP shares for it."""
    _validate_quantity("amount", amount)
    try:
        post, outcome = _deposit(state, asset, amount, readings, now, config)
    except RammError as exc:
        return LiquidityResult(accepted=False, rejection=exc.code, error=exc)
    return LiquidityResult(accepted=True, state=post, outcome=outcome)


def withdraw(
    state: PoolState,
    asset: AssetId,
    shares: int,
    readings: Mapping[AssetId, OracleReading],
    now: int,
    config: RammConfig = DEFAULT_CONFIG,
) -> LiquidityResult:
    """Burn *shares* LP shares of *asset* for their proportional claim."""
    _validate_quantity("shares", shares)
    try:
        post, outcome = _withdraw(state, asset, shares, readings, now, config)
    except RammError as exc:
        return LiquidityResult(accepted=False, rejection=exc.code, error=exc)
    return LiquidityResult(accepted=True, state=post, outcome=outcome)


def deposit_or_raise(
    state: PoolState,
    asset: AssetId,
    amount: int,
    readings: Mapping[AssetId, OracleReading],
    now: int,
    config: RammConfig = DEFAULT_CONFIG,
) -> LiquidityResult:
    """Like ``deposit()`` but raises the rejection's ``RammError``."""
    return _raise_on_rejection(deposit(state, asset, amount, readings, now, config))


def withdraw_or_raise(
    state: PoolState,
    asset: AssetId,
    shares: int,
    readings: Mapping[AssetId, OracleReading],
    now: int,
    config: RammConfig = DEFAULT_CONFIG,
) -> LiquidityResult:
    """Like ``withdraw()`` but raises the rejection's ``RammError``."""
    return _raise_on_rejection(withdraw(state, asset, shares, readings, now, config))


def _raise_on_rejection(result: LiquidityResult) -> LiquidityResult:
    if not result.accepted:
        assert result.error is not None
        raise result.error
    return result
