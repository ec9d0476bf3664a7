"""Tests for ramm/core/liquidity.py."""

from dataclasses import replace

import pytest

from ramm.core import admin
from ramm.core.errors import DepositsDisabled, InsufficientSupply
from ramm.core.fixed_point import ONE
from ramm.core.liquidity import (
    LiquidityAction,
    deposit,
    deposit_or_raise,
    withdraw,
    withdraw_or_raise,
)
from ramm.core.trade import trade_amount_in

T0 = 1_000


class TestDeposit:
    def test_bootstrap_mints_one_to_one(self, empty_pool, quote):
        state, _ = empty_pool
        r = deposit(state, "ETH", 500 * 10**8, quote(), T0)
        assert r.accepted, r.rejection
        assert r.outcome.action is LiquidityAction.DEPOSIT
        assert r.outcome.shares == 500 * ONE
        assert r.outcome.value == 1_000_000 * ONE
        eth = r.state.slot("ETH")
        assert eth.balance == eth.lp_supply == 500 * ONE

    def test_later_deposit_mints_pro_rata(self, seeded_pool, quote):
        state, _ = seeded_pool
        state = trade_amount_in(state, "ETH", "USDT", 10 * 10**8, 0, quote(), T0).state
        eth = state.slot("ETH")
        assert eth.balance == 510 * ONE

        r = deposit_or_raise(state, "ETH", 51 * 10**8, quote(), T0)
        assert r.outcome.shares == 51 * ONE * eth.lp_supply // eth.balance == 50 * ONE

    def test_deposit_observes_every_price(self, seeded_pool, quote):
        state, _ = seeded_pool
        readings = quote(eth_e8=2_100 * 10**8, usdt_e8=105 * 10**6, ts=T0 + 100)
        r = deposit_or_raise(state, "ETH", 10**8, readings, T0 + 100)
        assert r.state.slot("USDT").volatility_index == 5 * 10**10
        assert r.state.slot("USDT").balance == state.slot("USDT").balance

    def test_disabled(self, empty_pool, quote):
        state, admin_cap = empty_pool
        state = admin.disable_deposits(state, admin_cap, "ETH")
        r = deposit(state, "ETH", 10**8, quote(), T0)
        assert r.rejection == "deposits_disabled"
        with pytest.raises(DepositsDisabled):
            deposit_or_raise(state, "ETH", 10**8, quote(), T0)
        assert deposit(state, "USDT", 10**6, quote(), T0).accepted

    def test_below_minimum(self, empty_pool, quote):
        state, _ = empty_pool
        assert deposit(state, "ETH", 99_999, quote(), T0).rejection == "trade_too_small"

    def test_uninitialized(self, fresh_pool, quote):
        state, _, _ = fresh_pool
        assert deposit(state, "ETH", 10**8, quote(), T0).rejection == "pool_not_initialized"

    def test_stale_oracle(self, empty_pool, quote):
        state, _ = empty_pool
        r = deposit(state, "ETH", 10**8, quote(ts=T0), T0 + 3_601)
        assert r.rejection == "stale_price"

    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_amount_is_a_programming_error(self, empty_pool, quote, amount):
        state, _ = empty_pool
        with pytest.raises(ValueError):
            deposit(state, "ETH", amount, quote(), T0)


class TestWithdraw:
    def test_round_trip_returns_the_deposit(self, empty_pool, quote):
        state, _ = empty_pool
        dep = deposit_or_raise(state, "ETH", 123_456_789, quote(), T0)
        r = withdraw_or_raise(dep.state, "ETH", dep.outcome.shares, quote(), T0)
        assert r.outcome.action is LiquidityAction.WITHDRAW
        assert r.outcome.amount == 123_456_789
        assert r.outcome.dust_forfeited == 0
        eth = r.state.slot("ETH")
        assert eth.balance == eth.lp_supply == 0

    def test_partial_withdrawal(self, seeded_pool, quote):
        state, _ = seeded_pool
        r = withdraw_or_raise(state, "USDT", 100_000 * ONE, quote(), T0)
        assert r.outcome.amount == 100_000 * 10**6
        assert r.state.slot("USDT").balance == 800_000 * ONE
        assert r.state.slot("USDT").lp_supply == 800_000 * ONE

    def test_inbound_lps_gain_after_trade(self, seeded_pool, quote):
        state, _ = seeded_pool
        state = trade_amount_in(state, "ETH", "USDT", 10 * 10**8, 0, quote(), T0).state
        r = withdraw_or_raise(state, "ETH", 500 * ONE, quote(), T0)
        assert r.outcome.amount == 510 * 10**8
        assert r.outcome.value == 1_020_000 * ONE

    def test_claim_rounds_down(self, seeded_pool, quote):
        state, _ = seeded_pool
        usdt = state.slot("USDT")
        state = state.with_slot(replace(usdt, balance=usdt.balance + 999_999))
        r = withdraw_or_raise(state, "USDT", ONE, quote(), T0)
        assert r.outcome.amount == 10**6
        assert r.outcome.dust_forfeited == 0

    def test_last_shares_forfeit_dust(self, seeded_pool, quote):
        state, _ = seeded_pool
        usdt = state.slot("USDT")
        state = state.with_slot(replace(usdt, balance=usdt.balance + 999_999))
        r = withdraw_or_raise(state, "USDT", usdt.lp_supply, quote(), T0)
        assert r.outcome.amount == 900_000 * 10**6
        assert r.outcome.dust_forfeited == 999_999
        assert r.state.slot("USDT").balance == 0

    def test_more_than_supply(self, seeded_pool, quote):
        state, _ = seeded_pool
        r = withdraw(state, "ETH", 500 * ONE + 1, quote(), T0)
        assert r.rejection == "insufficient_supply"
        assert isinstance(r.error, InsufficientSupply)

    def test_no_supply(self, empty_pool, quote):
        state, _ = empty_pool
        assert withdraw(state, "ETH", 1, quote(), T0).rejection == "insufficient_supply"

    def test_dust_shares_pay_nothing(self, seeded_pool, quote):
        state, _ = seeded_pool
        r = withdraw(state, "USDT", 1, quote(), T0)
        assert r.rejection == "trade_too_small"

    def test_withdrawals_allowed_while_deposits_disabled(self, seeded_pool, quote):
        state, admin_cap = seeded_pool
        state = admin.disable_deposits(state, admin_cap, "ETH")
        assert withdraw(state, "ETH", ONE, quote(), T0).accepted
