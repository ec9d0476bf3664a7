"""Shared fixtures: a two-asset ETH/USDT pool, 8 and 6 native decimals."""

import pytest

from ramm.core import admin
from ramm.core.liquidity import deposit_or_raise
from ramm.core.oracle import OracleReading

T0 = 1_000


@pytest.fixture
def quote():
    """Build one reading per asset; prices are given with 8 feed decimals."""

    def _quote(eth_e8: int = 2_000 * 10**8, usdt_e8: int = 10**8, ts: int = T0):
        return {
            "ETH": OracleReading(price=eth_e8, decimals=8, timestamp=ts),
            "USDT": OracleReading(price=usdt_e8, decimals=8, timestamp=ts),
        }

    return _quote


@pytest.fixture
def fresh_pool():
    """Uninitialized pool with both capabilities still live."""
    return admin.new_pool("0xfee", salt="test-pool")


@pytest.fixture
def empty_pool(fresh_pool):
    """Initialized ETH/USDT pool without liquidity."""
    state, admin_cap, new_asset_cap = fresh_pool
    state = admin.add_asset(
        state,
        admin_cap,
        new_asset_cap,
        asset="ETH",
        oracle_reference="feed-eth",
        minimum_trade_amount=100_000,
        decimals=8,
    )
    state = admin.add_asset(
        state,
        admin_cap,
        new_asset_cap,
        asset="USDT",
        oracle_reference="feed-usdt",
        minimum_trade_amount=1_000_000,
        decimals=6,
    )
    state = admin.initialize(state, admin_cap, new_asset_cap)
    return state, admin_cap


@pytest.fixture
def seeded_pool(empty_pool, quote):
    """500 ETH / 900,000 USDT, first priced at ETH 2000, USDT 1.00 at T0."""
    state, admin_cap = empty_pool
    state = deposit_or_raise(state, "ETH", 500 * 10**8, quote(), T0).state
    state = deposit_or_raise(state, "USDT", 900_000 * 10**6, quote(), T0).state
    return state, admin_cap
