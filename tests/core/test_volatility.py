"""Tests for ramm/core/volatility.py."""

from dataclasses import replace

import pytest

from ramm.core.config import RammConfig
from ramm.core.fixed_point import ONE
from ramm.core.oracle import PriceObservation
from ramm.core.volatility import observe, observe_all, relative_change

CFG = RammConfig(tau=300)
FIVE_PCT = 5 * 10**10


@pytest.fixture
def slot(empty_pool):
    state, _ = empty_pool
    return state.slot("ETH")


def test_relative_change():
    assert relative_change(2_000 * ONE, 2_100 * ONE) == FIVE_PCT
    assert relative_change(2_000 * ONE, 1_900 * ONE) == FIVE_PCT
    assert relative_change(0, 2_000 * ONE) == 0


def test_first_observation_sets_baseline_only(slot):
    s = observe(slot, 2_000 * ONE, 1_000, CFG)
    assert s.volatility_index == 0
    assert s.previous_price == 2_000 * ONE
    assert s.previous_price_timestamp == 1_000
    assert s.volatility_timestamp == 1_000


def test_change_inside_window_accumulates(slot):
    s = observe(slot, 2_000 * ONE, 1_000, CFG)
    s = observe(s, 2_100 * ONE, 1_100, CFG)
    assert s.volatility_index == FIVE_PCT
    s = observe(s, 2_205 * ONE, 1_200, CFG)
    assert s.volatility_index == 2 * FIVE_PCT
    assert s.previous_price == 2_205 * ONE


def test_window_boundary_is_inclusive(slot):
    s = observe(slot, 2_000 * ONE, 1_000, CFG)
    s = observe(s, 2_100 * ONE, 1_300, CFG)
    assert s.volatility_index == FIVE_PCT
    s = observe(s, 2_205 * ONE, 1_600, CFG)
    assert s.volatility_index == 2 * FIVE_PCT


def test_expired_window_resets_to_latest_change(slot):
    s = replace(
        slot,
        previous_price=2_000 * ONE,
        previous_price_timestamp=1_000,
        volatility_index=3 * FIVE_PCT,
        volatility_timestamp=1_000,
    )
    s = observe(s, 2_100 * ONE, 1_301, CFG)
    assert s.volatility_index == FIVE_PCT
    assert s.volatility_timestamp == 1_301


def test_unchanged_price_in_window_keeps_index(slot):
    s = replace(
        slot,
        previous_price=2_000 * ONE,
        previous_price_timestamp=1_000,
        volatility_index=FIVE_PCT,
        volatility_timestamp=1_000,
    )
    assert observe(s, 2_000 * ONE, 1_010, CFG).volatility_index == FIVE_PCT


def test_unchanged_price_after_window_clears_index(slot):
    s = replace(
        slot,
        previous_price=2_000 * ONE,
        previous_price_timestamp=1_000,
        volatility_index=FIVE_PCT,
        volatility_timestamp=1_000,
    )
    assert observe(s, 2_000 * ONE, 2_000, CFG).volatility_index == 0


def test_observe_all_updates_every_slot(empty_pool):
    state, _ = empty_pool
    obs = (
        PriceObservation("ETH", 2_000 * ONE, 1_000),
        PriceObservation("USDT", ONE, 1_000),
    )
    s = observe_all(state, obs, CFG)
    assert [slot.previous_price for slot in s] == [2_000 * ONE, ONE]
    assert state.slot("ETH").previous_price == 0


def test_observe_all_rejects_misaligned_observations(empty_pool):
    state, _ = empty_pool
    with pytest.raises(ValueError):
        observe_all(state, (PriceObservation("ETH", ONE, 1),), CFG)
    with pytest.raises(ValueError):
        observe_all(
            state,
            (PriceObservation("USDT", ONE, 1), PriceObservation("ETH", ONE, 1)),
            CFG,
        )
