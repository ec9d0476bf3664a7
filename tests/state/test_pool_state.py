"""Tests for ramm/state/pool.py and ramm/state/snapshot.py."""

import json
import os
import subprocess
import sys
from dataclasses import replace
from pathlib import Path

import pytest

from ramm.core.errors import UnknownAsset
from ramm.state.canonical import (
    CANONICAL_ENCODING_VERSION,
    canonical_json_bytes,
    domain_sep_bytes,
    hash_canonical,
)
from ramm.state.pool import AssetSlot, PoolState
from ramm.state.snapshot import compute_state_root, state_from_dict, state_to_dict

REPO_ROOT = Path(__file__).resolve().parents[2]


def _slot(asset="ETH", index=0, **kwargs):
    params = dict(decimals=8, minimum_trade_amount=1, oracle_reference="feed")
    params.update(kwargs)
    return AssetSlot(asset=asset, index=index, **params)


class TestAssetSlot:
    def test_negative_field(self):
        with pytest.raises(ValueError):
            _slot(balance=-1)

    def test_decimals_above_internal_scale(self):
        with pytest.raises(ValueError):
            _slot(decimals=13)

    def test_bool_is_not_an_amount(self):
        with pytest.raises(TypeError):
            _slot(balance=True)

    def test_scale_factor(self):
        assert _slot(decimals=6).decimal_scale_factor == 10**6


class TestPoolState:
    def test_index_must_match_position(self):
        with pytest.raises(ValueError):
            PoolState(pool_id="p", fee_collector="f", admin_cap_id="a", assets=(_slot(index=1),))

    def test_duplicate_assets(self):
        with pytest.raises(ValueError):
            PoolState(
                pool_id="p",
                fee_collector="f",
                admin_cap_id="a",
                assets=(_slot("ETH", 0), _slot("ETH", 1)),
            )

    def test_initialized_pool_has_no_new_asset_cap(self):
        with pytest.raises(ValueError):
            PoolState(
                pool_id="p", fee_collector="f", admin_cap_id="a", new_asset_cap_id="n", initialized=True
            )

    def test_lookup(self, empty_pool):
        state, _ = empty_pool
        assert state.index_of("USDT") == 1
        assert state.slot("ETH").asset == "ETH"
        with pytest.raises(UnknownAsset):
            state.index_of("BTC")

    def test_with_slot_is_functional(self, empty_pool):
        state, _ = empty_pool
        updated = state.with_slot(replace(state.slot("ETH"), minimum_trade_amount=7))
        assert updated.slot("ETH").minimum_trade_amount == 7
        assert state.slot("ETH").minimum_trade_amount == 100_000


class TestSnapshot:
    def test_round_trip(self, seeded_pool):
        state, _ = seeded_pool
        assert state_from_dict(state_to_dict(state)) == state

    def test_round_trip_through_canonical_json(self, seeded_pool):
        state, _ = seeded_pool
        decoded = json.loads(canonical_json_bytes(state_to_dict(state)))
        assert state_from_dict(decoded) == state

    def test_missing_field(self, seeded_pool):
        d = state_to_dict(seeded_pool[0])
        del d["assets"][0]["balance"]
        with pytest.raises(KeyError):
            state_from_dict(d)

    def test_state_root_is_deterministic(self, seeded_pool):
        state, _ = seeded_pool
        assert compute_state_root(state) == compute_state_root(state_from_dict(state_to_dict(state)))

    def test_state_root_tracks_every_field(self, seeded_pool):
        state, _ = seeded_pool
        bumped = state.with_slot(replace(state.slot("USDT"), collected_protocol_fees=1))
        assert compute_state_root(state) != compute_state_root(bumped)


class TestCanonical:
    def test_sorted_compact(self):
        assert canonical_json_bytes({"b": 1, "a": [2, 3]}) == b'{"a":[2,3],"b":1}'

    def test_floats_rejected(self):
        with pytest.raises(TypeError):
            canonical_json_bytes({"x": 1.5})

    def test_domain_separation(self):
        assert domain_sep_bytes("PoolId") == b"ramm:PoolId:v1\x00"
        assert hash_canonical("A", {"x": 1}) != hash_canonical("B", {"x": 1})
        assert hash_canonical("A", {"x": 1}) == hash_canonical("A", {"x": 1}, CANONICAL_ENCODING_VERSION)
        assert hash_canonical("A", {"x": 1}) != hash_canonical("A", {"x": 1}, CANONICAL_ENCODING_VERSION + 1)


@pytest.mark.parametrize(
    "statement",
    ["import ramm.state", "from ramm.state import PoolState", "import ramm.state.pool"],
)
def test_state_package_imports_on_its_own(statement):
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(REPO_ROOT), env.get("PYTHONPATH")]))
    proc = subprocess.run(
        [sys.executable, "-c", statement],
        cwd=REPO_ROOT,
        env=env,
        capture_output=True,
        text=True,
        timeout=60,
    )
    assert proc.returncode == 0, proc.stderr
