"""Tests for ramm/integration/deploy_config.py and the `ramm` CLI."""

import json
from pathlib import Path

import pytest
import yaml

from ramm.core.config import DEFAULT_BASE_FEE, DEFAULT_TAU
from ramm.integration.cli import main
from ramm.integration.deploy_config import (
    ConfigError,
    PoolDeploymentConfig,
    build_pool,
    format_config,
    load_deployment_config,
)

EXAMPLE = Path(__file__).resolve().parents[2] / "deployment_cfgs" / "example.toml"

TOML = """\
asset_count = 2
fee_collection_address = "0xfee"

[[assets]]
asset_type = "ETH"
aggregator_address = "0xagg-eth"
minimum_trade_amount = 100_000
decimal_places = 8

[[assets]]
asset_type = "USDT"
aggregator_address = "0xagg-usdt"
minimum_trade_amount = 1_000_000
decimal_places = 6
"""


def _data(**overrides):
    data = {
        "asset_count": 2,
        "fee_collection_address": "0xfee",
        "assets": [
            {
                "asset_type": "ETH",
                "aggregator_address": "0xagg-eth",
                "minimum_trade_amount": 100_000,
                "decimal_places": 8,
            },
            {
                "asset_type": "USDT",
                "aggregator_address": "0xagg-usdt",
                "minimum_trade_amount": 1_000_000,
                "decimal_places": 6,
            },
        ],
    }
    data.update(overrides)
    return data


@pytest.fixture
def toml_path(tmp_path):
    p = tmp_path / "pool.toml"
    p.write_text(TOML, encoding="utf-8")
    return p


class TestLoad:
    def test_toml(self, toml_path):
        cfg = load_deployment_config(toml_path, environ={})
        assert cfg.asset_count == 2
        assert [a.asset_type for a in cfg.assets] == ["ETH", "USDT"]
        assert cfg.assets[1].decimal_places == 6
        assert cfg.engine.base_fee == DEFAULT_BASE_FEE

    def test_yaml_matches_toml(self, tmp_path, toml_path):
        p = tmp_path / "pool.yaml"
        p.write_text(yaml.safe_dump(_data()), encoding="utf-8")
        assert load_deployment_config(p, environ={}) == load_deployment_config(toml_path, environ={})

    def test_example_file(self):
        cfg = load_deployment_config(EXAMPLE, environ={})
        assert cfg.asset_count == len(cfg.assets) == 3
        assert cfg.target_env == "testnet"

    def test_engine_section(self, tmp_path):
        p = tmp_path / "pool.yaml"
        p.write_text(yaml.safe_dump(_data(engine={"tau": 600})), encoding="utf-8")
        cfg = load_deployment_config(p, environ={})
        assert cfg.engine.tau == 600

    def test_env_overrides_file(self, tmp_path):
        p = tmp_path / "pool.yaml"
        p.write_text(yaml.safe_dump(_data(engine={"tau": 600})), encoding="utf-8")
        cfg = load_deployment_config(p, environ={"RAMM_TAU": "120", "RAMM_BASE_FEE": "0"})
        assert cfg.engine.tau == 120
        assert cfg.engine.base_fee == 0

    def test_env_from_process(self, toml_path, monkeypatch):
        monkeypatch.setenv("RAMM_STALENESS_THRESHOLD", "60")
        assert load_deployment_config(toml_path).engine.staleness_threshold == 60

    def test_bad_env_value(self, toml_path):
        with pytest.raises(ConfigError):
            load_deployment_config(toml_path, environ={"RAMM_TAU": "five"})

    def test_unsupported_suffix(self, tmp_path):
        p = tmp_path / "pool.json"
        p.write_text("{}", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_deployment_config(p, environ={})

    def test_malformed_toml(self, tmp_path):
        p = tmp_path / "pool.toml"
        p.write_text("asset_count = = 2", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_deployment_config(p, environ={})

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_deployment_config(tmp_path / "nope.toml", environ={})


class TestValidation:
    def test_asset_count_mismatch(self):
        with pytest.raises(ConfigError):
            PoolDeploymentConfig.from_dict(_data(asset_count=3))

    def test_single_asset(self):
        data = _data(asset_count=1)
        data["assets"] = data["assets"][:1]
        with pytest.raises(ConfigError):
            PoolDeploymentConfig.from_dict(data)

    def test_too_few_decimal_places(self):
        data = _data()
        data["assets"][0]["decimal_places"] = 3
        with pytest.raises(ConfigError):
            PoolDeploymentConfig.from_dict(data)

    def test_missing_asset_field(self):
        data = _data()
        del data["assets"][1]["aggregator_address"]
        with pytest.raises(ConfigError, match="assets\\[1\\].aggregator_address"):
            PoolDeploymentConfig.from_dict(data)

    def test_duplicate_asset(self):
        data = _data()
        data["assets"][1]["asset_type"] = "ETH"
        with pytest.raises(ConfigError):
            PoolDeploymentConfig.from_dict(data)

    def test_unknown_target_env(self):
        with pytest.raises(ConfigError):
            PoolDeploymentConfig.from_dict(_data(target_env="devnet"))

    def test_unknown_engine_parameter(self):
        with pytest.raises(ConfigError):
            PoolDeploymentConfig.from_dict(_data(engine={"gas": 1}))

    def test_invalid_engine_value(self):
        with pytest.raises(ConfigError):
            PoolDeploymentConfig.from_dict(_data(engine={"tau": 0}))


class TestBuild:
    def test_build_pool(self):
        cfg = PoolDeploymentConfig.from_dict(_data())
        state, admin_cap = build_pool(cfg, salt="s")
        assert state.initialized
        assert state.asset_ids == ("ETH", "USDT")
        assert state.slot("USDT").oracle_reference == "0xagg-usdt"
        assert state.slot("ETH").minimum_trade_amount == 100_000
        assert state.fee_collector == "0xfee"
        assert admin_cap.pool_id == state.pool_id

    def test_format(self):
        text = format_config(PoolDeploymentConfig.from_dict(_data()))
        assert text.startswith("RAMM Deployment Configuration:")
        assert "\t\t\tasset type: USDT" in text
        assert f"\t\ttau: {DEFAULT_TAU}" in text


class TestCli:
    def test_validate(self, toml_path, capsys):
        assert main(["validate", str(toml_path)]) == 0
        assert capsys.readouterr().out.strip() == "ok"

    def test_validate_invalid(self, tmp_path, capsys):
        p = tmp_path / "bad.toml"
        p.write_text(TOML.replace("asset_count = 2", "asset_count = 5"), encoding="utf-8")
        assert main(["validate", str(p)]) == 1
        assert "asset_count" in capsys.readouterr().err

    def test_show(self, toml_path, capsys):
        assert main(["--log-level", "DEBUG", "show", str(toml_path)]) == 0
        assert "aggregator address: 0xagg-eth" in capsys.readouterr().out

    def test_build(self, toml_path, capsys):
        assert main(["build", str(toml_path), "--salt", "s"]) == 0
        snapshot = json.loads(capsys.readouterr().out)
        state, _ = build_pool(load_deployment_config(toml_path, environ={}), salt="s")
        assert snapshot["pool_id"] == state.pool_id
        assert snapshot["initialized"] is True
        assert [a["asset"] for a in snapshot["assets"]] == ["ETH", "USDT"]
        assert snapshot["state_root"].startswith("0x")
        assert len(snapshot["state_root"]) == 66
