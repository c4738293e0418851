from __future__ import annotations

from pathlib import Path

import pytest

from vault_keeper.core.quote import PricingModel
from vault_keeper.errors import ConfigError
from vault_keeper.integration.agent import KeeperAgent, build_gateway
from vault_keeper.integration.config import KeeperConfig, WithdrawPolicy, config_from_mapping, load_config


def _write(tmp_path, text: str):
    path = tmp_path / "keeper.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_file_or_env() -> None:
    cfg = load_config(env={})
    assert cfg == KeeperConfig()
    assert cfg.pricing_model is PricingModel.RATIO
    assert cfg.swap_tolerance_pct == 95
    assert cfg.withdraw_tolerance_pct == 95
    assert cfg.withdraw_policy is WithdrawPolicy.TARGET


def test_yaml_values_are_coerced(tmp_path) -> None:
    path = _write(
        tmp_path,
        "pool_id: pool-1\n"
        "pricing_model: constant_product\n"
        "withdraw_policy: full\n"
        "swap_tolerance_pct: 90\n"
        "poll_interval_s: 2\n"
        "log_level: debug\n"
        "simulation:\n"
        "  reserve_a: 10\n",
    )
    cfg = load_config(path, env={})
    assert cfg.pool_id == "pool-1"
    assert cfg.pricing_model is PricingModel.CONSTANT_PRODUCT
    assert cfg.withdraw_policy is WithdrawPolicy.FULL
    assert cfg.swap_tolerance_pct == 90
    assert cfg.poll_interval_s == 2.0
    assert cfg.log_level == "DEBUG"
    assert cfg.simulation == {"reserve_a": 10}


def test_environment_overrides_file(tmp_path) -> None:
    path = _write(tmp_path, "swap_tolerance_pct: 90\nrequester_filter: alice\n")
    env = {
        "VAULT_KEEPER_SWAP_TOLERANCE_PCT": "80",
        "VAULT_KEEPER_REQUESTER_FILTER": "",
        "UNRELATED": "1",
    }
    cfg = load_config(path, env=env)
    assert cfg.swap_tolerance_pct == 80
    assert cfg.requester_filter is None


def test_empty_file_is_defaults(tmp_path) -> None:
    assert load_config(_write(tmp_path, ""), env={}) == KeeperConfig()


@pytest.mark.parametrize(
    "text",
    [
        "bogus_key: 1\n",
        "swap_tolerance_pct: 0\n",
        "withdraw_tolerance_pct: 101\n",
        "swap_tolerance_pct: lots\n",
        "pricing_model: curve\n",
        "poll_interval_s: 0\n",
        "log_level: chatty\n",
        "gateway: no_colon_here\n",
        "- a\n- b\n",
        "a: [\n",
    ],
)
def test_invalid_config_is_rejected(tmp_path, text: str) -> None:
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path, text), env={})


def test_missing_file_is_a_config_error(tmp_path) -> None:
    with pytest.raises(ConfigError, match="cannot read"):
        load_config(tmp_path / "absent.yaml", env={})


def test_config_from_mapping_layers_on_base() -> None:
    base = KeeperConfig(pool_id="p1", swap_tolerance_pct=90)
    cfg = config_from_mapping({"withdraw_tolerance_pct": 80}, base=base)
    assert (cfg.pool_id, cfg.swap_tolerance_pct, cfg.withdraw_tolerance_pct) == ("p1", 90, 80)


def test_example_config_builds_a_working_keeper() -> None:
    example = Path(__file__).resolve().parents[2] / "keeper.example.yaml"
    cfg = load_config(example, env={})
    agent = KeeperAgent(build_gateway(cfg), cfg, sleep=lambda _s: None, clock=lambda: 0.0)
    results = agent.run_cycle()
    assert [r.request_id for r in results] == ["req-1", "req-2"]


@pytest.mark.parametrize("key", ["vault_address", "claim_mint_address"])
def test_account_addresses_belong_to_the_gateway_not_the_keeper_config(key: str) -> None:
    with pytest.raises(ConfigError, match="unknown config keys"):
        config_from_mapping({key: "abc"})
