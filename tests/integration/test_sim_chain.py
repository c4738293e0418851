from __future__ import annotations

import pytest

from vault_keeper.core.quote import SwapDirection
from vault_keeper.errors import TransportError
from vault_keeper.integration.sim_chain import (
    ERR_INSUFFICIENT_BALANCE,
    ERR_REQUEST_NOT_PENDING,
    ERR_SLIPPAGE_EXCEEDED,
    POOL,
    VAULT,
    SimulatedChain,
)
from vault_keeper.state import Asset, RedemptionRequest, RequestStatus


def _chain(**kw) -> SimulatedChain:
    base = dict(reserve_a=1000, reserve_b=2000, lp_supply=1000)
    base.update(kw)
    return SimulatedChain(**base)


def test_vault_valuation_includes_lp_share_and_held_b() -> None:
    chain = _chain(vault_a=10, vault_b=20, vault_lp=100)
    vault = chain.fetch_vault_state()
    # LP share: (100, 200); held B 20 + 200 = 220 valued at 1000/2000 -> 110.
    assert vault.available_reserve == 10
    assert vault.total_reserve == 10 + 100 + 110
    assert vault.lp_balance == 100


def test_swap_executes_at_constant_product() -> None:
    chain = _chain(vault_a=500)
    tx = chain.submit_swap(SwapDirection.A_TO_B, 500, 600)
    # 500 * 2000 / (1000 + 500) = 666
    assert chain.balances.get(VAULT, Asset.B) == 666
    assert chain.balances.get(POOL, Asset.A) == 1500
    assert chain.transactions[-1]["tx_id"] == tx
    assert chain.transactions[-1]["kind"] == "swap"


def test_swap_below_minimum_is_rejected_without_effect() -> None:
    chain = _chain(vault_a=500)
    with pytest.raises(TransportError) as ei:
        chain.submit_swap(SwapDirection.A_TO_B, 500, 950)
    assert ei.value.error_code == ERR_SLIPPAGE_EXCEEDED
    assert "program error code 6001" in str(ei.value)
    assert chain.balances.get(VAULT, Asset.A) == 500
    assert chain.transactions == []


def test_swap_requires_funds() -> None:
    chain = _chain(vault_a=10)
    with pytest.raises(TransportError) as ei:
        chain.submit_swap(SwapDirection.A_TO_B, 11, 1)
    assert ei.value.error_code == ERR_INSUFFICIENT_BALANCE


def test_lp_deposit_and_withdraw_move_both_sides() -> None:
    chain = _chain(vault_a=100, vault_b=200)
    chain.submit_lp_deposit(100, 100, 200)
    assert chain.balances.get(VAULT, Asset.LP) == 100
    assert chain.lp_supply == 1100
    assert chain.balances.get(VAULT, Asset.A) == 0

    chain.submit_lp_withdraw(100, 95, 190)
    assert chain.balances.get(VAULT, Asset.LP) == 0
    assert chain.lp_supply == 1000
    assert chain.balances.get(VAULT, Asset.A) == 100
    assert chain.balances.get(VAULT, Asset.B) == 200


def test_lp_deposit_above_maxima_is_rejected() -> None:
    chain = _chain(vault_a=100, vault_b=200)
    with pytest.raises(TransportError) as ei:
        chain.submit_lp_deposit(100, 99, 200)
    assert ei.value.error_code == ERR_SLIPPAGE_EXCEEDED


def test_settlement_pays_requester_and_burns_claims() -> None:
    chain = _chain(vault_a=1000, claim_total_supply=100)
    chain.add_request(RedemptionRequest(request_id="r1", requester="alice", claim_amount=10))
    chain.submit_settlement("r1", 100)
    assert chain.balances.get("alice", Asset.A) == 100
    assert chain.claim_total_supply == 90
    assert chain.requests["r1"].status is RequestStatus.SETTLED
    assert chain.fetch_pending_requests() == []

    with pytest.raises(TransportError) as ei:
        chain.submit_settlement("r1", 100)
    assert ei.value.error_code == ERR_REQUEST_NOT_PENDING


def test_pending_request_filters() -> None:
    chain = _chain()
    chain.add_request(RedemptionRequest(request_id="r1", requester="alice", claim_amount=1))
    chain.add_request(RedemptionRequest(request_id="r2", requester="bob", claim_amount=1))
    assert [r.request_id for r in chain.fetch_pending_requests()] == ["r1", "r2"]
    assert [r.request_id for r in chain.fetch_pending_requests(requester_filter="bob")] == ["r2"]
    with pytest.raises(ValueError, match="duplicate"):
        chain.add_request(RedemptionRequest(request_id="r1", requester="carol", claim_amount=1))


def test_failure_injection_fires_once() -> None:
    chain = _chain()
    chain.fail_next("fetch_pool_reserves", TransportError("rpc timeout"))
    with pytest.raises(TransportError, match="rpc timeout"):
        chain.fetch_pool_reserves("sim-pool")
    assert chain.fetch_pool_reserves("sim-pool").reserve_a == 1000
    with pytest.raises(TransportError, match="unknown pool"):
        chain.fetch_pool_reserves("other")


def test_from_mapping_seeds_requests() -> None:
    chain = SimulatedChain.from_mapping(
        {
            "pool_id": "p1",
            "reserve_a": "1000",
            "reserve_b": 2000,
            "lp_supply": 1000,
            "claim_total_supply": 50,
            "requests": [{"request_id": "r1", "requester": "alice", "claim_amount": 5}],
        }
    )
    assert chain.pool_id == "p1"
    assert chain.fetch_claim_total_supply() == 50
    assert chain.fetch_pending_requests()[0].claim_amount == 5
    with pytest.raises(ValueError, match="invalid simulation seed"):
        SimulatedChain.from_mapping({"reserve_a": 1, "reserve_b": 1, "lp_supply": 1, "bogus": 1})
