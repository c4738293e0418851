from __future__ import annotations

import io

import pytest

from vault_keeper.errors import ConfigError, TransportError
from vault_keeper.integration.agent import KeeperAgent, build_gateway
from vault_keeper.integration.config import KeeperConfig
from vault_keeper.integration.operator_shell import interactive_loop, main
from vault_keeper.integration.sim_chain import SimulatedChain
from vault_keeper.state import RedemptionRequest, RequestStatus


SEED = {
    "reserve_a": 1_000_000,
    "reserve_b": 2_000_000,
    "lp_supply": 1_000_000,
    "vault_a": 100_000,
    "claim_total_supply": 100,
}


class _FakeTime:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps = []

    def clock(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _agent(chain: SimulatedChain, fake: _FakeTime = None, **cfg) -> KeeperAgent:
    fake = fake or _FakeTime()
    config = KeeperConfig(pool_id="sim-pool", poll_interval_s=5.0, **cfg)
    return KeeperAgent(chain, config, sleep=fake.sleep, clock=fake.clock)


def test_build_gateway_defaults_to_seeded_simulation() -> None:
    gateway = build_gateway(KeeperConfig(pool_id="p1", simulation=dict(SEED)))
    assert isinstance(gateway, SimulatedChain)
    assert gateway.pool_id == "p1"
    assert gateway.fetch_pool_reserves("p1").reserve_a == 1_000_000


@pytest.mark.parametrize(
    "cfg",
    [
        KeeperConfig(simulation={"reserve_a": 1}),
        KeeperConfig(gateway="vault_keeper_no_such_module:factory"),
        KeeperConfig(gateway="builtins:str"),
    ],
)
def test_build_gateway_errors_are_config_errors(cfg: KeeperConfig) -> None:
    with pytest.raises(ConfigError):
        build_gateway(cfg)


def test_run_cycle_settles_pending_requests() -> None:
    chain = SimulatedChain(**SEED)
    chain.add_request(RedemptionRequest(request_id="r1", requester="alice", claim_amount=10))
    agent = _agent(chain)

    results = agent.run_cycle()

    assert [r.ok for r in results] == [True]
    assert chain.requests["r1"].status is RequestStatus.SETTLED
    assert agent.run_cycle() == []


def test_run_cycle_honors_requester_filter() -> None:
    chain = SimulatedChain(**SEED)
    chain.add_request(RedemptionRequest(request_id="r1", requester="alice", claim_amount=10))
    chain.add_request(RedemptionRequest(request_id="r2", requester="bob", claim_amount=10))

    results = _agent(chain, requester_filter="bob").run_cycle()

    assert [r.request_id for r in results] == ["r2"]
    assert chain.requests["r1"].status is RequestStatus.PENDING


def test_run_forever_keeps_a_fixed_interval() -> None:
    fake = _FakeTime()
    agent = _agent(SimulatedChain(**SEED), fake)
    assert agent.run_forever(max_cycles=3) == 3
    assert fake.sleeps == [5.0, 5.0]


def test_failed_cycle_is_logged_and_the_next_one_runs() -> None:
    fake = _FakeTime()
    chain = SimulatedChain(**SEED)
    chain.add_request(RedemptionRequest(request_id="r1", requester="alice", claim_amount=10))
    chain.fail_next("fetch_pending_requests", TransportError("rpc timeout"))

    assert _agent(chain, fake).run_forever(max_cycles=2) == 2
    assert chain.requests["r1"].status is RequestStatus.SETTLED


def test_interactive_loop_drives_both_flows() -> None:
    chain = SimulatedChain(**SEED)
    stdin = io.StringIO("x\nd\nabc\nd\n1000\nw\n100\nq\n")
    stdout = io.StringIO()

    failures = interactive_loop(_agent(chain), stdin, stdout)

    out = stdout.getvalue()
    assert failures == 0
    assert "Invalid operation" in out
    assert "Please enter a valid number" in out
    assert "Deposit successful: lp=475" in out
    assert "Withdraw successful" in out


def test_interactive_loop_reports_failed_operations() -> None:
    chain = SimulatedChain(**SEED)
    stdin = io.StringIO("w\n100\n")
    stdout = io.StringIO()

    assert interactive_loop(_agent(chain), stdin, stdout) == 1
    assert "Withdraw failed" in stdout.getvalue()


def _config_file(tmp_path):
    path = tmp_path / "keeper.yaml"
    path.write_text(
        "pool_id: sim-pool\n"
        "log_level: WARNING\n"
        "simulation:\n"
        "  reserve_a: 1000000\n"
        "  reserve_b: 2000000\n"
        "  lp_supply: 1000000\n"
        "  vault_a: 1000\n"
        "  claim_total_supply: 100\n"
        "  requests:\n"
        "    - {request_id: r1, requester: alice, claim_amount: 10}\n",
        encoding="utf-8",
    )
    return path


def test_main_run_once(tmp_path) -> None:
    assert main(["run", "--once", "--config", str(_config_file(tmp_path))]) == 0


def test_main_interactive_quits_cleanly(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("q\n"))
    assert main(["interactive", "--config", str(_config_file(tmp_path))]) == 0


def test_main_rejects_bad_config(tmp_path, capsys) -> None:
    assert main(["run", "--once", "--config", str(tmp_path / "absent.yaml")]) == 2
    assert "config error" in capsys.readouterr().err
