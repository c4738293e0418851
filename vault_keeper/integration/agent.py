"""
Polling keeper agent (imperative shell).

One cycle fetches the pending requests and settles them sequentially; the
next cycle starts only after the previous one has finished. Every cycle
re-derives amounts from freshly fetched state, so restarting after a crash is
safe: requests left pending are simply evaluated again.
"""

from __future__ import annotations

import importlib
import logging
import time
from typing import Callable, List, Optional

from ..errors import ConfigError, KeeperError
from ..state.requests import RequestStatus
from .config import KeeperConfig
from .gateway import ChainGateway
from .journal import PhaseJournal
from .rebalancer import RebalancingOrchestrator
from .settlement_loop import BatchSummary, RequestResult, SettlementLoop
from .sim_chain import SimulatedChain


logger = logging.getLogger(__name__)


def build_gateway(config: KeeperConfig) -> ChainGateway:
    """
    Build the gateway named by `config.gateway` ("module:callable", called with
    the config), or a simulated chain seeded from `config.simulation`.
    """
    if config.gateway is None:
        seed = dict(config.simulation)
        seed.setdefault("pool_id", config.pool_id or "sim-pool")
        try:
            return SimulatedChain.from_mapping(seed)
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigError(f"invalid simulation seed: {exc}") from exc

    module_name, _, attr = config.gateway.partition(":")
    try:
        factory = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as exc:
        raise ConfigError(f"cannot load gateway {config.gateway!r}: {exc}") from exc
    gateway = factory(config)
    if not isinstance(gateway, ChainGateway):
        raise ConfigError(f"{config.gateway} did not return a ChainGateway")
    return gateway


class KeeperAgent:
    def __init__(
        self,
        gateway: ChainGateway,
        config: KeeperConfig,
        *,
        journal: Optional[PhaseJournal] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._gateway = gateway
        self._cfg = config
        self.orchestrator = RebalancingOrchestrator(gateway, config, journal)
        self.loop = SettlementLoop(gateway, self.orchestrator, config)
        self._sleep = sleep
        self._clock = clock

    def run_cycle(self) -> List[RequestResult]:
        requests = self._gateway.fetch_pending_requests(RequestStatus.PENDING, self._cfg.requester_filter)
        if not requests:
            logger.debug("no pending requests")
            return []
        logger.info("cycle: %d pending request(s)", len(requests))
        results = self.loop.settle_batch(requests)
        summary = BatchSummary.from_results(results)
        logger.info(
            "cycle done: settled=%d partial=%d rebalancing=%d failed=%d",
            summary.settled,
            summary.partial,
            summary.rebalancing,
            summary.failed,
        )
        return results

    def run_forever(self, *, max_cycles: Optional[int] = None) -> int:
        """
        Run cycles on a fixed interval until `max_cycles` is reached (or forever).

        A cycle that raises (e.g. the pending-request query fails) is logged and
        the next cycle runs on schedule. Returns the number of cycles run.
        """
        cycles = 0
        next_at = self._clock()
        while max_cycles is None or cycles < max_cycles:
            try:
                self.run_cycle()
            except (KeeperError, ValueError):
                logger.exception("cycle %d failed", cycles + 1)
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            next_at += self._cfg.poll_interval_s
            delay = next_at - self._clock()
            if delay > 0:
                self._sleep(delay)
            else:
                next_at = self._clock()
        return cycles
