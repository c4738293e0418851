"""
Imperative shell: gateway, rebalancing flows, settlement loop and agent
"""

from .agent import KeeperAgent, build_gateway
from .config import KeeperConfig, WithdrawPolicy, load_config
from .gateway import ChainGateway
from .journal import PhaseJournal
from .rebalancer import DepositReport, RebalancePhase, RebalancingOrchestrator, WithdrawReport
from .settlement_loop import BatchSummary, RequestResult, SettlementLoop
from .sim_chain import SimulatedChain

__all__ = [
    "KeeperAgent",
    "build_gateway",
    "KeeperConfig",
    "WithdrawPolicy",
    "load_config",
    "ChainGateway",
    "PhaseJournal",
    "DepositReport",
    "RebalancePhase",
    "RebalancingOrchestrator",
    "WithdrawReport",
    "BatchSummary",
    "RequestResult",
    "SettlementLoop",
    "SimulatedChain",
]
