"""
Operator command line for the keeper.

    vault-keeper run [--config PATH] [--once] [--cycles N]
    vault-keeper interactive [--config PATH]

`run` polls without any input. `interactive` reads `d` (deposit), `w`
(withdraw) and `q` (quit) from stdin and drives the same rebalancing flows.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence, TextIO

from ..errors import KeeperError
from .agent import KeeperAgent, build_gateway
from .config import KeeperConfig, load_config


logger = logging.getLogger(__name__)

PROMPT = "Enter operation (d for deposit, w for withdraw, q to quit):"


def _setup_logging(config: KeeperConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _read_amount(stdin: TextIO, stdout: TextIO, label: str) -> Optional[int]:
    stdout.write(f"Enter LP {label} amount:\n")
    stdout.flush()
    line = stdin.readline()
    if not line:
        return None
    try:
        amount = int(line.strip())
    except ValueError:
        stdout.write("Please enter a valid number\n")
        return None
    if amount <= 0:
        stdout.write("Please enter a positive number\n")
        return None
    return amount


def interactive_loop(agent: KeeperAgent, stdin: TextIO = sys.stdin, stdout: TextIO = sys.stdout) -> int:
    """Read operator commands until `q` or end of input. Returns the number of failed operations."""
    failures = 0
    while True:
        stdout.write(PROMPT + "\n")
        stdout.flush()
        line = stdin.readline()
        if not line:
            break
        op = line.strip()
        if op == "q":
            break
        if op not in ("d", "w"):
            stdout.write("Invalid operation. Use 'd' for deposit, 'w' for withdraw, or 'q' to quit\n")
            continue

        label = "deposit" if op == "d" else "withdraw"
        amount = _read_amount(stdin, stdout, label)
        if amount is None:
            continue
        try:
            if op == "d":
                report = agent.orchestrator.deposit(amount)
                stdout.write(f"Deposit successful: lp={report.adjustment.lp_amount} tx={report.deposit_tx}\n")
            else:
                report = agent.orchestrator.withdraw(amount)
                stdout.write(f"Withdraw successful: tx={report.withdraw_tx} swap_tx={report.swap_tx}\n")
        except (KeeperError, ValueError) as exc:
            failures += 1
            stdout.write(f"{label.capitalize()} failed: {exc}\n")
    return failures


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="vault-keeper", description="Vault treasury keeper")
    sub = ap.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="poll and settle redemption requests")
    run.add_argument("--config", default=None, help="YAML config file")
    run.add_argument("--once", action="store_true", help="run a single cycle and exit")
    run.add_argument("--cycles", type=int, default=None, help="stop after N cycles")

    inter = sub.add_parser("interactive", help="drive deposit/withdraw flows from stdin")
    inter.add_argument("--config", default=None, help="YAML config file")
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        config = load_config(args.config)
        gateway = build_gateway(config)
    except KeeperError as exc:
        print(f"[vault-keeper] config error: {exc}", file=sys.stderr)
        return 2
    _setup_logging(config)

    agent = KeeperAgent(gateway, config)
    if args.command == "interactive":
        return 1 if interactive_loop(agent, sys.stdin, sys.stdout) else 0

    max_cycles = 1 if args.once else args.cycles
    cycles = agent.run_forever(max_cycles=max_cycles)
    logger.info("stopped after %d cycle(s)", cycles)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
