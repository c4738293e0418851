"""Exception types for the vault keeper.

Arithmetic failures are deterministic: the same inputs always fail the same
way, so callers never retry them unchanged. Insufficient reserve is an expected
outcome that drives a partial fill or a rebalance. Transport failures come from
the chain gateway and are reported per request.
"""

from __future__ import annotations

from typing import Optional, Sequence


class KeeperError(Exception):
    """Base class for every failure the keeper reports."""


class KeeperArithmeticError(KeeperError, ArithmeticError):
    """Raised when an integer computation cannot produce a valid amount."""


class AmountOverflowError(KeeperArithmeticError):
    """Raised when an intermediate exceeds the widened (u128) domain."""


class DivisionByZeroError(KeeperArithmeticError):
    """Raised when a reserve, supply or other divisor is zero."""


class ZeroOutputError(KeeperArithmeticError):
    """Raised when a swap quote would accept a zero output."""


class ZeroResultError(KeeperArithmeticError):
    """Raised when an LP amount rounds down to zero."""


class NarrowingError(KeeperArithmeticError):
    """Raised when a widened result does not fit back into u64."""


class InsufficientReserveError(KeeperError):
    """Raised when idle reserve cannot cover a redemption."""

    def __init__(self, required: int, available: int, *, message: Optional[str] = None) -> None:
        self.required = int(required)
        self.available = int(available)
        self.deficit = max(self.required - self.available, 0)
        super().__init__(
            message
            or f"insufficient reserve: required {self.required}, available {self.available} (deficit {self.deficit})"
        )


class TransportError(KeeperError):
    """Raised by a gateway when a fetch or submission fails."""

    def __init__(self, message: str, *, error_code: Optional[int] = None) -> None:
        self.error_code = error_code
        if error_code is not None:
            message = f"{message} (program error code {error_code})"
        super().__init__(message)


class RebalanceError(KeeperError):
    """Raised when a rebalancing flow aborts part-way.

    `phase` is the last phase that completed; transactions in `submitted` were
    broadcast before the failure and are final.
    """

    def __init__(self, flow: str, phase: str, submitted: Sequence[str], cause: BaseException) -> None:
        self.flow = str(flow)
        self.phase = str(phase)
        self.submitted = tuple(submitted)
        super().__init__(f"{self.flow} flow aborted after phase {self.phase}: {type(cause).__name__}: {cause}")


class ConfigError(KeeperError):
    """Raised when the keeper configuration is invalid."""
