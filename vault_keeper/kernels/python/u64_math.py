"""
Checked fixed-width integer kernel.

Amounts are u64. Every product is formed in a u128 domain and narrowed back to
u64 explicitly, so an out-of-range result raises instead of wrapping:
- `checked_mul` / `checked_add` fail with `AmountOverflowError` past `U128_MAX`.
- `narrow_u64` fails with `NarrowingError` past `U64_MAX`.
- Divisions fail with `DivisionByZeroError` on a zero denominator.
"""

from __future__ import annotations

from ...errors import AmountOverflowError, DivisionByZeroError, NarrowingError


U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def require_u64(name: str, value: int) -> int:
    """Validate that `value` is an int in [0, U64_MAX] and return it."""
    _require_int(name, value)
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")
    if value > U64_MAX:
        raise ValueError(f"{name} exceeds u64 range: {value}")
    return value


def narrow_u64(name: str, value: int) -> int:
    _require_int(name, value)
    if value < 0 or value > U64_MAX:
        raise NarrowingError(f"{name} does not fit in u64: {value}")
    return value


def checked_add(a: int, b: int) -> int:
    _require_int("a", a)
    _require_int("b", b)
    out = a + b
    if out > U128_MAX:
        raise AmountOverflowError(f"u128 overflow in {a} + {b}")
    return out


def checked_mul(a: int, b: int) -> int:
    _require_int("a", a)
    _require_int("b", b)
    out = a * b
    if out > U128_MAX:
        raise AmountOverflowError(f"u128 overflow in {a} * {b}")
    return out


def floor_div(numerator: int, denominator: int) -> int:
    _require_int("numerator", numerator)
    _require_int("denominator", denominator)
    if denominator == 0:
        raise DivisionByZeroError(f"division of {numerator} by zero")
    if numerator < 0 or denominator < 0:
        raise ValueError("operands must be non-negative")
    return numerator // denominator


def ceil_div(numerator: int, denominator: int) -> int:
    """Exact ceiling division: `(numerator + denominator - 1) // denominator`."""
    _require_int("numerator", numerator)
    _require_int("denominator", denominator)
    if denominator == 0:
        raise DivisionByZeroError(f"division of {numerator} by zero")
    if numerator < 0 or denominator < 0:
        raise ValueError("operands must be non-negative")
    return checked_add(numerator, denominator - 1) // denominator


def mul_div_floor(a: int, b: int, denominator: int, *, name: str = "result") -> int:
    """Compute `floor(a * b / denominator)` in u128 and narrow to u64."""
    return narrow_u64(name, floor_div(checked_mul(a, b), denominator))


def mul_div_ceil(a: int, b: int, denominator: int, *, name: str = "result") -> int:
    """Compute `ceil(a * b / denominator)` in u128 and narrow to u64."""
    return narrow_u64(name, ceil_div(checked_mul(a, b), denominator))


def apply_tolerance(amount: int, tolerance_pct: int) -> int:
    """
    Slippage floor: `floor(amount * tolerance_pct / 100)`.

    `tolerance_pct` is the accepted percentage of the estimate, in (0, 100].
    """
    require_u64("amount", amount)
    require_tolerance(tolerance_pct)
    return mul_div_floor(amount, tolerance_pct, 100, name="minimum")


def require_tolerance(tolerance_pct: int) -> int:
    _require_int("tolerance_pct", tolerance_pct)
    if not (0 < tolerance_pct <= 100):
        raise ValueError(f"tolerance_pct must be in (0, 100]: {tolerance_pct}")
    return tolerance_pct
