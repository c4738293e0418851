"""
Integer arithmetic kernels.

Amounts are u64 and products are formed in u128; any result that would wrap,
divide by zero or fail to narrow back to u64 raises a `KeeperArithmeticError`.
"""
