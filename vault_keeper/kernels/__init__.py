"""
Kernel layer.

This package groups the deterministic integer kernels used by the keeper.
`vault_keeper/kernels/python/` holds the checked fixed-width arithmetic that
every quote, LP and redemption computation is built on.
"""
