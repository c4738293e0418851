"""
Treasury keeper for a pooled-asset vault with a single AMM liquidity position.
"""

__version__ = "0.1.0"
