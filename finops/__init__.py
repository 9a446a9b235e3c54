"""
finops - financial operations bookkeeping service.

Users authenticate with a bearer token and record BUY/SELL operations
guarded by per-user limits.
"""

__version__ = "1.0.0"
