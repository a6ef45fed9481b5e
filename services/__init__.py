"""
Token Ledger Services
=====================

Services:
- token_ledger: fungible token contract with proof-gated operations
"""

__all__ = [
    "token_ledger",
]
