"""
Token Ledger Service
====================

Configurable fungible token with sideloaded-proof policies.

This service provides:
- Packed per-operation proof policies
- Authenticated verification key registry
- Proof-gated mint, burn, transfer and batch approval
- Batch conservation and anti-flash-mint checks

Version: 0.1.0
"""

__version__ = "0.1.0"
