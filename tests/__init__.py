"""
Token Ledger Test Suite
=======================

Test organization:
- tests/unit/                   - Shared primitives (ledger, Merkle map, signatures, proofs)
- tests/services/token_ledger/  - Policy core, operation gate and API

Run tests:
    pytest                          # All tests
    pytest tests/unit               # Unit tests only
"""
