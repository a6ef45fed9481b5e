"""
Token Ledger Service Routes
===========================

API route handlers for the token ledger service.
"""

from services.token_ledger.routes import admin, operations, queries


__all__ = ["admin", "operations", "queries"]
