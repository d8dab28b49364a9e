"""
Vault Banking

A small banking backend: registration and login, emailed password resets,
deposits and withdrawals against a per-account ledger with running inflow and
outflow totals, and a stub loan-request desk.
"""

__version__ = "1.0.0"
