"""
Money Mate - Source Package

Personal finance tracking: income and expense logging, debts with
payment records, monthly and category analytics, and view-only family
sharing. Persistence and identity live in a hosted backend reached
through its client SDK.

DESIGN PRINCIPLES:
1. Validate input before any remote call
2. Fail visibly, never retry silently
3. Ledger logic is pure and synchronous
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Money Mate Team"
