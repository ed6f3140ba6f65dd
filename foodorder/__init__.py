"""
                Food Ordering System

Back end for a food ordering service: a catalog with stock, wallet and
card payments over a local ledger, and an order workflow that charges the
customer before committing stock.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
