"""
Sales & stock tracker: reconciles product stock against the sales ledger.
"""

__version__ = "1.0.0"
