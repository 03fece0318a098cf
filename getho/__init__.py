"""
getho: execution-layer transaction inspection.

Normalizes raw transactions, receipts, block headers and opcode traces into
decoded transactions, fee ledgers and call-frame trees.
"""

__version__ = "0.1.0"
