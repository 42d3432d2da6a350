"""
Order totals and state reconciliation engine.

Recomputes the derived monetary fields and lifecycle states of an order
aggregate from its line items, payments, shipments and adjustments.
"""

__version__ = "1.0.0"
