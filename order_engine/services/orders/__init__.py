"""
Order totals and state reconciliation.
"""
