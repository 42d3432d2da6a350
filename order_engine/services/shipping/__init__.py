"""
Shipping rate collaborators.
"""
