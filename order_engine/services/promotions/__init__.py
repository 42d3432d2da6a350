"""
Promotion adjustment calculators.
"""
