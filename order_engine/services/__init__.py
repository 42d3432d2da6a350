"""
Business services operating on the order aggregate.
"""
