"""
Pydantic schemas describing order engine results.
"""
