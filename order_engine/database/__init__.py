"""
Database package initialization.

The package follows a modular structure:
- base: declarative base and model mixins
- models: SQLAlchemy ORM models of the order aggregate
"""

__all__ = []
