"""Database Metadata — declarative Base shared by ORM models and Alembic.

Invariants:
    - Every table is registered on Base.metadata

Design Decisions:
    - Engine/session lifecycle lives in infrastructure/database.py, not here
"""
