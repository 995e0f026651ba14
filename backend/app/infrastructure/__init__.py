"""Infrastructure Layer — database access and cross-cutting concerns.

Invariants:
    - Infrastructure never imports scoring/aggregation logic from core/
    - All SQLAlchemy failures mapped to DatabaseError

Design Decisions:
    - Repositories implement core/repository_protocols.py contracts
"""
