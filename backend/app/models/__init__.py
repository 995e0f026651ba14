"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Deal is the aggregate the core reads; activities hang off deals

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from app.models.user import User  # noqa: F401
from app.models.lead import Lead  # noqa: F401
from app.models.deal import Deal  # noqa: F401
from app.models.activity import Activity  # noqa: F401
