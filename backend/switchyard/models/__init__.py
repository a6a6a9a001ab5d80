"""ORM Models — SQLAlchemy declarative models for the demonstration domain.

Invariants:
    - All models inherit from Base (db/base.py)
    - User.post_count equals the number of Post rows authored by that user

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata knows every table before create_all()
"""

from switchyard.models.user import User  # noqa: F401
from switchyard.models.post import Post  # noqa: F401
