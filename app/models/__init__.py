"""
SQLAlchemy ORM models package.

All models are imported here so that Base.metadata knows every table
before create_all() runs, and so other modules can import from app.models.
"""

from app.models.user import User, UserRole  # noqa: F401
from app.models.card import Card, CardStatus  # noqa: F401
from app.models.transaction import Transaction, TransactionStatus  # noqa: F401
