# app/db/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """All pharmacy credit tables (sales, payments, returns, patients) inherit from this."""
    pass
