from sqlalchemy import case
from sqlalchemy.orm import Session


def floored_decrement(column, amount=1):
    """SQL expression for ``column - amount`` that never drops below zero."""
    return case((column > amount, column - amount), else_=0)


class BaseRepository:
    """Base repository class with common database session functionality."""

    def __init__(self, db: Session):
        self.db = db
