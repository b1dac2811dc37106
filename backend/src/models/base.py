"""Base SQLAlchemy model with integer primary key."""

from sqlalchemy import Column, DateTime, Integer, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Largest value an INTEGER column holds on every supported backend (Postgres int4)
MAX_INTEGER_ID = 2**31 - 1


class BaseModel(Base):
    """Base model with autoincrement primary key and timestamps."""

    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
