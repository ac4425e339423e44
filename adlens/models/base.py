"""
Declarative base shared by all AdLens tables
"""
from sqlalchemy import Column, DateTime, func

from adlens.core.database import Base


class TimestampMixin:
    """created_at/updated_at, filled by the database unless set explicitly"""

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )


class BaseModel(Base, TimestampMixin):
    """Abstract base; every table declares its own __tablename__"""

    __abstract__ = True

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={getattr(self, 'id', None)}>"
