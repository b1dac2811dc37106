"""API key model."""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String, true

from src.models.base import BaseModel


class ApiKey(BaseModel):
    """API key issued to an owner.

    ``key`` is the secret callers present. It is unique across the table and
    never changes after creation.
    """

    __tablename__ = "api_keys"
    __table_args__ = (CheckConstraint("LENGTH(name) > 0", name="api_key_name_not_empty"),)

    key = Column(String(64), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    user_id = Column(Integer, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    active = Column(Boolean, nullable=False, default=True, server_default=true())

    def __repr__(self) -> str:
        return f"<ApiKey(id={self.id}, user_id={self.user_id}, active={self.active})>"
