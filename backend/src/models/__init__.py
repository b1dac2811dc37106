"""SQLAlchemy models."""

from src.models.api_key import ApiKey
from src.models.base import Base, BaseModel

__all__ = [
    "Base",
    "BaseModel",
    "ApiKey",
]
