"""Common schemas used across the application."""

from typing import Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """Offset-paginated response wrapper.

    Usage:
        response_model=PaginatedResponse[ProjectOut]
    """
    items: list[T]
    total: int
    limit: int
    offset: int
