"""
Shared response envelope for paged listings.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class Page(BaseModel, Generic[T]):
    """One page of results plus the total number of matching rows."""
    items: list[T]
    total: int
    limit: int
    offset: int
