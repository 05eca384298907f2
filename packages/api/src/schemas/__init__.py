# This project was developed with assistance from AI tools.
"""Shared schema components."""

from pydantic import BaseModel


class Pagination(BaseModel):
    """Offset-based pagination metadata for list responses."""

    total: int
    offset: int
    limit: int
    has_more: bool

    @classmethod
    def for_page(cls, total: int, offset: int, limit: int) -> "Pagination":
        return cls(total=total, offset=offset, limit=limit, has_more=(offset + limit) < total)
