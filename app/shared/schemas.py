"""Shared Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field


class PaginationParams(BaseModel):
    """Pagination parameters (1-indexed pages)."""

    page: int = Field(1, ge=1, description="Page number (1-indexed)")
    limit: int = Field(100, ge=1, description="Items per page")

    @property
    def offset(self) -> int:
        """Calculate SQL offset from page number."""
        return (self.page - 1) * self.limit


class PaginatedResponse[T](BaseModel):
    """Generic paginated response wrapper."""

    data: list[T] = Field(..., description="Page of items")
    total: int = Field(..., ge=0, description="Total count of items matching the query")
    page: int = Field(..., ge=1, description="Current page number")
    limit: int = Field(..., ge=1, description="Items per page")
    totalPages: int = Field(..., ge=0, description="ceil(total / limit)")  # noqa: N815
