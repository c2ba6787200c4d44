"""Shared utility functions."""

import math

from app.shared.schemas import PaginatedResponse, PaginationParams


def total_pages(total: int, limit: int) -> int:
    """Number of pages needed to show ``total`` items ``limit`` at a time."""
    return math.ceil(total / limit) if total > 0 else 0


def paginate_response[T](
    items: list[T],
    total: int,
    pagination: PaginationParams,
) -> PaginatedResponse[T]:
    """Create a paginated response from items and total count.

    Args:
        items: List of items for the current page.
        total: Total count of all items matching the query.
        pagination: Pagination parameters used for the query.

    Returns:
        PaginatedResponse with computed page count.
    """
    return PaginatedResponse[T](
        data=items,
        total=total,
        page=pagination.page,
        limit=pagination.limit,
        totalPages=total_pages(total, pagination.limit),
    )
