"""Shared utilities used across 3+ features."""

from app.shared.models import TimestampMixin
from app.shared.schemas import PaginatedResponse, PaginationParams
from app.shared.utils import paginate_response, total_pages

__all__ = [
    "PaginatedResponse",
    "PaginationParams",
    "TimestampMixin",
    "paginate_response",
    "total_pages",
]
