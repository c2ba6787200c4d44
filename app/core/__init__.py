"""Core infrastructure: config, storage, logging, middleware, exceptions."""

from app.core.config import Settings, get_settings
from app.core.database import Base, Storage, get_storage
from app.core.logging import get_logger, job_id_ctx, request_id_ctx

__all__ = [
    "Base",
    "Settings",
    "Storage",
    "get_logger",
    "get_settings",
    "get_storage",
    "job_id_ctx",
    "request_id_ctx",
]
