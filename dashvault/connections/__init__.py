"""Database connection handling."""

from .service import ConnectionService, QueryExecutor

__all__ = ["ConnectionService", "QueryExecutor"]
